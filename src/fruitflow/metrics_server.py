"""
Standalone Prometheus exporter for FruitFlow.

Serves the marketplace registry at /metrics. Counters only move for work done
in the same process, so run it alongside the health server or a long-lived
worker rather than next to one-shot CLI calls.

Usage:
    python -m fruitflow.metrics_server --port 9090
"""

import argparse
import time

from fruitflow.kernel.logging import configure_logging, get_logger
from fruitflow.kernel.metrics import start_metrics_server

logger = get_logger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fruitflow-metrics",
        description="Expose FruitFlow marketplace metrics for Prometheus",
    )
    parser.add_argument("--port", type=int, default=9090, help="listen port (9090)")
    parser.add_argument("--log-level", default="INFO", choices=LOG_LEVELS)
    parser.add_argument("--json-logs", action="store_true", help="JSON log lines")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(json_output=args.json_logs, log_level=args.log_level)

    start_metrics_server(port=args.port)
    logger.info("Metrics exporter listening", port=args.port, path="/metrics")

    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        logger.info("Metrics exporter stopped")


if __name__ == "__main__":
    main()
