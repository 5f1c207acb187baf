"""
Structured logging for FruitFlow.

Every log event passes through a redaction processor, so mock passwords,
wallet addresses and API keys never leave the process, whichever module
logged them. Events carry a correlation id that ties together everything a
single CLI invocation or health request did.

Fun fact: Cold-chain logistics teams were logging temperature readings on
paper strip charts long before anyone called it "observability".
"""

import contextvars
import logging
import os
import secrets
import sys
import time
from collections.abc import MutableMapping
from typing import Any

import structlog

REDACTED = "***REDACTED***"

# Credentials and wallet data never reach the logs
REDACTED_FIELDS = frozenset(
    {
        "password",
        "mock_password",
        "ethereum_address",
        "recipient_address",
        "escrow_address",
        "api_key",
        "token",
        "secret",
        "private_key",
    }
)

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "fruitflow_correlation_id", default=None
)


def get_correlation_id() -> str:
    """Current correlation id; one is minted on first use in a context."""
    cid = _correlation_id.get()
    if cid is None:
        cid = secrets.token_urlsafe(16)
        _correlation_id.set(cid)
    return cid


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id.set(correlation_id)


def redact_context(context: dict[str, Any]) -> dict[str, Any]:
    """
    Copy of ``context`` with sensitive values masked

    Example:
        >>> redact_context({"password": "123", "user_id": "alice"})
        {'password': '***REDACTED***', 'user_id': 'alice'}
    """
    return {k: REDACTED if k in REDACTED_FIELDS else v for k, v in context.items()}


def _redact(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for field in REDACTED_FIELDS.intersection(event_dict):
        event_dict[field] = REDACTED
    return event_dict


def _add_correlation_id(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    event_dict.setdefault("correlation_id", get_correlation_id())
    return event_dict


def configure_logging(*, json_output: bool = False, log_level: str = "INFO") -> None:
    """
    Route structlog through the stdlib root logger on stderr

    stdout stays free for CLI output (including ``--json``).

    Args:
        json_output: JSON lines (production) instead of the colored console
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )
    for noisy in ("werkzeug", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    renderer: list[Any]
    if json_output:
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_correlation_id,
            _redact,
            *renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def is_production() -> bool:
    """True when $ENVIRONMENT is "production" (JSON logs, no tracebacks)."""
    return os.getenv("ENVIRONMENT", "development").lower() == "production"


class LogOperation:
    """
    Log the start and end of an operation with its duration

    Exceptions propagate; they are logged with the elapsed time first.

    Example:
        with LogOperation(logger, "reputation_recompute", recompute_id=rid):
            ...
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        operation: str,
        **context: Any,
    ):
        self.log = logger.bind(operation=operation, **redact_context(context))
        self.operation = operation
        self._started = 0.0

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._started) * 1000, 2)

    def __enter__(self) -> "LogOperation":
        self._started = time.perf_counter()
        self.log.info(f"{self.operation} started")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if exc_type is None:
            self.log.info(f"{self.operation} completed", duration_ms=self.elapsed_ms())
            return
        self.log.error(
            f"{self.operation} failed",
            duration_ms=self.elapsed_ms(),
            error=str(exc_val),
            exc_info=not is_production(),
        )
