"""
ID generation using time-ordered UUIDs

Order documents get UUIDv7-like identifiers so listing them by id follows
creation order. Simulated escrow payouts get a 32-byte hex hash that looks
like an Ethereum transaction hash but is never sent anywhere.
"""

import secrets
import time


def generate_id() -> str:
    """
    Generate a UUIDv7-like identifier (time-ordered UUID)

    First 48 bits: Unix timestamp in milliseconds, remaining bits random,
    with the version (7) and variant (10) bits set.

    Returns:
        Sortable UUID string (e.g., "01908e9a-3b87-7000-8000-123456789abc")
    """
    timestamp_48 = int(time.time() * 1000) & 0xFFFFFFFFFFFF
    rand_12 = secrets.randbits(12)
    rand_62 = secrets.randbits(62)

    time_high = (timestamp_48 >> 32) & 0xFFFF
    time_mid = (timestamp_48 >> 16) & 0xFFFF
    time_low = timestamp_48 & 0xFFFF
    version_and_rand = 0x7000 | rand_12
    clock_seq_and_variant = 0x8000 | ((rand_62 >> 48) & 0x3FFF)
    node = rand_62 & 0xFFFFFFFFFFFF

    return (
        f"{time_high:04x}{time_mid:04x}-"
        f"{time_low:04x}-"
        f"{version_and_rand:04x}-"
        f"{clock_seq_and_variant:04x}-"
        f"{node:012x}"
    )


def generate_mock_tx_hash(timestamp_ms: int | None = None) -> str:
    """
    Generate a simulated transaction hash

    Format: "0x" + 12 hex chars of millisecond timestamp + 52 random hex chars
    (66 chars total, same shape as an Ethereum tx hash).
    """
    ts = int(time.time() * 1000) if timestamp_ms is None else timestamp_ms
    return f"0x{ts & 0xFFFFFFFFFFFF:012x}{secrets.token_hex(26)}"
