"""
Tests for id generation and the test time provider
"""

from datetime import datetime, timezone

from fruitflow.kernel.ids import generate_id, generate_mock_tx_hash
from fruitflow.kernel.time import TestTimeProvider


def test_generate_id_shape() -> None:
    value = generate_id()

    assert len(value) == 36
    assert value[14] == "7"  # version nibble
    assert generate_id() != value


def test_mock_tx_hash_shape() -> None:
    tx_hash = generate_mock_tx_hash(0x1234)

    assert len(tx_hash) == 66
    assert tx_hash.startswith("0x000000001234")
    int(tx_hash[2:], 16)


def test_test_time_provider_advances() -> None:
    start = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
    clock = TestTimeProvider(start)

    clock.advance_seconds(30)
    clock.advance_days(1)

    assert clock.now() == datetime(2025, 1, 16, 12, 0, 30, tzinfo=timezone.utc)


def test_test_time_provider_reads_naive_as_utc() -> None:
    clock = TestTimeProvider()
    assert clock.now() == datetime(1970, 1, 1, tzinfo=timezone.utc)

    clock.set_time(datetime(2025, 3, 1, 8, 0))

    assert clock.now().tzinfo is timezone.utc
    assert clock.now().hour == 8
