"""
Tests for simulated escrow payouts
"""

from datetime import datetime, timezone

import pytest

from fruitflow.escrow.payout import simulate_payout
from fruitflow.fruitflow import FruitFlow
from fruitflow.kernel.errors import PayoutError

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_payout_succeeds() -> None:
    result = simulate_payout("0xSupplier", 1.5, "eth", "0xEscrow", now=NOW)

    assert result.status == "SUCCESS"
    assert result.mock_transaction_hash.startswith("0x")
    assert len(result.mock_transaction_hash) == 66
    assert "1.5 ETH to 0xSupplier" in result.message
    assert result.simulated_at == NOW


def test_hash_encodes_timestamp() -> None:
    result = simulate_payout("0xSupplier", 1, "ETH", "0xEscrow", now=NOW)

    ms = int(NOW.timestamp() * 1000)
    assert result.mock_transaction_hash[2:14] == f"{ms:012x}"


@pytest.mark.parametrize(
    "recipient,amount,currency",
    [("0xA", 0, "ETH"), ("0xA", -3, "ETH"), ("0xA", 1, "ETHER"), ("   ", 1, "ETH")],
)
def test_invalid_requests(recipient: str, amount: float, currency: str) -> None:
    with pytest.raises(PayoutError):
        simulate_payout(recipient, amount, currency, "0xEscrow", now=NOW)


def test_facade_uses_its_clock(ff: FruitFlow, test_time) -> None:
    result = ff.simulate_payout("0xSupplier", 2, "USD", "0xEscrow")

    assert result.simulated_at == test_time.now()
