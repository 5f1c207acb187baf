"""
Simulated Escrow Payout

Records a payout from the escrow wallet to a supplier or transporter without
touching any blockchain. The transaction hash is random and only looks real.

Fun fact: Escrow comes from the Old French "escroe", a scroll of parchment
held by a third party until the deal was done.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from fruitflow.kernel.errors import PayoutError
from fruitflow.kernel.ids import generate_mock_tx_hash
from fruitflow.kernel.logging import get_logger

logger = get_logger(__name__)


class PayoutRequest(BaseModel):
    recipient_address: str = Field(..., description="Recipient wallet address")
    amount: float = Field(..., gt=0, description="Amount to pay out")
    currency: str = Field(..., min_length=3, max_length=3, description="e.g. ETH, USD")
    escrow_address: str = Field(..., description="Escrow wallet the funds notionally leave")

    @field_validator("recipient_address", "escrow_address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Address cannot be empty")
        return v.strip()

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return v.upper()


class PayoutResult(BaseModel):
    mock_transaction_hash: str
    status: Literal["SUCCESS", "FAILED"]
    message: str
    simulated_at: datetime


def simulate_payout(
    recipient_address: str,
    amount: float,
    currency: str,
    escrow_address: str,
    now: datetime,
) -> PayoutResult:
    """
    Simulate paying ``amount`` out of escrow

    Raises:
        PayoutError: If the request is invalid (non-positive amount,
            currency code not 3 letters, blank addresses)
    """
    try:
        request = PayoutRequest(
            recipient_address=recipient_address,
            amount=amount,
            currency=currency,
            escrow_address=escrow_address,
        )
    except ValidationError as e:
        raise PayoutError(f"Invalid payout request: {e.errors()[0]['msg']}") from e

    tx_hash = generate_mock_tx_hash(int(now.timestamp() * 1000))
    logger.info(
        "Simulated payout recorded",
        amount=request.amount,
        currency=request.currency,
        tx_hash=tx_hash,
    )

    return PayoutResult(
        mock_transaction_hash=tx_hash,
        status="SUCCESS",
        message=(
            f"Simulated payout of {request.amount} {request.currency} to "
            f"{request.recipient_address} successfully recorded."
        ),
        simulated_at=now,
    )
