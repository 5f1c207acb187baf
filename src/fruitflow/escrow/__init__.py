"""
Escrow - simulated payouts from the marketplace escrow wallet
"""

from fruitflow.escrow.payout import PayoutRequest, PayoutResult, simulate_payout

__all__ = ["PayoutRequest", "PayoutResult", "simulate_payout"]
