"""
Tests for tiered shipping prices

Rates used throughout: 50 flat up to 100 km, 1.0/km to 500 km, 0.5/km beyond.
"""

import pytest

from fruitflow.accounts.models import ShippingRates
from fruitflow.fruitflow import FruitFlow
from fruitflow.kernel.errors import IncompleteShippingRates
from fruitflow.logistics.shipping import calculate_tiered_shipping_price

RATES = ShippingRates(tier1_flat_price=50, tier2_price_per_km=1.0, tier3_price_per_km=0.5)


@pytest.mark.parametrize(
    "distance,expected",
    [
        (-5, 0.0),
        (0, 0.0),
        (40, 50.0),
        (100, 50.0),
        (101, 51.0),
        (300, 250.0),
        (500, 450.0),
        (800, 600.0),
        (1000, 700.0),
        (1200, 800.0),
    ],
)
def test_tiers(distance: float, expected: float) -> None:
    assert calculate_tiered_shipping_price(distance, RATES) == pytest.approx(expected)


def test_incomplete_rates_give_no_price() -> None:
    partial = ShippingRates(tier1_flat_price=50, tier2_price_per_km=1.0)

    assert calculate_tiered_shipping_price(300, partial) is None
    assert calculate_tiered_shipping_price(300, None) is None


def test_quote_uses_transporter_rates(marketplace: FruitFlow) -> None:
    assert marketplace.quote_shipping("truckco", 800) == pytest.approx(600.0)


def test_quote_with_incomplete_rates(marketplace: FruitFlow) -> None:
    marketplace.store.update("users", "truckco", {"shipping_rates": None})

    with pytest.raises(IncompleteShippingRates):
        marketplace.quote_shipping("truckco", 100)
