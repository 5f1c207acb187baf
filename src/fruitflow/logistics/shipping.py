"""
Tiered Shipping Price

A transporter's price for a route is a flat fee for the first 100 km, then a
per-km price up to 500 km, then a second per-km price for everything beyond.

Fun fact: Medieval river tolls on the Rhine were charged per "Zollstelle"
passed, so merchants paid by distance long before odometers existed.
"""

from fruitflow.accounts.models import ShippingRates

TIER1_LIMIT_KM = 100.0
TIER2_LIMIT_KM = 500.0
TIER3_LIMIT_KM = 1000.0


def calculate_tiered_shipping_price(
    distance_km: float, rates: ShippingRates | None
) -> float | None:
    """
    Price a route from a transporter's rates

    Args:
        distance_km: Route length in km
        rates: Transporter rates; all three tiers must be set

    Returns:
        Price, 0 for non-positive distances, or None when rates are incomplete

    Example:
        >>> rates = ShippingRates(tier1_flat_price=50, tier2_price_per_km=1, tier3_price_per_km=0.5)
        >>> calculate_tiered_shipping_price(300, rates)
        250.0
    """
    if rates is None or not rates.is_complete():
        return None

    tier1 = float(rates.tier1_flat_price)
    tier2 = float(rates.tier2_price_per_km)
    tier3 = float(rates.tier3_price_per_km)

    if distance_km <= 0:
        return 0.0
    if distance_km <= TIER1_LIMIT_KM:
        return tier1

    price = tier1
    if distance_km <= TIER2_LIMIT_KM:
        return price + (distance_km - TIER1_LIMIT_KM) * tier2

    price += (TIER2_LIMIT_KM - TIER1_LIMIT_KM) * tier2
    if distance_km <= TIER3_LIMIT_KM:
        return price + (distance_km - TIER2_LIMIT_KM) * tier3

    # Beyond 1000 km the tier3 rate keeps applying
    price += (TIER3_LIMIT_KM - TIER2_LIMIT_KM) * tier3
    return price + (distance_km - TIER3_LIMIT_KM) * tier3
