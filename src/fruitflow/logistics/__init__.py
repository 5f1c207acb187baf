"""
Logistics - shipping prices and route distances
"""

from fruitflow.logistics.distance import DistanceEstimate, calculate_distance
from fruitflow.logistics.shipping import calculate_tiered_shipping_price

__all__ = [
    "DistanceEstimate",
    "calculate_distance",
    "calculate_tiered_shipping_price",
]
