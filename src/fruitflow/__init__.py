"""
FruitFlow - A fruit trade marketplace with weighted reputations

Suppliers, transporters, customers and managers trade fruit orders. Customer
assessments feed trust-weighted supplier ratings and plain transporter ratings;
persistently low ratings suspend the account automatically.
"""

from fruitflow.fruitflow import FruitFlow

__version__ = "0.1.0"

__all__ = ["FruitFlow", "__version__"]
