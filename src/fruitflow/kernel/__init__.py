"""
Kernel - Core marketplace infrastructure

The kernel provides the foundations every domain module builds on: the
document store, errors, structured logging, metrics, time and the reputation
policy.

Fun fact: The word "kernel" comes from the Old English "cyrnel", a little
seed. Fitting, for a fruit marketplace.
"""

from fruitflow.kernel.document_store import SQLiteDocumentStore
from fruitflow.kernel.errors import (
    DataSourceUnavailable,
    DocumentStoreError,
    FruitFlowError,
    InvariantViolation,
)
from fruitflow.kernel.ids import generate_id, generate_mock_tx_hash
from fruitflow.kernel.policy import ReputationPolicy
from fruitflow.kernel.time import RealTimeProvider, TestTimeProvider, TimeProvider

__all__ = [
    # Storage
    "SQLiteDocumentStore",
    # IDs
    "generate_id",
    "generate_mock_tx_hash",
    # Time
    "TimeProvider",
    "RealTimeProvider",
    "TestTimeProvider",
    # Policy
    "ReputationPolicy",
    # Errors
    "FruitFlowError",
    "DocumentStoreError",
    "DataSourceUnavailable",
    "InvariantViolation",
]
