"""
txcrud: transactional CRUD over pooled database connections.
"""

from txcrud.core.pool import ConnectionPool, PoolManager, get_pool_manager
from txcrud.engines.crud import CrudExecutor, TransactionContext
from txcrud.exceptions import (
    AlreadyInTransactionError,
    CleanupFailureError,
    ConnectionUnavailableError,
    CrudError,
    InvalidArgumentError,
    NoActiveTransactionError,
    OperationFailureError,
    PoolExhaustedError,
)
from txcrud.models import DataSource, ProductTypeEnum

__version__ = "0.1.0"

__all__ = [
    "CrudExecutor",
    "TransactionContext",
    "ConnectionPool",
    "PoolManager",
    "get_pool_manager",
    "DataSource",
    "ProductTypeEnum",
    "CrudError",
    "InvalidArgumentError",
    "AlreadyInTransactionError",
    "NoActiveTransactionError",
    "PoolExhaustedError",
    "ConnectionUnavailableError",
    "OperationFailureError",
    "CleanupFailureError",
]
