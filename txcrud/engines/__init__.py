"""
Engines: CRUD executor over pooled connections.
"""

from txcrud.engines.crud import CrudExecutor, TransactionContext

__all__ = [
    "CrudExecutor",
    "TransactionContext",
]
