"""
CRUD engine: SQL builders, transaction context and the executor.
"""

from txcrud.engines.crud.builder import (
    build_delete,
    build_insert,
    build_join,
    build_procedure_call,
    build_select,
    build_update,
)
from txcrud.engines.crud.executor import CrudExecutor
from txcrud.engines.crud.transaction import TransactionContext

__all__ = [
    "CrudExecutor",
    "TransactionContext",
    "build_insert",
    "build_select",
    "build_update",
    "build_delete",
    "build_join",
    "build_procedure_call",
]
