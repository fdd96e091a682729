"""
DB connections and the bounded connection pool used by the CRUD core.

Drivers (psycopg, pymysql, trino, sqlite3) are chosen from DataSource.product_type.
"""

from .connect import (
    affected_rows,
    connect,
    cursor_to_dicts,
    execute,
    set_autocommit,
)
from .health import health_check, reset_for_reuse
from .manager import ConnectionPool, Pool, PoolManager, get_pool_manager

__all__ = [
    "connect",
    "execute",
    "cursor_to_dicts",
    "affected_rows",
    "set_autocommit",
    "health_check",
    "reset_for_reuse",
    "Pool",
    "ConnectionPool",
    "PoolManager",
    "get_pool_manager",
]
