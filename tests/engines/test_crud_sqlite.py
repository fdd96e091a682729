"""
End-to-end tests: CrudExecutor over a real ConnectionPool backed by SQLite.

Covers create/read/update/delete outside and inside transactions, automatic
rollback on a failing statement, and borrow counts returning to zero.
"""

import sqlite3

import pytest

from txcrud.core.pool import ConnectionPool
from txcrud.engines.crud import CrudExecutor
from txcrud.exceptions import (
    AlreadyInTransactionError,
    NoActiveTransactionError,
    OperationFailureError,
)


def _count_users(path: str, where: str = "1=1") -> int:
    """Count rows through an independent connection (sees committed data only)."""
    conn = sqlite3.connect(path)
    try:
        return conn.execute(f"SELECT COUNT(*) FROM users WHERE {where}").fetchone()[0]
    finally:
        conn.close()


def test_create_outside_transaction(sqlite_pool: ConnectionPool) -> None:
    crud = CrudExecutor(sqlite_pool)

    n = crud.create("users", ["name", "email"], ["Ann", "a@x.com"])

    assert n == 1
    assert sqlite_pool.stats()["in_use"] == 0
    assert _count_users(sqlite_pool.datasource.database, "email = 'a@x.com'") == 1


def test_read_returns_rows_in_order_with_column_keys(sqlite_pool: ConnectionPool) -> None:
    crud = CrudExecutor(sqlite_pool)
    for name, age in [("Ann", 30), ("Bob", 20), ("Cid", 41)]:
        crud.create("users", ["name", "email", "age"], [name, f"{name.lower()}@x.com", age])

    rows = crud.read("users", None, "age > 25")

    assert [r["name"] for r in rows] == ["Ann", "Cid"]
    assert set(rows[0]) == {"id", "name", "email", "age", "status"}

    rows = crud.read("users", ["name", "age"], None)
    assert rows == [
        {"name": "Ann", "age": 30},
        {"name": "Bob", "age": 20},
        {"name": "Cid", "age": 41},
    ]


def test_delete_then_read_is_empty(sqlite_pool: ConnectionPool) -> None:
    crud = CrudExecutor(sqlite_pool)
    crud.create("users", ["name", "email"], ["X", "x@y.com"])
    crud.create("users", ["name", "email"], ["Z", "z@y.com"])

    assert crud.delete("users", "email = 'x@y.com'") == 1
    assert crud.read("users", None, "email = 'x@y.com'") == []
    assert len(crud.read("users")) == 1


def test_update_changes_matching_rows(sqlite_pool: ConnectionPool) -> None:
    crud = CrudExecutor(sqlite_pool)
    crud.create("users", ["name", "email"], ["Test User", "test@example.com"])

    n = crud.update("users", ["status", "age"], ["active", 33], "email = 'test@example.com'")

    assert n == 1
    assert crud.read("users", ["status", "age"], "email = 'test@example.com'") == [
        {"status": "active", "age": 33}
    ]


def test_committed_transaction_is_visible(sqlite_pool: ConnectionPool) -> None:
    crud = CrudExecutor(sqlite_pool)
    path = sqlite_pool.datasource.database

    crud.begin_transaction()
    crud.create("users", ["name", "email"], ["Test User", "test@example.com"])
    crud.update("users", ["status"], ["active"], "email = 'test@example.com'")
    # uncommitted: the transaction sees it, another connection does not
    assert len(crud.read("users", None, "status = 'active'")) == 1
    assert _count_users(path) == 0
    crud.commit_transaction()

    assert _count_users(path, "status = 'active'") == 1
    assert crud.in_transaction is False
    assert sqlite_pool.stats()["in_use"] == 0


def test_failing_statement_rolls_back_transaction(sqlite_pool: ConnectionPool) -> None:
    crud = CrudExecutor(sqlite_pool)

    crud.begin_transaction()
    crud.create("users", ["name", "email"], ["Test User 2", "test2@example.com"])
    with pytest.raises(OperationFailureError) as exc_info:
        crud.update("users", ["invalid_column"], ["value"], "email = 'test2@example.com'")

    assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
    assert crud.in_transaction is False
    assert sqlite_pool.stats()["in_use"] == 0
    with pytest.raises(NoActiveTransactionError):
        crud.commit_transaction()
    assert crud.read("users", None, "email = 'test2@example.com'") == []


def test_explicit_rollback_discards_changes(sqlite_pool: ConnectionPool) -> None:
    crud = CrudExecutor(sqlite_pool)
    crud.create("users", ["name", "email"], ["Keep", "keep@x.com"])

    crud.begin_transaction()
    crud.delete("users", "email = 'keep@x.com'")
    crud.create("users", ["name", "email"], ["Drop", "drop@x.com"])
    crud.rollback_transaction()
    crud.rollback_transaction()

    assert [r["name"] for r in crud.read("users", ["name"])] == ["Keep"]
    assert sqlite_pool.stats()["in_use"] == 0


def test_begin_twice_keeps_first_transaction(sqlite_pool: ConnectionPool) -> None:
    crud = CrudExecutor(sqlite_pool)
    crud.begin_transaction()
    with pytest.raises(AlreadyInTransactionError):
        crud.begin_transaction()
    assert sqlite_pool.stats()["in_use"] == 1
    crud.rollback_transaction()
    assert sqlite_pool.stats()["in_use"] == 0


def test_transaction_block_commits(sqlite_pool: ConnectionPool) -> None:
    crud = CrudExecutor(sqlite_pool)

    with crud.transaction():
        crud.create("users", ["name", "email"], ["User to Delete", "delete@example.com"])
        crud.delete("users", "email = 'delete@example.com'")
        assert crud.read("users", None, "email = 'delete@example.com'") == []
        crud.create("users", ["name"], ["Survivor"])

    assert _count_users(sqlite_pool.datasource.database) == 1


def test_join_query(sqlite_pool: ConnectionPool) -> None:
    conn = sqlite3.connect(sqlite_pool.datasource.database)
    try:
        conn.execute("CREATE TABLE orders (order_id INTEGER PRIMARY KEY, user_id INTEGER, total REAL)")
        conn.commit()
    finally:
        conn.close()
    crud = CrudExecutor(sqlite_pool)
    crud.create("users", ["id", "name"], [1, "Ann"])
    crud.create("orders", ["order_id", "user_id", "total"], [10, 1, 9.5])
    crud.create("orders", ["order_id", "user_id", "total"], [11, 1, 20.0])

    rows = crud.execute_join_query(
        "SELECT u.name, o.order_id FROM users u JOIN orders o ON u.id = o.user_id ORDER BY o.order_id"
    )
    assert rows == [{"name": "Ann", "order_id": 10}, {"name": "Ann", "order_id": 11}]

    rows = crud.execute_join(
        ["users", "orders"], "users.id = orders.user_id", ["orders.total"], "orders.total > 10"
    )
    assert rows == [{"total": 20.0}]
