#!/usr/bin/env python3
"""
Walk through the CRUD executor against a real database.

Runs create / read / update / delete, a committed transaction, a transaction
that fails on an invalid column (and is rolled back automatically), a join
and a stored procedure call.

Usage:
  python scripts/crud_demo.py                 # DB_* settings from env / .env
  python scripts/crud_demo.py --sqlite demo.db

The demo expects a ``users`` table (id, name, email, age, status) and, for the
join example, an ``orders`` table (order_id, user_id, total). With --sqlite
both are created if missing.
"""

import argparse
import logging
import sys

from txcrud import CrudError, CrudExecutor, DataSource, ProductTypeEnum, get_pool_manager
from txcrud.core.config import settings
from txcrud.core.log_format import configure_logging
from txcrud.core.pool import connect

_log = logging.getLogger("txcrud.demo")

_SQLITE_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS users ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, email TEXT, age INTEGER, status TEXT)",
    "CREATE TABLE IF NOT EXISTS orders ("
    "order_id INTEGER PRIMARY KEY AUTOINCREMENT, user_id INTEGER, total REAL)",
)


def _datasource(args: argparse.Namespace) -> DataSource:
    if args.sqlite:
        return DataSource(
            name="demo-sqlite",
            product_type=ProductTypeEnum.SQLITE,
            database=args.sqlite,
        )
    return settings.datasource()


def _create_sqlite_schema(ds: DataSource) -> None:
    conn = connect(ds)
    try:
        for ddl in _SQLITE_SCHEMA:
            conn.execute(ddl)
    finally:
        conn.close()


def run_basic(crud: CrudExecutor) -> None:
    n = crud.create("users", ["name", "email", "age"], ["John Doe", "john@example.com", 30])
    _log.info("Record created (%d)", n)

    users = crud.read("users", ["id", "name", "email"], "age > 25")
    _log.info("Retrieved %d users", len(users))
    for user in users:
        print(user)

    crud.update("users", ["email"], ["new.email@example.com"], "email = 'john@example.com'")
    crud.update(
        "users",
        ["email", "status"],
        ["new.email@example.com", "inactive"],
        "name = 'John Doe'",
    )
    crud.delete("users", "email = 'new.email@example.com'")


def run_transactions(crud: CrudExecutor) -> None:
    print("Testing successful transaction...")
    try:
        with crud.transaction():
            crud.create("users", ["name", "email"], ["Test User", "test@example.com"])
            crud.update("users", ["status"], ["active"], "email = 'test@example.com'")
        print("Transaction committed successfully")
    except CrudError as e:
        print(f"Transaction failed: {e}")

    print("\nTesting failed transaction...")
    try:
        crud.begin_transaction()
        crud.create("users", ["name", "email"], ["Test User 2", "test2@example.com"])
        crud.update("users", ["invalid_column"], ["value"], "email = 'test2@example.com'")
        crud.commit_transaction()
    except CrudError as e:
        crud.rollback_transaction()
        print(f"Transaction rolled back as expected: {e}")
    rows = crud.read("users", None, "email = 'test2@example.com'")
    print(f"Rows left behind by the failed transaction: {len(rows)}")

    print("\nTesting delete inside a transaction...")
    with crud.transaction():
        crud.create("users", ["name", "email"], ["User to Delete", "delete@example.com"])
        crud.delete("users", "email = 'delete@example.com'")
        gone = not crud.read("users", None, "email = 'delete@example.com'")
    print("User deleted successfully." if gone else "User deletion failed.")


def run_join(crud: CrudExecutor) -> None:
    rows = crud.execute_join_query(
        "SELECT u.name, o.order_id FROM users u JOIN orders o ON u.id = o.user_id"
    )
    print(f"Join query results: {rows}")
    rows = crud.execute_join(
        ["users", "orders"], ["users.id = orders.user_id"], ["users.name", "orders.total"]
    )
    print(f"Join query returned {len(rows)} records")


def main() -> int:
    parser = argparse.ArgumentParser(description="CRUD executor demo.")
    parser.add_argument("--sqlite", help="Path of a SQLite database to use instead of DB_* settings")
    parser.add_argument(
        "--procedure",
        default="get_user_details",
        help="Stored procedure to call with a single user id (skipped for SQLite)",
    )
    args = parser.parse_args()
    configure_logging()

    ds = _datasource(args)
    pm = get_pool_manager()
    crud = CrudExecutor.for_datasource(ds, pool_manager=pm)
    try:
        if ds.product_type == ProductTypeEnum.SQLITE:
            _create_sqlite_schema(ds)
        run_basic(crud)
        run_transactions(crud)
        run_join(crud)
        if ds.product_type != ProductTypeEnum.SQLITE:
            print(f"Stored procedure result: {crud.execute_stored_procedure(args.procedure, 1)}")
    except CrudError as e:
        _log.error("CRUD operation failed: %s", e, exc_info=True)
        return 1
    finally:
        pm.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
