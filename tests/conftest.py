import sqlite3
from collections.abc import Generator
from pathlib import Path

import pytest

from txcrud.core.pool import ConnectionPool
from txcrud.models import DataSource, ProductTypeEnum

_USERS_DDL = (
    "CREATE TABLE users ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "name TEXT NOT NULL, "
    "email TEXT, "
    "age INTEGER, "
    "status TEXT)"
)


@pytest.fixture
def sqlite_datasource(tmp_path: Path) -> DataSource:
    """File-backed SQLite database with an empty ``users`` table."""
    path = tmp_path / "crud.db"
    conn = sqlite3.connect(path)
    try:
        conn.execute(_USERS_DDL)
        conn.commit()
    finally:
        conn.close()
    return DataSource(
        name="test-sqlite",
        product_type=ProductTypeEnum.SQLITE,
        database=str(path),
    )


@pytest.fixture
def sqlite_pool(sqlite_datasource: DataSource) -> Generator[ConnectionPool, None, None]:
    pool = ConnectionPool(
        sqlite_datasource,
        max_size=2,
        acquire_timeout=0.5,
        ping_idle_sec=60.0,
    )
    yield pool
    pool.shutdown()
