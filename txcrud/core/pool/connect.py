"""
DB connection helpers: open a driver connection, toggle autocommit, execute, map rows.

Uses psycopg (PostgreSQL), pymysql (MySQL), trino (Trino) or sqlite3 (SQLite)
based on product_type. Connections are opened in autocommit mode; the
transaction context switches autocommit off for the lifetime of a transaction.
"""

import logging
import sqlite3
from typing import Any

import psycopg
import pymysql
from trino.auth import BasicAuthentication
from trino.dbapi import connect as trino_connect

from txcrud.core.config import settings
from txcrud.exceptions import InvalidArgumentError
from txcrud.models import ProductTypeEnum

_log = logging.getLogger(__name__)

_DEFAULT_PORTS = {
    ProductTypeEnum.POSTGRES: 5432,
    ProductTypeEnum.MYSQL: 3306,
    ProductTypeEnum.TRINO: 8080,
}


def _get(datasource: Any, key: str) -> Any:
    """Get attribute or dict key from DataSource, dict, or Pydantic model."""
    if isinstance(datasource, dict):
        return datasource.get(key)
    return getattr(datasource, key, None)


def _resolve_product_type(
    datasource: Any, product_type: ProductTypeEnum | None
) -> ProductTypeEnum:
    pt = product_type or _get(datasource, "product_type")
    if pt is None:
        raise ValueError("product_type is required (from datasource or argument)")
    if isinstance(pt, str):
        return ProductTypeEnum(pt)
    return pt


def connect(
    datasource: Any,
    *,
    product_type: ProductTypeEnum | None = None,
) -> Any:
    """
    Open an autocommit connection from a DataSource or connection dict.

    - datasource: DataSource model or dict with host, port, database, username,
      password, and product_type (or pass product_type=).
    - SQLite only needs ``database`` (a file path or ``:memory:``).
    """
    pt = _resolve_product_type(datasource, product_type)
    database = _get(datasource, "database")
    if database is None:
        raise ValueError("datasource must provide database")

    timeout = settings.DB_CONNECT_TIMEOUT

    if pt == ProductTypeEnum.SQLITE:
        # isolation_level=None -> autocommit; check_same_thread off since pooled
        # connections may be handed to another thread.
        return sqlite3.connect(
            database,
            timeout=timeout,
            isolation_level=None,
            check_same_thread=False,
        )

    host = _get(datasource, "host")
    port = _get(datasource, "port") or _DEFAULT_PORTS[pt]
    username = _get(datasource, "username")
    password = _get(datasource, "password")

    for name, val in [("host", host), ("username", username)]:
        if val is None:
            raise ValueError(f"datasource must provide {name}")
    password = password if password is not None else ""

    if pt == ProductTypeEnum.POSTGRES:
        return psycopg.connect(
            host=host,
            port=int(port),
            dbname=database,
            user=username,
            password=password,
            connect_timeout=timeout,
            autocommit=True,
        )
    if pt == ProductTypeEnum.MYSQL:
        return pymysql.connect(
            host=host,
            port=int(port),
            database=database,
            user=username,
            password=password,
            connect_timeout=timeout,
            autocommit=True,
        )
    if pt == ProductTypeEnum.TRINO:
        use_ssl = _get(datasource, "use_ssl") in (True, "true", "1")
        if use_ssl and not (password and password.strip()):
            raise ValueError("Password is required for Trino when using SSL/HTTPS.")
        return trino_connect(
            host=host,
            port=int(port),
            user=username,
            auth=BasicAuthentication(username, password) if use_ssl else None,
            catalog=database,
            schema="default",
            source="txcrud",
            http_scheme="https" if use_ssl else "http",
            request_timeout=timeout,
        )
    raise ValueError(f"Unsupported product_type: {pt}")


def set_autocommit(conn: Any, enabled: bool, product_type: ProductTypeEnum) -> None:
    """Switch a driver connection's autocommit mode on or off."""
    if product_type == ProductTypeEnum.POSTGRES:
        conn.autocommit = enabled
    elif product_type == ProductTypeEnum.MYSQL:
        conn.autocommit(enabled)
    elif product_type == ProductTypeEnum.SQLITE:
        # None = autocommit; "DEFERRED" = implicit BEGIN before DML
        conn.isolation_level = None if enabled else "DEFERRED"
    elif product_type == ProductTypeEnum.TRINO:
        if not enabled:
            raise InvalidArgumentError(
                "Trino connections are autocommit only; transactions are not supported",
                operation="begin",
            )
    else:
        raise ValueError(f"Unsupported product_type: {product_type}")


def execute(
    conn: Any,
    sql: str,
    params: dict | list | tuple | None = None,
    *,
    product_type: ProductTypeEnum | None = None,
) -> Any:
    """
    Execute SQL and return the cursor. Caller uses cursor_to_dicts(cursor) or cursor.rowcount.

    - product_type: used for DB_STATEMENT_TIMEOUT (Postgres: statement_timeout,
      MySQL: max_execution_time). When set, applies timeout in ms before the query and resets after.
    """
    timeout_sec = settings.DB_STATEMENT_TIMEOUT
    apply_timeout = (
        timeout_sec is not None
        and timeout_sec > 0
        and product_type in (ProductTypeEnum.POSTGRES, ProductTypeEnum.MYSQL)
    )

    if apply_timeout:
        timeout_ms = int(timeout_sec * 1000)
        cur_set = conn.cursor()
        try:
            if product_type == ProductTypeEnum.POSTGRES:
                cur_set.execute("SET statement_timeout = %s", (str(timeout_ms),))
            else:
                cur_set.execute("SET SESSION max_execution_time = %s", (timeout_ms,))
        finally:
            cur_set.close()

    cur = conn.cursor()
    try:
        if params:
            cur.execute(sql, params)
        else:
            cur.execute(sql)
    finally:
        if apply_timeout:
            # Fails inside an aborted Postgres transaction; must not mask the query error.
            try:
                cur_reset = conn.cursor()
                if product_type == ProductTypeEnum.POSTGRES:
                    cur_reset.execute("SET statement_timeout = 0")
                else:
                    cur_reset.execute("SET SESSION max_execution_time = 0")
                cur_reset.close()
            except Exception as e:
                _log.debug("statement timeout reset failed: %s", e)

    return cur


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts keyed by driver-reported column names."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]


def affected_rows(cursor: Any) -> int:
    """cursor.rowcount, normalised to 0 when the driver reports None or -1."""
    rc = cursor.rowcount
    if rc is None or rc < 0:
        return 0
    return rc
