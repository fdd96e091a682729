"""
CrudExecutor: create / read / update / delete / join / stored procedure.

Every operation runs on the active transaction's connection when there is
one, otherwise on a connection borrowed from the pool for that call only and
released in ``finally``. A driver failure inside a transaction rolls the
transaction back before the error reaches the caller, as
OperationFailureError with the driver exception on ``__cause__``.

Trust boundary: ``where`` predicates, join conditions and raw join queries
are inserted into the SQL verbatim. Only column values and procedure
arguments are bound as parameters.
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from txcrud.core.pool import (
    Pool,
    PoolManager,
    affected_rows,
    cursor_to_dicts,
    execute,
    get_pool_manager,
)
from txcrud.engines.crud.builder import (
    build_delete,
    build_insert,
    build_join,
    build_procedure_call,
    build_select,
    build_update,
)
from txcrud.engines.crud.transaction import TransactionContext
from txcrud.exceptions import (
    CleanupFailureError,
    InvalidArgumentError,
    OperationFailureError,
)
from txcrud.models import PARAMSTYLE, DataSource, ProductTypeEnum
from txcrud.types import ResultSet, Statement, Value

_log = logging.getLogger(__name__)


class CrudExecutor:
    """
    Transaction-aware CRUD operations over a pool.

    One executor holds at most one transaction; do not share an executor
    between threads. Independent executors may share a pool.
    """

    def __init__(
        self,
        pool: Pool,
        *,
        product_type: ProductTypeEnum | str | None = None,
    ) -> None:
        pt = product_type or getattr(pool, "product_type", None)
        if pt is None:
            raise ValueError("product_type is required when the pool does not expose one")
        self._pool = pool
        self._product_type = ProductTypeEnum(pt)
        self._paramstyle = PARAMSTYLE[self._product_type]
        self._tx = TransactionContext(pool, product_type=self._product_type)

    @classmethod
    def for_datasource(
        cls,
        datasource: DataSource,
        *,
        pool_manager: PoolManager | None = None,
    ) -> "CrudExecutor":
        """Executor over the shared pool for *datasource*."""
        pm = pool_manager or get_pool_manager()
        return cls(pm.pool_for(datasource), product_type=datasource.product_type)

    @property
    def product_type(self) -> ProductTypeEnum:
        return self._product_type

    @property
    def in_transaction(self) -> bool:
        return self._tx.active

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin_transaction(self) -> None:
        self._tx.begin()

    def commit_transaction(self) -> None:
        self._tx.commit()

    def rollback_transaction(self) -> None:
        self._tx.rollback()

    @contextmanager
    def transaction(self) -> Iterator["CrudExecutor"]:
        """Begin; commit when the block exits normally, roll back if it raises."""
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            self.rollback_transaction()
            raise
        self.commit_transaction()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(self, table: str, columns: Sequence[str], values: Sequence[Value]) -> int:
        """Insert one row; returns the affected row count."""
        stmt = build_insert(table, columns, values, paramstyle=self._paramstyle)
        return self._run("create", table, stmt, fetch=False)

    def read(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        where: str | None = None,
    ) -> ResultSet:
        """Rows of *table* (all columns when *columns* is None) matching the raw *where*."""
        stmt = build_select(table, columns, where)
        return self._run("read", table, stmt, fetch=True)

    def update(
        self,
        table: str,
        columns: Sequence[str],
        values: Sequence[Value],
        where: str,
    ) -> int:
        stmt = build_update(table, columns, values, where, paramstyle=self._paramstyle)
        return self._run("update", table, stmt, fetch=False)

    def delete(self, table: str, where: str) -> int:
        stmt = build_delete(table, where)
        return self._run("delete", table, stmt, fetch=False)

    def execute_join_query(self, query: str) -> ResultSet:
        """Run a complete, caller-written query (trusted text) and return its rows."""
        if query is None or not query.strip():
            raise InvalidArgumentError("join query must not be empty", operation="join")
        return self._run("join", None, Statement(query.strip()), fetch=True)

    def execute_join(
        self,
        tables: Sequence[str],
        join_conditions: Sequence[str] | str,
        columns: Sequence[str] | None = None,
        where: str | None = None,
    ) -> ResultSet:
        """Build ``SELECT ... FROM t1 JOIN t2 ON ...`` from parts and run it."""
        stmt = build_join(tables, join_conditions, columns, where)
        return self._run("join", ", ".join(tables), stmt, fetch=True)

    def execute_stored_procedure(self, name: str, *params: Value) -> ResultSet:
        """``CALL name(...)`` with *params* bound in order.

        Returns the procedure's rows when it produces a result set, else [].
        """
        stmt = build_procedure_call(name, params, paramstyle=self._paramstyle)
        return self._run("procedure", name, stmt, fetch=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        table: str | None,
        stmt: Statement,
        *,
        fetch: bool,
    ) -> Any:
        borrowed = not self._tx.active
        conn = self._pool.acquire() if borrowed else self._tx.connection
        try:
            cur = execute(conn, stmt.sql, stmt.params, product_type=self._product_type)
            try:
                result: Any = cursor_to_dicts(cur) if fetch else affected_rows(cur)
            finally:
                cur.close()
        except Exception as e:
            _log.error(
                "%s failed: %s. SQL: %s",
                operation,
                e,
                stmt.sql,
                extra={"operation": operation, "table": table, "error": str(e)},
            )
            if self._tx.active:
                self._tx.rollback()
            raise OperationFailureError(
                str(e), operation=operation, table=table, cause=e
            ) from e
        finally:
            if borrowed:
                self._release(conn)

        count = len(result) if fetch else result
        _log.info(
            "%s succeeded on %s (%d row(s))",
            operation,
            table or "query",
            count,
            extra={"operation": operation, "table": table, "count": count},
        )
        return result

    def _release(self, conn: Any) -> None:
        try:
            self._pool.release(conn)
        except Exception as e:
            err = CleanupFailureError(str(e), operation="release", cause=e)
            _log.warning("Error releasing connection: %s", err, extra={"operation": "release"})
