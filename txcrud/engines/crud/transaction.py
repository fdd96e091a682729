"""
Single-slot transaction holder for a CrudExecutor.

IDLE -> begin() -> ACTIVE -> commit() | rollback() -> IDLE

While ACTIVE the context owns one pooled connection with autocommit off.
commit() and rollback() always run the same cleanup (autocommit back on,
release to the pool, clear state), whatever happened before it, so the
connection can never leak. When the transaction did not end cleanly, pending
work is rolled back before autocommit is restored; a connection that cannot
roll back is closed instead. Not thread-safe: one caller drives a context.
"""

import logging
from typing import Any

from txcrud.core.pool import Pool, set_autocommit
from txcrud.exceptions import (
    AlreadyInTransactionError,
    CleanupFailureError,
    NoActiveTransactionError,
    OperationFailureError,
)
from txcrud.models import ProductTypeEnum

_log = logging.getLogger(__name__)


class TransactionContext:
    def __init__(self, pool: Pool, *, product_type: ProductTypeEnum) -> None:
        self._pool = pool
        self._product_type = ProductTypeEnum(product_type)
        self._conn: Any = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def connection(self) -> Any:
        """The transaction's connection, or None when idle."""
        return self._conn

    def begin(self) -> None:
        if self._active:
            raise AlreadyInTransactionError(
                "Transaction already in progress", operation="begin"
            )
        conn = self._pool.acquire()
        try:
            set_autocommit(conn, False, self._product_type)
        except Exception:
            self._pool.release(conn)
            raise
        self._conn = conn
        self._active = True
        _log.info("Transaction started", extra={"operation": "begin"})

    def commit(self) -> None:
        if not self._active:
            raise NoActiveTransactionError(
                "No active transaction to commit", operation="commit"
            )
        settled = False
        try:
            self._conn.commit()
            settled = True
        except Exception as e:
            _log.error("Transaction commit failed: %s", e, extra={"operation": "commit"})
            raise OperationFailureError(
                f"commit failed: {e}", operation="commit", cause=e
            ) from e
        finally:
            self._cleanup(settled)
        _log.info("Transaction committed successfully", extra={"operation": "commit"})

    def rollback(self) -> None:
        """Roll back the active transaction. No-op when idle; never raises."""
        if not self._active:
            return
        settled = False
        try:
            self._conn.rollback()
            settled = True
            _log.info("Transaction rolled back", extra={"operation": "rollback"})
        except Exception as e:
            _log.error(
                "Error during transaction rollback: %s",
                e,
                exc_info=True,
                extra={"operation": "rollback"},
            )
        finally:
            self._cleanup(settled)

    def _cleanup(self, settled: bool) -> None:
        """Hand the connection back. *settled*: commit or rollback went through."""
        conn = self._conn
        self._conn = None
        self._active = False
        if conn is None:
            return
        restore = True
        if not settled:
            # Turning autocommit back on commits pending work (sqlite3), so it
            # must be rolled back first or the connection dropped.
            try:
                conn.rollback()
            except Exception as e:
                self._report_cleanup_failure("discard pending work", e)
                restore = False
                try:
                    conn.close()
                except Exception as close_err:
                    _log.debug("Error closing connection: %s", close_err)
        if restore:
            try:
                set_autocommit(conn, True, self._product_type)
            except Exception as e:
                self._report_cleanup_failure("restore autocommit", e)
        try:
            self._pool.release(conn)
        except Exception as e:
            self._report_cleanup_failure("release connection", e)

    @staticmethod
    def _report_cleanup_failure(step: str, cause: Exception) -> None:
        err = CleanupFailureError(str(cause), operation=step, cause=cause)
        _log.warning("Error cleaning up transaction: %s", err, extra={"operation": step})
