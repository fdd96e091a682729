"""
Domain errors for the CRUD core.

Driver and pool failures are re-raised as one of these so callers only deal
with a single error family. The original exception is kept on ``__cause__``.
"""


class CrudError(Exception):
    """Base error for every failure surfaced by txcrud."""

    def __init__(
        self,
        detail: str,
        *,
        operation: str | None = None,
        table: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.detail = detail
        self.operation = operation
        self.table = table
        if operation and table:
            msg = f"[{table}] {operation} failed: {detail}"
        elif operation:
            msg = f"{operation} failed: {detail}"
        else:
            msg = detail
        super().__init__(msg)
        if cause is not None:
            self.__cause__ = cause


class InvalidArgumentError(CrudError, ValueError):
    """Bad input (column/value arity, empty names). Raised before any I/O."""


class AlreadyInTransactionError(CrudError):
    """begin() while a transaction is already active."""


class NoActiveTransactionError(CrudError):
    """commit() without an active transaction."""


class PoolExhaustedError(CrudError):
    """No connection became available within the acquire timeout."""


class ConnectionUnavailableError(CrudError):
    """Pool shut down, or the driver could not open a connection."""


class OperationFailureError(CrudError):
    """Driver-level execution failure (wraps the driver exception)."""


class CleanupFailureError(CrudError):
    """Failure while rolling back or releasing a connection. Logged, never raised."""
