"""
Bounded connection pool per DataSource.

ConnectionPool implements the capability the CRUD core needs
(acquire / release / shutdown). PoolManager keeps one ConnectionPool per
datasource id behind a thread-safe singleton.

Includes health-check on checkout, max-age eviction, and a blocking acquire
with timeout when every connection is checked out.
"""

import logging
import threading
import time
import uuid
from typing import Any, NamedTuple, Protocol

from txcrud.core.config import settings
from txcrud.exceptions import ConnectionUnavailableError, PoolExhaustedError
from txcrud.models import DataSource, ProductTypeEnum

from .connect import connect
from .health import health_check, reset_for_reuse

_log = logging.getLogger(__name__)


class Pool(Protocol):
    """What the CRUD core needs from a pool."""

    def acquire(self) -> Any: ...

    def release(self, conn: Any) -> None: ...

    def shutdown(self) -> None: ...


class _PoolEntry(NamedTuple):
    conn: Any
    created_at: float  # time.monotonic() when the connection was opened
    last_used: float   # time.monotonic() when last returned to pool


class ConnectionPool:
    """At most ``max_size`` connections (idle + checked out) to one DataSource."""

    def __init__(
        self,
        datasource: DataSource,
        *,
        max_size: int | None = None,
        max_age: float | None = None,
        acquire_timeout: float | None = None,
        ping_idle_sec: float | None = None,
    ) -> None:
        self._datasource = datasource
        self._product_type = ProductTypeEnum(datasource.product_type)
        self._max_size = max_size if max_size is not None else settings.DB_POOL_MAX_SIZE
        self._max_age = max_age if max_age is not None else settings.DB_POOL_MAX_AGE_SEC
        self._acquire_timeout = (
            acquire_timeout
            if acquire_timeout is not None
            else settings.DB_POOL_ACQUIRE_TIMEOUT
        )
        self._ping_idle_sec = (
            ping_idle_sec if ping_idle_sec is not None else settings.DB_POOL_PING_IDLE_SEC
        )
        if self._max_size < 1:
            raise ValueError("max_size must be >= 1")

        self._idle: list[_PoolEntry] = []
        self._created: dict[int, float] = {}  # id(conn) -> created_at, checked-out only
        self._in_use = 0
        self._closed = False
        self._cond = threading.Condition()

    @property
    def datasource(self) -> DataSource:
        return self._datasource

    @property
    def product_type(self) -> ProductTypeEnum:
        return self._product_type

    def acquire(self) -> Any:
        """Check out a healthy connection, opening one if the pool has room.

        Blocks up to ``acquire_timeout`` seconds when the pool is at capacity.
        """
        deadline = time.monotonic() + self._acquire_timeout
        entry: _PoolEntry | None = None
        with self._cond:
            while True:
                if self._closed:
                    raise ConnectionUnavailableError(
                        f"pool for datasource {self._datasource.name!r} is shut down",
                        operation="acquire",
                    )
                if self._idle:
                    entry = self._idle.pop()
                    self._in_use += 1
                    break
                if self._in_use < self._max_size:
                    self._in_use += 1
                    break
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise PoolExhaustedError(
                        f"no connection available within {self._acquire_timeout}s "
                        f"(max_size={self._max_size})",
                        operation="acquire",
                    )
                self._cond.wait(remaining)

        # The slot is reserved; health checks and connect happen outside the lock.
        if entry is not None:
            if self._usable(entry):
                with self._cond:
                    self._created[id(entry.conn)] = entry.created_at
                return entry.conn
            self._close_quiet(entry.conn)

        try:
            conn = connect(self._datasource)
        except Exception as e:
            self._free_slot()
            _log.error("Failed to open connection for %s: %s", self._datasource.name, e)
            raise ConnectionUnavailableError(
                f"could not connect to datasource {self._datasource.name!r}: {e}",
                operation="acquire",
                cause=e,
            ) from e
        with self._cond:
            self._created[id(conn)] = time.monotonic()
        return conn

    def release(self, conn: Any) -> None:
        """Return a checked-out connection (or close it if expired / pool shut down)."""
        with self._cond:
            created_at = self._created.pop(id(conn), None)
        if created_at is None:
            _log.warning("release() of a connection not checked out from this pool")
            self._close_quiet(conn)
            return

        try:
            reset_for_reuse(conn, self._product_type)
        except Exception as e:
            _log.warning("Discarding connection that failed reset on release: %s", e)
            self._close_quiet(conn)
            self._free_slot()
            return

        keep = False
        with self._cond:
            self._in_use -= 1
            expired = (time.monotonic() - created_at) > self._max_age
            if not self._closed and not expired:
                self._idle.append(
                    _PoolEntry(conn=conn, created_at=created_at, last_used=time.monotonic())
                )
                keep = True
            self._cond.notify()
        if not keep:
            self._close_quiet(conn)

    def shutdown(self) -> None:
        """Close idle connections and refuse new checkouts.

        Connections still checked out are closed when they are released.
        """
        with self._cond:
            self._closed = True
            entries = self._idle
            self._idle = []
            self._cond.notify_all()
        for e in entries:
            self._close_quiet(e.conn)
        _log.info("Connection pool for %s shut down", self._datasource.name)

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""
        with self._cond:
            return {
                "in_use": self._in_use,
                "idle": len(self._idle),
                "max_size": self._max_size,
            }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _usable(self, entry: _PoolEntry) -> bool:
        now = time.monotonic()
        if (now - entry.created_at) > self._max_age:
            return False
        if (now - entry.last_used) > self._ping_idle_sec:
            return health_check(entry.conn, self._product_type)
        return True

    def _free_slot(self) -> None:
        with self._cond:
            self._in_use -= 1
            self._cond.notify()

    @staticmethod
    def _close_quiet(conn: Any) -> None:
        try:
            conn.close()
        except Exception as e:
            _log.debug("Error closing connection: %s", e)


class PoolManager:
    """One ConnectionPool per datasource id."""

    def __init__(self) -> None:
        self._pools: dict[uuid.UUID, ConnectionPool] = {}
        self._lock = threading.Lock()

    def pool_for(self, datasource: DataSource) -> ConnectionPool:
        """Return the pool for *datasource*, creating it on first use."""
        with self._lock:
            pool = self._pools.get(datasource.id)
            if pool is None:
                pool = ConnectionPool(datasource)
                self._pools[datasource.id] = pool
                _log.info("Connection pool initialized for %s", datasource.name)
            return pool

    def dispose(self, datasource_id: uuid.UUID | None = None) -> None:
        """Shut down pools. ``None`` = dispose all pools."""
        with self._lock:
            if datasource_id is not None:
                pool = self._pools.pop(datasource_id, None)
                pools = [pool] if pool is not None else []
            else:
                pools = list(self._pools.values())
                self._pools.clear()
        for p in pools:
            p.shutdown()

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""
        with self._lock:
            pools = list(self._pools.values())
        per_pool = [p.stats() for p in pools]
        return {
            "datasources": len(pools),
            "in_use": sum(s["in_use"] for s in per_pool),
            "idle_connections": sum(s["idle"] for s in per_pool),
        }


_pool_manager: PoolManager | None = None
_pool_lock = threading.Lock()


def get_pool_manager() -> PoolManager:
    """Return the singleton PoolManager (thread-safe double-checked locking)."""
    global _pool_manager
    if _pool_manager is None:
        with _pool_lock:
            if _pool_manager is None:
                _pool_manager = PoolManager()
    return _pool_manager
