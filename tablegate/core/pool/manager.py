"""
Connection pool for the gateway database.

One pool per gateway instance. Reuses connections to avoid open/close on every
request. Includes health-check on checkout, max-age eviction and a bound on the
number of connections open at once (callers block until one is released).
"""

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, NamedTuple

from .connect import connect

_log = logging.getLogger(__name__)

_DEFAULT_POOL_SIZE = 5
_DEFAULT_MAX_CONNECTIONS = 20
_DEFAULT_MAX_AGE_SEC = 600  # 10 minutes

_PING_IDLE_THRESHOLD = 30.0  # only ping connections idle longer than this (seconds)


class PoolClosedError(RuntimeError):
    """Raised when a connection is requested from a disposed pool."""


class _PoolEntry(NamedTuple):
    conn: Any
    created_at: float  # time.monotonic() when the connection was opened
    last_used: float   # time.monotonic() when last returned to pool


class ConnectionPool:
    """Bounded connection pool with health-check and max-age."""

    def __init__(
        self,
        config: Any,
        *,
        pool_size: int = _DEFAULT_POOL_SIZE,
        max_connections: int = _DEFAULT_MAX_CONNECTIONS,
        max_age: float = _DEFAULT_MAX_AGE_SEC,
    ) -> None:
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self._config = config
        self._idle: list[_PoolEntry] = []
        # created_at of every connection handed out, keyed by id(conn)
        self._born: dict[int, float] = {}
        self._lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(max_connections)
        self._pool_size = min(pool_size, max_connections)
        self._max_connections = max_connections
        self._max_age = float(max_age)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def get_connection(self) -> Any:
        """Get a healthy connection (from the idle list or freshly opened).

        Blocks while ``max_connections`` connections are checked out.
        """
        if self._closed:
            raise PoolClosedError("connection pool is closed")
        self._slots.acquire()
        try:
            return self._checkout()
        except BaseException:
            self._slots.release()
            raise

    def release(self, conn: Any) -> None:
        """Return a connection to the pool (or close it if the pool is full or closed)."""
        try:
            with self._lock:
                created_at = self._born.pop(id(conn), time.monotonic())
                keep = (
                    not self._closed
                    and len(self._idle) < self._pool_size
                    and not getattr(conn, "closed", False)
                )
                if keep:
                    self._idle.append(
                        _PoolEntry(conn=conn, created_at=created_at, last_used=time.monotonic())
                    )
            if not keep:
                self._close_quiet(conn)
        finally:
            self._slots.release()

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """``with pool.connection() as conn:`` checkout that always releases."""
        conn = self.get_connection()
        try:
            yield conn
        finally:
            self.release(conn)

    def dispose(self) -> None:
        """Close idle connections and refuse new checkouts."""
        with self._lock:
            self._closed = True
            entries = list(self._idle)
            self._idle.clear()
        for e in entries:
            self._close_quiet(e.conn)
        _log.debug("Disposed connection pool (%d idle connections closed)", len(entries))

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""
        with self._lock:
            return {
                "idle_connections": len(self._idle),
                "in_use_connections": len(self._born),
                "max_connections": self._max_connections,
            }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _checkout(self) -> Any:
        now = time.monotonic()
        while True:
            entry = self._pop()
            if entry is None:
                break
            if self._is_expired(entry):
                _log.debug("Evicting connection older than %.0fs", self._max_age)
                self._close_quiet(entry.conn)
                continue
            idle_sec = now - entry.last_used
            if idle_sec > _PING_IDLE_THRESHOLD and not self._is_alive(entry.conn):
                _log.debug("Evicting dead connection idle for %.0fs", idle_sec)
                self._close_quiet(entry.conn)
                continue
            self._track(entry.conn, entry.created_at)
            return entry.conn

        conn = connect(self._config)
        self._track(conn, time.monotonic())
        return conn

    def _track(self, conn: Any, created_at: float) -> None:
        with self._lock:
            self._born[id(conn)] = created_at

    def _pop(self) -> _PoolEntry | None:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return None

    def _is_expired(self, entry: _PoolEntry) -> bool:
        return (time.monotonic() - entry.created_at) > self._max_age

    @staticmethod
    def _is_alive(conn: Any) -> bool:
        """Lightweight ping: attempt a no-op query to detect broken connections."""
        try:
            cur = conn.cursor()
            cur.execute("SELECT 1")
            cur.close()
            return True
        except Exception:
            return False

    @staticmethod
    def _close_quiet(conn: Any) -> None:
        try:
            conn.close()
        except Exception:
            pass
