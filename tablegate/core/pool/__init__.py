"""
Database connection and connection pool for the gateway.

psycopg is installed via pip; a connection dict (host, port, database, ...) is enough.
"""

from .connect import connect, cursor_to_dicts, execute
from .health import health_check
from .manager import ConnectionPool, PoolClosedError

__all__ = [
    "connect",
    "execute",
    "cursor_to_dicts",
    "health_check",
    "ConnectionPool",
    "PoolClosedError",
]
