"""
PostgreSQL connection helpers for the table gateway.

Connections are opened with psycopg in autocommit mode: every statement the
gateway runs is its own transaction, nothing is held open between requests.
"""

from typing import Any

import psycopg

_DEFAULT_CONNECT_TIMEOUT = 10


def _get(config: Any, key: str) -> Any:
    """Get attribute or dict key from a dict, Settings or Pydantic model."""
    if isinstance(config, dict):
        return config.get(key)
    return getattr(config, key, None)


def connect(config: Any) -> psycopg.Connection:
    """
    Open a connection from a connection dict (or any object with the same attributes).

    - config: host, port, database, username, password and optional connect_timeout.
      A ``conninfo`` key, when present, is passed to psycopg as-is and wins over
      the individual fields.
    """
    conninfo = _get(config, "conninfo")
    timeout = _get(config, "connect_timeout") or _DEFAULT_CONNECT_TIMEOUT
    if conninfo:
        return psycopg.connect(conninfo, autocommit=True, connect_timeout=timeout)

    host = _get(config, "host")
    port = _get(config, "port") or 5432
    database = _get(config, "database")
    username = _get(config, "username")
    password = _get(config, "password")

    for name, val in [
        ("host", host),
        ("database", database),
        ("username", username),
    ]:
        if val is None:
            raise ValueError(f"connection config must provide {name}")
    password = password if password is not None else ""

    return psycopg.connect(
        host=host,
        port=int(port),
        dbname=database,
        user=username,
        password=password,
        connect_timeout=timeout,
        autocommit=True,
    )


def execute(
    conn: Any,
    sql: str,
    params: list[Any] | tuple[Any, ...] | None = None,
) -> Any:
    """Execute SQL and return the cursor. Caller uses cursor_to_dicts(cursor).

    The cursor is closed here if the statement fails.
    """
    cur = conn.cursor()
    try:
        if params is not None:
            cur.execute(sql, params)
        else:
            cur.execute(sql)
    except BaseException:
        cur.close()
        raise
    return cur


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts (empty list for statements without rows)."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]
