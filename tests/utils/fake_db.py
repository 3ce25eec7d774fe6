"""In-memory stand-ins for psycopg connections/cursors used by unit tests."""

from collections.abc import Callable
from typing import Any

Responder = Callable[[str, list[Any] | None], list[dict[str, Any]] | Exception | None]


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self.conn = conn
        self.description: list[tuple[str]] | None = None
        self._rows: list[tuple[Any, ...]] = []
        self.closed = False

    def execute(self, sql: str, params: Any = None) -> None:
        if self.conn.closed:
            raise RuntimeError("connection is closed")
        values = list(params) if params is not None else None
        self.conn.executed.append((sql, values))
        result = self.conn.responder(sql, values)
        if isinstance(result, Exception):
            raise result
        rows = result or []
        if rows:
            self.description = [(k,) for k in rows[0]]
            self._rows = [tuple(r.values()) for r in rows]
        else:
            self.description = [("id",)]
            self._rows = []

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self._rows)

    def fetchone(self) -> tuple[Any, ...] | None:
        return self._rows[0] if self._rows else None

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    def __init__(self, responder: Responder | None = None) -> None:
        self.responder: Responder = responder or (lambda sql, values: [])
        self.executed: list[tuple[str, list[Any] | None]] = []
        self.cursors: list[FakeCursor] = []
        self.closed = False

    def cursor(self) -> FakeCursor:
        if self.closed:
            raise RuntimeError("connection is closed")
        cur = FakeCursor(self)
        self.cursors.append(cur)
        return cur

    def close(self) -> None:
        self.closed = True


def rows_for(*rows: dict[str, Any]) -> Responder:
    """Responder that answers every statement with the given rows."""
    return lambda sql, values: list(rows)
