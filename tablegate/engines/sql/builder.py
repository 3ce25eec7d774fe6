"""
SQL text and bound-parameter builders for the gateway's CRUD actions.

Only values are bound (psycopg ``%s`` placeholders). Identifiers are
interpolated into the text: table names come from the allowlist, column
names from the caller and must be plain SQL identifiers (see check_identifier).
Whether a well-formed column actually exists is left to the database.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Literal, NamedTuple

from psycopg.types.json import Json

DEFAULT_PAGE = 1
DEFAULT_SIZE = 20

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

Direction = Literal["asc", "desc"]


class ActionError(ValueError):
    """Raised when a request cannot be turned into a statement (bad payload, bad identifier)."""

    pass


class Statement(NamedTuple):
    text: str
    values: list[Any]

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "values": list(self.values)}


class OrderSpec(NamedTuple):
    column: str
    direction: Direction = "asc"


@dataclass(frozen=True)
class QueryOptions:
    """List options: ordering and optional pagination (page/size both set or both None)."""

    orders: list[OrderSpec] = field(default_factory=list)
    page: int | None = None
    size: int | None = None

    @property
    def paginated(self) -> bool:
        return self.page is not None and self.size is not None

    @property
    def offset(self) -> int:
        if not self.paginated:
            return 0
        return (self.page - 1) * self.size  # type: ignore[operator]


def check_identifier(name: Any) -> str:
    """Return *name* if it is a plain SQL identifier; raise ActionError otherwise."""
    if not isinstance(name, str) or not _IDENTIFIER.fullmatch(name):
        raise ActionError(f"Invalid column name: {name!r}")
    return name


def normalize_direction(mode: Any) -> Direction:
    """'asc' / 'desc' (case-insensitive, surrounding blanks ignored); None means asc."""
    if mode is None:
        return "asc"
    m = str(mode).strip().lower()
    if m in ("asc", "desc"):
        return m  # type: ignore[return-value]
    raise ActionError(f"Invalid order mode: {mode!r} (expected 'asc' or 'desc')")


def _parse_int(raw: Any, *, minimum: int) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw >= minimum else None
    if isinstance(raw, str) and re.fullmatch(r"\d+", raw.strip()):
        n = int(raw.strip())
        return n if n >= minimum else None
    return None


def normalize_page(page: Any, size: Any) -> tuple[int | None, int | None]:
    """
    Pagination is active as soon as either value is supplied (even malformed).
    Invalid or missing page -> 1 (positive integer); invalid or missing size -> 20
    (non-negative integer). Neither supplied -> (None, None).
    """
    if page is None and size is None:
        return (None, None)
    p = _parse_int(page, minimum=1)
    s = _parse_int(size, minimum=0)
    return (p if p is not None else DEFAULT_PAGE, s if s is not None else DEFAULT_SIZE)


def order_clause(orders: list[OrderSpec], qualifier: str = "") -> str:
    """`` ORDER BY a asc, b desc`` or empty string; caller order is kept as given.

    *qualifier* prefixes each column, e.g. ``r.`` for ordering inside an aggregate.
    """
    if not orders:
        return ""
    parts = [
        f"{qualifier}{check_identifier(o.column)} {normalize_direction(o.direction)}"
        for o in orders
    ]
    return " ORDER BY " + ", ".join(parts)


def page_clause(options: QueryOptions) -> tuple[str, list[int]]:
    """`` LIMIT %s OFFSET %s`` with its values, or ("", []) when not paginated."""
    if not options.paginated:
        return ("", [])
    return (" LIMIT %s OFFSET %s", [options.size, options.offset])  # type: ignore[list-item]


def _split(payload: Any) -> tuple[list[str], list[Any]]:
    if not isinstance(payload, dict):
        raise ActionError("Request body must be a JSON object")
    keys = [check_identifier(k) for k in payload]
    # nested objects are bound as json, lists stay Postgres arrays
    values = [Json(v) if isinstance(v, dict) else v for v in payload.values()]
    return keys, values


def select_page(table: str, options: QueryOptions) -> Statement:
    """
    Count and (windowed, ordered) rows in one round trip.

    Returns one row ``{total, records}``; records is a JSON array aggregated
    server-side, '[]' when the window is empty. The ordering is repeated
    inside json_agg so the array keeps it.
    """
    order = order_clause(options.orders)
    agg_order = order_clause(options.orders, "r.")
    window, values = page_clause(options)
    text = (
        f"SELECT (SELECT count(*) FROM {table}) AS total, "
        f"COALESCE((SELECT json_agg(r{agg_order}) FROM (SELECT * FROM {table}{order}{window}) AS r), "
        f"'[]'::json) AS records"
    )
    return Statement(text, values)


def select_by_id(table: str, id: int) -> Statement:
    return Statement(f"SELECT * FROM {table} WHERE id = %s", [id])


def insert_row(table: str, payload: Any) -> Statement:
    keys, values = _split(payload)
    if not keys:
        return Statement(f"INSERT INTO {table} DEFAULT VALUES RETURNING *", [])
    columns = ", ".join(keys)
    placeholders = ", ".join("%s" for _ in keys)
    return Statement(
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) RETURNING *", values
    )


def update_row(table: str, id: int, payload: Any) -> Statement:
    """Only supplied columns are set; the id is bound last."""
    keys, values = _split(payload)
    if not keys:
        raise ActionError("Request body must contain at least one column to update")
    assignments = ", ".join(f"{k} = %s" for k in keys)
    values.append(id)
    return Statement(f"UPDATE {table} SET {assignments} WHERE id = %s RETURNING *", values)


def delete_by_id(table: str, id: int) -> Statement:
    return Statement(f"DELETE FROM {table} WHERE id = %s RETURNING *", [id])
