"""
Gateway resolver: match a request against the table allowlist and pick its action.

URL pattern: {prefix}{table}[/{id}][/]. The table must be allow-listed, the id all digits.
Unmatched requests resolve to None (pass through), never to an error.
"""

import re
from collections.abc import Iterable, Iterator
from typing import NamedTuple

from tablegate.engines.sql import actions
from tablegate.engines.sql.actions import ActionFactory

_ID_PATTERN = re.compile(r"[0-9]+")
# table or schema.table
_TABLE_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?")

# (method, has_id) -> factory; anything missing is "no action".
ACTION_TABLE: dict[tuple[str, bool], ActionFactory] = {
    ("GET", False): actions.index,
    ("GET", True): actions.show,
    ("POST", False): actions.create,
    ("PUT", True): actions.update,
    ("PATCH", True): actions.patch,
    ("DELETE", True): actions.remove,
}


class Route(NamedTuple):
    method: str
    table: str
    id: int | None = None


class TableAllowlist:
    """Immutable set of exposed tables; lookups are case-insensitive and return the configured spelling."""

    __slots__ = ("_tables",)

    def __init__(self, tables: Iterable[str]) -> None:
        names: dict[str, str] = {}
        for t in tables:
            name = (t or "").strip()
            if not name:
                continue
            if not _TABLE_PATTERN.fullmatch(name):
                raise ValueError(f"Invalid table name: {name!r}")
            names.setdefault(name.lower(), name)
        self._tables = names

    def get(self, name: str) -> str | None:
        return self._tables.get((name or "").lower())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"TableAllowlist({sorted(self._tables.values())!r})"


def normalize_prefix(prefix: str | None) -> str:
    """'/api' and '/api/' -> '/api/'; None or '' -> '/'."""
    p = (prefix or "/").strip()
    if not p.startswith("/"):
        p = "/" + p
    if not p.endswith("/"):
        p = p + "/"
    return p


def accepts_json(accept: str | None) -> bool:
    """
    True if an Accept header value admits a JSON response.
    Missing/empty header accepts anything; q=0 entries are refused.
    """
    if not accept or not accept.strip():
        return True
    for item in accept.split(","):
        media, *params = [p.strip() for p in item.split(";")]
        media = media.lower()
        if _q_is_zero(params):
            continue
        if media in ("*/*", "application/*", "application/json") or media.endswith("+json"):
            return True
    return False


def _q_is_zero(params: list[str]) -> bool:
    for p in params:
        k, _, v = p.partition("=")
        if k.strip().lower() == "q":
            try:
                return float(v) == 0
            except ValueError:
                return False
    return False


def match_route(
    method: str,
    path: str,
    accept: str | None,
    *,
    prefix: str,
    tables: TableAllowlist,
) -> Route | None:
    """
    Resolve a request to Route(method, table, id) or None.

    - None if the client does not accept JSON.
    - None if path is not under prefix, table is not allow-listed, or the id
      segment is not all digits (no coercion, no fallback to the collection).
    - One trailing slash is tolerated: /widgets/ and /widgets/3/.
    """
    if not accepts_json(accept):
        return None
    prefix = normalize_prefix(prefix)
    path = path or ""
    if not path.startswith(prefix):
        return None
    rest = path[len(prefix):]
    if rest.endswith("/"):
        rest = rest[:-1]
    table_part, sep, id_part = rest.partition("/")
    table = tables.get(table_part)
    if table is None:
        return None
    method_upper = (method or "GET").upper()
    if not sep:
        return Route(method_upper, table)
    if not _ID_PATTERN.fullmatch(id_part):
        return None
    return Route(method_upper, table, int(id_part))


def dispatch_action(method: str, has_id: bool) -> ActionFactory | None:
    """Factory for (method, has_id), or None when the combination is not routed."""
    return ACTION_TABLE.get(((method or "").upper(), bool(has_id)))
