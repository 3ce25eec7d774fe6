"""
Gateway request/response: read_body, parse_query_options, make_json_safe, error_body.

- read_body: JSON object (or form fields) from the request; None when there is no body,
  ActionError for a body it cannot read.
- parse_query_options: ``orders``, ``page`` and ``size`` from the query string for index.
- make_json_safe: row values (datetime, Decimal, UUID, ...) to JSON primitives.
- error_body: the 400 payload for a failed or unbuildable statement.
"""

import json
import math
import uuid
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from psycopg.types.json import Json
from starlette.requests import Request

from tablegate.engines.sql.builder import (
    ActionError,
    OrderSpec,
    QueryOptions,
    Statement,
    check_identifier,
    normalize_direction,
    normalize_page,
)


async def read_body(request: Request) -> Any:
    """
    Read the request payload.

    - application/json (or any +json type): decoded JSON; invalid JSON raises ActionError.
    - application/x-www-form-urlencoded or multipart/form-data: dict of fields.
    - no body: None.
    - a body with any other content type raises ActionError.
    """
    ct = (request.headers.get("content-type") or "").split(";")[0].strip().lower()
    raw = await request.body()
    if not raw.strip():
        return None
    if ct == "application/json" or ct.endswith("+json"):
        try:
            return json.loads(raw)
        except ValueError as e:
            raise ActionError(f"Request body is not valid JSON: {e}") from e
    if ct in ("application/x-www-form-urlencoded", "multipart/form-data"):
        form = await request.form()
        return {k: v for k, v in form.items() if isinstance(v, str)}
    raise ActionError(f"Unsupported request content type: {ct or 'none'!r}")


def _getlist(query: Mapping[str, Any], key: str) -> list[Any]:
    if hasattr(query, "getlist"):
        return list(query.getlist(key))
    value = query.get(key)
    if value is None:
        return []
    return list(value) if isinstance(value, (list, tuple)) else [value]


def _order_from_obj(obj: Any) -> OrderSpec:
    if isinstance(obj, str):
        return _order_from_text(obj)
    if isinstance(obj, dict):
        return OrderSpec(check_identifier(obj.get("column")), normalize_direction(obj.get("mode")))
    raise ActionError(f"Invalid order: {obj!r}")


def _order_from_text(text: str) -> OrderSpec:
    """'name' or 'name:desc'."""
    column, _, mode = text.strip().partition(":")
    return OrderSpec(check_identifier(column.strip()), normalize_direction(mode or None))


def parse_orders(values: list[Any]) -> list[OrderSpec]:
    """
    Each ``orders`` value is a column name, ``column:mode``, a JSON object
    ``{"column": ..., "mode": ...}`` or a JSON list of either. Order is preserved.
    """
    out: list[OrderSpec] = []
    for v in values:
        if isinstance(v, str) and v.strip()[:1] in ("[", "{"):
            try:
                v = json.loads(v)
            except ValueError as e:
                raise ActionError(f"Invalid orders value: {e}") from e
        if isinstance(v, list):
            out.extend(_order_from_obj(x) for x in v)
        elif isinstance(v, str) and not v.strip():
            continue
        else:
            out.append(_order_from_obj(v))
    return out


def parse_query_options(query: Mapping[str, Any]) -> QueryOptions:
    """
    Build QueryOptions from query params (starlette QueryParams or a plain dict).

    Pagination is active as soon as ``page`` or ``size`` is present; see normalize_page.
    """
    page, size = normalize_page(query.get("page"), query.get("size"))
    return QueryOptions(orders=parse_orders(_getlist(query, "orders")), page=page, size=size)


def _non_finite_text(value: float | Decimal) -> str:
    nan = value.is_nan() if isinstance(value, Decimal) else math.isnan(value)
    if nan:
        return "NaN"
    return "Infinity" if value > 0 else "-Infinity"


def _interval_text(td: timedelta) -> str:
    """Postgres-style interval text: ``1 day 01:00:00``, ``-00:01:30``, ``00:00:00.5``."""
    sign = "-" if td < timedelta(0) else ""
    td = abs(td)
    parts = []
    if td.days:
        parts.append(f"{sign}{td.days} day{'s' if td.days != 1 else ''}")
    if td.seconds or td.microseconds or not td.days:
        hours, rem = divmod(td.seconds, 3600)
        minutes, seconds = divmod(rem, 60)
        clock = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
        if td.microseconds:
            clock += f".{td.microseconds:06d}".rstrip("0")
        parts.append(f"{sign}{clock}")
    return " ".join(parts)


def make_json_safe(obj: Any) -> Any:
    """Recursively convert non-JSON-serializable types to safe primitives.

    Values are rendered the way Postgres' own json output renders them, so a
    row reads the same from Show as from the json_agg records of Index:
    intervals as interval text, bytea as ``\\x`` hex, NaN and infinities as
    strings. Also handles datetime, date, time, Decimal, UUID and sets.
    """
    if isinstance(obj, float) and not math.isfinite(obj):
        return _non_finite_text(obj)
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return _interval_text(obj)
    if isinstance(obj, Decimal):
        if not obj.is_finite():
            return _non_finite_text(obj)
        # Preserve integer-valued decimals as int, otherwise float
        if obj == int(obj):
            return int(obj)
        return float(obj)
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, (bytes, memoryview)):
        return "\\x" + bytes(obj).hex()
    if isinstance(obj, Json):
        return make_json_safe(obj.obj)
    if isinstance(obj, dict):
        return {str(k): make_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [make_json_safe(item) for item in obj]
    if isinstance(obj, (set, frozenset)):
        return [make_json_safe(item) for item in sorted(obj, key=str)]
    # Fallback: use str() for unknown types
    return str(obj)


def error_body(statement: Statement | None, exc: BaseException) -> dict[str, Any]:
    """
    ``{"sql": {text, values} | null, "exception": {type, message, sqlstate, detail}}``.

    sqlstate/detail come from psycopg's diagnostics when present.
    """
    diag = getattr(exc, "diag", None)
    return make_json_safe(
        {
            "sql": statement.to_dict() if statement is not None else None,
            "exception": {
                "type": type(exc).__name__,
                "message": str(exc),
                "sqlstate": getattr(exc, "sqlstate", None),
                "detail": getattr(diag, "message_detail", None) if diag is not None else None,
            },
        }
    )
