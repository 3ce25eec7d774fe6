"""
RESTful action factories: index, show, create, update (patch), remove.

Each factory takes the allow-listed table, the route id (or None), the request
payload and the list options, and returns an Action: the statement to run plus
the shaper that turns the returned rows into the response value. Actions are
built per request and never reused.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, NamedTuple

from tablegate.engines.sql.builder import (
    QueryOptions,
    Statement,
    delete_by_id,
    insert_row,
    select_by_id,
    select_page,
    update_row,
)

Shaper = Callable[[list[dict[str, Any]]], Any]


class Action(NamedTuple):
    statement: Statement
    shaper: Shaper


ActionFactory = Callable[[str, int | None, Any, QueryOptions | None], Action]


def first(rows: list[dict[str, Any]] | None) -> dict[str, Any] | None:
    """First row, or None when nothing matched."""
    return rows[0] if rows else None


def envelope(options: QueryOptions) -> Shaper:
    """Shaper for index: {total, records} plus page/size when paginated."""

    def shape(rows: list[dict[str, Any]]) -> dict[str, Any]:
        row = first(rows) or {}
        out: dict[str, Any] = {
            "total": int(row.get("total") or 0),
            "records": row.get("records") or [],
        }
        if options.paginated:
            out["page"] = options.page
            out["size"] = options.size
        return out

    return shape


def index(
    table: str,
    id: int | None = None,  # noqa: ARG001
    payload: Any = None,  # noqa: ARG001
    options: QueryOptions | None = None,
) -> Action:
    opts = options or QueryOptions()
    return Action(select_page(table, opts), envelope(opts))


def show(
    table: str,
    id: int | None = None,
    payload: Any = None,  # noqa: ARG001
    options: QueryOptions | None = None,  # noqa: ARG001
) -> Action:
    return Action(select_by_id(table, _require_id(id)), first)


def create(
    table: str,
    id: int | None = None,  # noqa: ARG001
    payload: Any = None,
    options: QueryOptions | None = None,  # noqa: ARG001
) -> Action:
    return Action(insert_row(table, payload if payload is not None else {}), first)


def update(
    table: str,
    id: int | None = None,
    payload: Any = None,
    options: QueryOptions | None = None,  # noqa: ARG001
) -> Action:
    return Action(update_row(table, _require_id(id), payload if payload is not None else {}), first)


# PATCH overwrites supplied fields only, exactly like PUT.
patch = update


def remove(
    table: str,
    id: int | None = None,
    payload: Any = None,  # noqa: ARG001
    options: QueryOptions | None = None,  # noqa: ARG001
) -> Action:
    return Action(delete_by_id(table, _require_id(id)), first)


def _require_id(id: int | None) -> int:
    if id is None:
        raise ValueError("this action needs a row id")
    return id
