"""
Query builder and action factories for table resources.

Exports: Action, ActionError, QueryOptions, OrderSpec, Statement and the five factories.
"""

from tablegate.engines.sql.actions import (
    Action,
    create,
    envelope,
    first,
    index,
    patch,
    remove,
    show,
    update,
)
from tablegate.engines.sql.builder import (
    ActionError,
    OrderSpec,
    QueryOptions,
    Statement,
    normalize_page,
)

__all__ = [
    "Action",
    "ActionError",
    "OrderSpec",
    "QueryOptions",
    "Statement",
    "create",
    "envelope",
    "first",
    "index",
    "normalize_page",
    "patch",
    "remove",
    "show",
    "update",
]
