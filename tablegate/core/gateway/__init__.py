"""
Gateway: resolver (allowlist, matcher, dispatcher), request/response, runner, middleware.
"""

from tablegate.core.gateway.context import GatewayContext, table_gateway
from tablegate.core.gateway.middleware import TableGatewayMiddleware
from tablegate.core.gateway.request_response import (
    error_body,
    make_json_safe,
    parse_query_options,
    read_body,
)
from tablegate.core.gateway.resolver import (
    ACTION_TABLE,
    Route,
    TableAllowlist,
    accepts_json,
    dispatch_action,
    match_route,
)
from tablegate.core.gateway.runner import execute_action, run_action

__all__ = [
    "ACTION_TABLE",
    "GatewayContext",
    "Route",
    "TableAllowlist",
    "TableGatewayMiddleware",
    "accepts_json",
    "dispatch_action",
    "error_body",
    "execute_action",
    "make_json_safe",
    "match_route",
    "parse_query_options",
    "read_body",
    "run_action",
    "table_gateway",
]
