"""
Gateway middleware: {prefix}{table}[/{id}] -> action -> JSON response.

Flow: match route -> dispatch action -> read body / query options -> build -> execute.
No route or no action for the method: the request goes on to the wrapped app.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from tablegate.core.gateway.context import GatewayContext
from tablegate.core.gateway.request_response import error_body, parse_query_options, read_body
from tablegate.core.gateway.resolver import dispatch_action, match_route
from tablegate.core.gateway.runner import execute_action
from tablegate.engines.sql import ActionError, actions

logger = logging.getLogger(__name__)

_BODY_METHODS = ("POST", "PUT", "PATCH")


class TableGatewayMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, context: GatewayContext) -> None:
        super().__init__(app)
        self.context = context

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        ctx = self.context
        route = match_route(
            request.method,
            request.url.path,
            request.headers.get("accept"),
            prefix=ctx.prefix,
            tables=ctx.tables,
        )
        if route is None:
            return await call_next(request)
        factory = dispatch_action(route.method, route.id is not None)
        if factory is None:
            return await call_next(request)

        try:
            payload = await read_body(request) if route.method in _BODY_METHODS else None
            options = parse_query_options(request.query_params) if factory is actions.index else None
            action = factory(route.table, route.id, payload, options)
        except ActionError as e:
            logger.info("Rejected %s %s: %s", request.method, request.url.path, e)
            return JSONResponse(status_code=400, content=error_body(None, e))

        return await execute_action(ctx.pool, action)
