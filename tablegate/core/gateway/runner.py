"""
Gateway runner: execute an Action on the pool and turn the outcome into a response.

run_action is sync/blocking (psycopg); execute_action runs it in a worker thread so
the event loop keeps accepting requests while a statement is in flight.
Every database failure maps to 400 with the statement and the error detail;
there is no retry and no classification of error kinds.
"""

import asyncio
import logging
from typing import Any

import psycopg
from fastapi.responses import JSONResponse

from tablegate.core.gateway.request_response import error_body, make_json_safe
from tablegate.core.pool import ConnectionPool, PoolClosedError, cursor_to_dicts, execute
from tablegate.engines.sql import Action

logger = logging.getLogger(__name__)


def run_action(pool: ConnectionPool, action: Action) -> Any:
    """Run the statement on a pooled connection and return the shaped result."""
    statement = action.statement
    with pool.connection() as conn:
        cur = execute(conn, statement.text, statement.values)
        try:
            rows = cursor_to_dicts(cur)
        finally:
            cur.close()
    return action.shaper(rows)


async def execute_action(pool: ConnectionPool, action: Action) -> JSONResponse:
    """200 with the shaped value (null included), or 400 with sql + exception."""
    try:
        result = await asyncio.to_thread(run_action, pool, action)
    except (psycopg.Error, PoolClosedError) as e:
        logger.warning(
            "Statement failed: %s (%s)", action.statement.text, e,
            extra={"sqlstate": getattr(e, "sqlstate", None)},
        )
        return JSONResponse(status_code=400, content=error_body(action.statement, e))
    return JSONResponse(content=make_json_safe(result))
