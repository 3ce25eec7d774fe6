"""
Health-check helpers for liveness and readiness probes.

Liveness:  is the process alive and not deadlocked?  (cheap, no I/O)
Readiness: can it serve traffic?  (gateway pool open and Postgres answering)
"""

import logging

from tablegate.core.gateway.context import GatewayContext
from tablegate.core.pool import health_check

logger = logging.getLogger(__name__)


def check_postgres(context: GatewayContext) -> bool:
    """Check Postgres through the gateway pool by running SELECT 1. Returns True if ok."""
    if context.closed:
        return False
    try:
        with context.pool.connection() as conn:
            return health_check(conn)
    except Exception:
        logger.warning("Postgres check failed, treating as unhealthy", exc_info=True)
        return False


def liveness_check() -> tuple[bool, list[str]]:
    """
    Lightweight liveness probe, just confirms the Python process is responsive.
    No I/O, no DB calls.  Return format matches readiness_check for consistency.
    """
    return (True, [])


def readiness_check(context: GatewayContext) -> tuple[bool, list[str]]:
    """
    Run the Postgres check.
    Returns (ok, list of failure messages).
    """
    failures: list[str] = []

    if not check_postgres(context):
        failures.append("postgres")

    return (len(failures) == 0, failures)
