"""
Gateway context: the allowlist, URL prefix and connection pool of one mounted gateway.

Created explicitly (pool opened at construction) and closed explicitly at shutdown,
e.g. from the FastAPI lifespan. Nothing here is module-level state.
"""

import logging
from collections.abc import Iterable
from typing import Any

from tablegate.core.gateway.resolver import TableAllowlist, normalize_prefix
from tablegate.core.pool import ConnectionPool

_log = logging.getLogger(__name__)


class GatewayContext:
    def __init__(
        self,
        db_config: Any,
        tables: Iterable[str],
        *,
        prefix: str = "/",
        pool: ConnectionPool | None = None,
        **pool_options: Any,
    ) -> None:
        """
        - db_config: connection parameters for ``core.pool.connect`` (opaque here).
        - tables: names to expose; nothing else is ever routed or put in SQL text.
        - prefix: URL prefix stripped before matching (default "/").
        - pool: use an existing pool instead of creating one from db_config.
        - pool_options: pool_size, max_connections, max_age for the created pool.
        """
        self.tables = TableAllowlist(tables)
        self.prefix = normalize_prefix(prefix)
        self.pool = pool if pool is not None else ConnectionPool(db_config, **pool_options)
        _log.info(
            "Table gateway on %s exposing %s", self.prefix, ", ".join(self.tables) or "(none)"
        )

    @property
    def closed(self) -> bool:
        return self.pool.closed

    def close(self) -> None:
        """Dispose the pool; later requests fail with a 400 execution error."""
        if not self.pool.closed:
            self.pool.dispose()

    def __enter__(self) -> "GatewayContext":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def table_gateway(db_config: Any, *tables: str, prefix: str = "/", **pool_options: Any) -> GatewayContext:
    """``table_gateway(config, "widgets", "users", prefix="/api")``: build a GatewayContext."""
    return GatewayContext(db_config, tables, prefix=prefix, **pool_options)
