import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from tablegate.api.routes.utils import router as utils_router
from tablegate.core.config import Settings, settings
from tablegate.core.gateway import GatewayContext, TableGatewayMiddleware

_logger = logging.getLogger(__name__)


def create_app(
    conf: Settings | None = None,
    *,
    tables: Iterable[str] | None = None,
    context: GatewayContext | None = None,
) -> FastAPI:
    """
    Build the FastAPI app with the table gateway mounted as middleware.

    - conf: settings (defaults to the environment-loaded ``settings``).
    - tables: overrides GATEWAY_TABLES.
    - context: use a ready GatewayContext (its pool is still closed on shutdown).
    """
    conf = conf or settings
    if context is None:
        context = GatewayContext(
            conf.database,
            conf.GATEWAY_TABLES if tables is None else tables,
            prefix=conf.GATEWAY_PREFIX,
            pool_size=conf.POOL_SIZE,
            max_connections=conf.POOL_MAX_CONNECTIONS,
            max_age=conf.POOL_MAX_AGE_SEC,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            context.close()
            _logger.info("Table gateway pool closed")

    application = FastAPI(title=conf.PROJECT_NAME, lifespan=lifespan)
    application.state.gateway = context

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions: log and return 500 with safe message."""
        _logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        detail = "Internal server error"
        if conf.ENVIRONMENT == "local":
            detail = f"Internal server error: {exc}"
        return JSONResponse(status_code=500, content={"detail": detail})

    application.add_middleware(TableGatewayMiddleware, context=context)

    # Set all CORS enabled origins (added last so it wraps the gateway)
    if conf.all_cors_origins:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=conf.all_cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    application.include_router(utils_router)
    return application


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)

# No database I/O here: the pool opens connections on first request.
app = create_app()
