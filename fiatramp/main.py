"""FiatRamp API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map FiatRampError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager
    - Every request logged with method and path, and tagged with a request id
      echoed back in X-Request-ID
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

import fiatramp.infrastructure.database as db_module
from fiatramp.api.dependencies import reset_singletons
from fiatramp.api.error_handlers import register_error_handlers
from fiatramp.api.routes import health, orders
from fiatramp.config import get_settings
from fiatramp.infrastructure.database import init_db
from fiatramp.infrastructure.observability import (
    new_request_id, request_id_var, setup_logging,
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        statement_timeout_ms=settings.database_statement_timeout_ms,
    )
    logger.info(
        f"FiatRamp API started (api_version={settings.api_version}, "
        f"environment={settings.environment})",
    )
    yield
    logger.info("FiatRamp API shutting down")
    reset_singletons()
    if db_module.db_manager:
        await db_module.db_manager.dispose()


settings = get_settings()
app = FastAPI(
    title="FiatRamp API", version="1.0.0", lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def tag_and_log_requests(request: Request, call_next):
    request_id = new_request_id(request.headers.get(REQUEST_ID_HEADER))
    token = request_id_var.set(request_id)
    try:
        logger.info(
            f"{request.method} {request.url.path}",
            extra={"method": request.method, "path": request.url.path},
        )
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


app.include_router(health.router)
app.include_router(orders.router)

register_error_handlers(app, debug=settings.is_development)
