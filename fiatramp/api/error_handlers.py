"""Error Handlers — global exception handlers for the FiatRamp API.

Invariants:
    - FiatRampError → structured JSON with error code, message, severity
    - RequestValidationError → 400 with field-level error details; a missing,
      unparsable or mistyped body is INVALID_REQUEST, the same code the workflow
      uses for an absent quote_id
    - HTTPException (unknown route, wrong method) → same envelope
    - Exception (catch-all) → 500, internal details only when debug=True

Design Decisions:
    - Four-layer handler: domain, validation, HTTP, catch-all
    - debug flag bound at registration from settings.environment
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fiatramp.core.errors import FiatRampError, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI, debug: bool = False) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app, debug)


def _register_domain_error_handler(app: FastAPI) -> None:

    @app.exception_handler(FiatRampError)
    async def fiatramp_error_handler(request: Request, exc: FiatRampError):
        """Handle all FiatRamp domain/storage errors."""
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"FiatRampError: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "order_id": exc.context.order_id,
                "quote_id": exc.context.quote_id,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_http_error_handler(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException,
    ):
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": code,
                    "message": str(exc.detail),
                    "category": "http",
                    "severity": ErrorSeverity.WARNING.value,
                    "path": request.url.path,
                },
            },
            headers=getattr(exc, "headers", None),
        )


def _register_generic_error_handler(app: FastAPI, debug: bool) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details outside development."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        error = {
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "category": "internal",
            "severity": ErrorSeverity.CRITICAL.value,
        }
        if debug:
            error["debug"] = {"type": type(exc).__name__, "detail": str(exc)}
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": error},
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    body_error = any(e["loc"] and e["loc"][0] == "body" for e in exc.errors())
    return {
        "error": {
            "code": "INVALID_REQUEST" if body_error else "VALIDATION_ERROR",
            "message": "Invalid request body" if body_error else "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
