"""Preflight API - campaign readiness validation service."""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.deps import build_best_practices_store
from src.api.routes import campaigns, copy_analysis, health
from src.core.config import Settings, settings
from src.core.exceptions import (
    PreflightException,
    RequestBodyError,
    ValidationError,
    sanitize_error,
)
from src.middleware.performance import RequestIDMiddleware, RequestTimingMiddleware

API_PREFIX = "/api/v1"
VERSION = "1.0.0"


def configure_logging(level: str, log_format: str) -> None:
    """Install a single root handler.

    ``json`` emits one JSON object per record via python-json-logger, with
    ``extra={...}`` fields merged in; ``text`` is for local development.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    if log_format == "json":
        from pythonjsonlogger.json import JsonFormatter

        handler.setFormatter(
            JsonFormatter(
                fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
                static_fields={"app": "preflight-api"},
            )
        )
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s [%(name)s] %(message)s")
        )
    root_logger.addHandler(handler)


configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _error_response(request: Request, exc: PreflightException) -> JSONResponse:
    content: dict[str, Any] = exc.to_body()
    content["request_id"] = _request_id(request)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


def _map_request_validation(exc: RequestValidationError) -> PreflightException:
    """Translate FastAPI body errors into the service's error shape."""
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        return RequestBodyError()

    first = errors[0] if errors else {}
    where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if not where:
        return ValidationError(message)
    return ValidationError(f"Invalid field {where}: {message}", field=where)


def register_exception_handlers(app: FastAPI, cors_origins: list[str]) -> None:
    """Render every failure as ``{error, message, code, request_id}``."""

    @app.exception_handler(PreflightException)
    async def preflight_exception_handler(
        request: Request, exc: PreflightException
    ) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "%s: %s",
            exc.error,
            exc.message,
            extra={
                "code": exc.code,
                "status_code": exc.status_code,
                "request_id": _request_id(request),
                "path": request.url.path,
            },
        )
        return _error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        mapped = _map_request_validation(exc)
        logger.warning(
            "Rejected request body: %s",
            mapped.message,
            extra={"request_id": _request_id(request), "path": request.url.path},
        )
        return _error_response(request, mapped)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Last-resort 500 that never leaks exception text.

        This response bypasses the CORS middleware, so allowed origins get
        their CORS headers here.
        """
        request_id = _request_id(request)
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            extra={"request_id": request_id, "path": request.url.path},
        )
        response = JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": sanitize_error(exc),
                "code": "INTERNAL_ERROR",
                "request_id": request_id,
            },
        )
        origin = request.headers.get("origin", "")
        if origin in cors_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
        return response


def create_app(config: Settings) -> FastAPI:
    """Build the Preflight application for ``config``."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Preflight API starting (env=%s)", config.APP_ENV)
        if config.model_configured:
            logger.info("Campaign validation enabled, model route %s", config.LLM_MODEL)
        else:
            logger.warning("ANTHROPIC_API_KEY not set: campaign validation will return 500")

        app.state.best_practices_store = build_best_practices_store(config)
        yield
        app.state.best_practices_store = None
        logger.info("Preflight API stopped")

    app = FastAPI(
        title="Preflight API",
        description="Launch readiness checks for outbound email campaigns",
        version=VERSION,
        lifespan=lifespan,
    )

    cors_origins = config.cors_origins_list
    # Starlette wraps in reverse order: CORS outermost, then request ID, then timing
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )

    for module in (campaigns, copy_analysis, health):
        app.include_router(module.router, prefix=API_PREFIX)

    @app.get("/health", tags=["system"])
    async def liveness() -> dict[str, str]:
        """Process liveness for load balancers; see /api/v1/health for checks."""
        return {"status": "healthy"}

    @app.get("/", tags=["system"])
    async def service_info() -> dict[str, str]:
        return {
            "name": "Preflight API",
            "version": VERSION,
            "description": "Campaign readiness validation",
            "docs": "/docs",
        }

    register_exception_handlers(app, cors_origins)
    return app


app = create_app(settings)
