"""
Device Vital Monitor - Backend API
==================================
FastAPI application that logs device vitals and serves history and analytics.

ARCHITECTURE:
    Devices report their vitals (thermal state, battery level, memory usage)
    on a timer. The backend validates each reading, stores it, and answers
    history and rolling-window analytics queries.

    [Device / Reporter] --POST /api/vitals--> [This Backend] ---> [Vital Store]
                                                    ^
    [Dashboard] --GET /api/vitals[/analytics]-------+

HOW TO RUN:
    # Install
    pip install -e .

    # Copy environment config (optional)
    cp .env.example .env

    # Run the server
    cd backend
    uvicorn vital_monitor.main:app --reload --port 8000

API DOCUMENTATION:
    After starting the server, visit:
    - Swagger UI: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
    - OpenAPI JSON: http://localhost:8000/openapi.json
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from vital_monitor.config import Config
from vital_monitor.errors import VitalNotFoundError, VitalValidationError
from vital_monitor.models import ErrorCode, ErrorResponse
from vital_monitor.routers import vitals_router, set_vital_service
from vital_monitor.services import VitalService
from vital_monitor.storage import SqlAlchemyVitalStore, VitalStore
from vital_monitor.utils import FixedWindowRateLimiter, invalid_page, invalid_page_size


logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)


API_VERSION = "1.0.0"


def _error(status_code: int, failure: ErrorResponse, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(failure), headers=headers)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _register_error_handlers(app: FastAPI, config: type[Config]):
    """Map every error the service can raise onto an ErrorResponse."""

    @app.exception_handler(VitalValidationError)
    async def vital_validation_error(request: Request, exc: VitalValidationError):
        return _error(400, exc.failure)

    @app.exception_handler(VitalNotFoundError)
    async def vital_not_found(request: Request, exc: VitalNotFoundError):
        return _error(404, exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        # Body that is not JSON, or fields of the wrong type
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = tuple(first.get("loc", ()))

        if len(loc) >= 2 and loc[0] == "query" and loc[1] == "page":
            return _error(400, invalid_page())
        if len(loc) >= 2 and loc[0] == "query" and loc[1] == "page_size":
            return _error(400, invalid_page_size(config.MAX_PAGE_SIZE))

        field = loc[1] if len(loc) >= 2 and isinstance(loc[1], str) else None
        message = first.get("msg", "Malformed request")
        return _error(400, ErrorResponse(
            error=f"Invalid request: {message}",
            field=field,
            code=ErrorCode.INVALID_REQUEST,
        ))

    @app.exception_handler(SQLAlchemyError)
    async def store_error(request: Request, exc: SQLAlchemyError):
        logger.error(f"Store access failed on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return _error(500, ErrorResponse(
            error="Internal server error.",
            field=None,
            code=ErrorCode.INTERNAL_ERROR,
        ))


# =============================================================================
# MIDDLEWARE
# =============================================================================

def _register_middleware(app: FastAPI, config: type[Config]):
    """
    Rate limiting (innermost), CORS, then request logging (outermost).

    The last middleware added runs first.
    """
    if config.RATE_LIMIT_PERMIT > 0:
        limiter = FixedWindowRateLimiter(config.RATE_LIMIT_PERMIT, config.RATE_LIMIT_WINDOW_SECONDS)

        @app.middleware("http")
        async def rate_limit(request: Request, call_next):
            if not request.url.path.startswith("/api/"):
                return await call_next(request)

            client = request.client.host if request.client else "unknown"
            retry_after = limiter.hit(client)
            if retry_after is not None:
                logger.warning(f"[{client}] Rate limit exceeded on {request.method} {request.url.path}")
                return _error(
                    429,
                    ErrorResponse(
                        error="Too many requests. Please try again later.",
                        field=None,
                        code=ErrorCode.RATE_LIMIT_EXCEEDED,
                    ),
                    headers={"Retry-After": str(max(1, int(retry_after + 0.999)))},
                )
            return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        query = f"?{request.url.query}" if request.url.query else ""
        logger.info(f"Request started: {request.method} {request.url.path}{query}")

        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"Request completed: {request.method} {request.url.path} -> {status_code} in {elapsed_ms:.0f}ms"
            )


# =============================================================================
# CREATE FASTAPI APPLICATION
# =============================================================================

def create_app(
    config: type[Config] = Config,
    store: Optional[VitalStore] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings class (tests pass a subclass with overrides)
        store: Vital store to use. Default: SQLAlchemy store on config.DATABASE_URL
        clock: Returns the current UTC time. Default: system clock

    Returns:
        The FastAPI app, ready to serve
    """
    owned_store = None
    if store is None:
        owned_store = SqlAlchemyVitalStore(config.DATABASE_URL)
        owned_store.init_schema()
        store = owned_store

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        STARTUP: log configuration.
        SHUTDOWN: release the database connections we opened.
        """
        logger.info("=" * 60)
        logger.info("DEVICE VITAL MONITOR - Starting Backend")
        logger.info(f"   Rolling window: {config.WINDOW_SIZE} readings")
        logger.info(f"   Page size: default {config.DEFAULT_PAGE_SIZE}, max {config.MAX_PAGE_SIZE}")
        logger.info(f"   Rate limit: {config.RATE_LIMIT_PERMIT or 'off'} per {config.RATE_LIMIT_WINDOW_SECONDS}s")
        logger.info(f"   CORS origins: {len(config.CORS_ORIGINS)} configured")
        logger.info("=" * 60)

        yield  # Application runs here

        if owned_store is not None:
            owned_store.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Device Vital Monitor API",
        description="""
## Overview

Devices report thermal state, battery level and memory usage. The backend
stores every reading and serves paged history and rolling-window analytics.

## Endpoints

| Method | Path | What it does |
|--------|------|--------------|
| POST | /api/vitals | Log a reading |
| GET | /api/vitals | Paged history, newest first |
| GET | /api/vitals/analytics | Averages, min/max and trends over the newest 100 readings |
| GET | /api/vitals/{id} | One reading |

## Errors

Every error response is `{"error": ..., "field": ..., "code": ...}`.
        """,
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    set_vital_service(app, VitalService(store, clock=clock, config=config))
    _register_error_handlers(app, config)
    _register_middleware(app, config)
    app.include_router(vitals_router)

    # =========================================================================
    # ROOT ENDPOINTS
    # =========================================================================

    @app.get("/", summary="API Information")
    async def root():
        """Root endpoint with API overview."""
        return {
            "name": "Device Vital Monitor API",
            "version": API_VERSION,
            "documentation": {
                "swagger": "/docs",
                "redoc": "/redoc",
                "openapi": "/openapi.json",
            },
            "endpoints": {
                "log_vital": "POST /api/vitals",
                "history": "GET /api/vitals?page=1&page_size=20",
                "analytics": "GET /api/vitals/analytics",
                "get_vital": "GET /api/vitals/{id}",
            },
        }

    @app.get("/health", summary="Health Check")
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "window_size": config.WINDOW_SIZE,
            "store": getattr(store, "database_url", type(store).__name__).split(":", 1)[0],
        }

    return app


app = create_app()
