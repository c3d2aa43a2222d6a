"""
FinEase Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, error translation
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn finease.main:app`) or the `finease` console script.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Access Log → GZip → CORS │
    │                                                     │
    │  Routes:      GET /   GET /health   /my-transaction │
    │                                                     │
    │  Exception Handlers (single translation point):     │
    │   InvalidArgument→400  Unauthenticated→401          │
    │   InvalidCredential→401  Forbidden→403  others→500  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config validation → optional MongoDB warm-up
    Shutdown: close the cached MongoDB client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from finease import __version__
from finease.config import settings
from finease.database import store_gateway
from finease.exceptions import FinEaseError, InvalidCredential, Unauthenticated
from finease.middleware.logging import RequestLoggingMiddleware
from finease.middleware.request_id import RequestIDMiddleware, request_id_var
from finease.routes import health, transactions

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output goes to stdout, which every serverless and container host captures.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every connection check at DEBUG/INFO
    for name in ("uvicorn.access", "pymongo", "httpx", "httpcore", "urllib3", "google.auth"):
        logging.getLogger(name).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Validate critical configuration (logged, never fatal)
        3. Connect to MongoDB eagerly when MONGO_CONNECT_ON_STARTUP is set;
           otherwise the first authenticated request connects

    Shutdown:
        1. Close the cached MongoDB client
    """
    setup_logging()
    logger.info("FinEase Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: / and /health stay useful for diagnosing the deployment
        logger.error("Configuration error: %s", str(e))

    if settings.mongo_connect_on_startup:
        await store_gateway.warm_up(
            attempts=settings.startup_retry_attempts,
            min_wait=settings.startup_retry_min_wait,
            max_wait=settings.startup_retry_max_wait,
        )

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.port)

    yield

    logger.info("FinEase Backend shutting down...")
    await store_gateway.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP responses.

    Every error body has the shape {"error", "message", "request_id"}.
    Server-side context (driver errors, token failure reasons) is logged and
    never returned. 5xx messages are always generic.
    """

    @app.exception_handler(FinEaseError)
    async def handle_finease_error(request: Request, exc: FinEaseError):
        rid = _request_id(request)
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = {}
        if isinstance(exc, (Unauthenticated, InvalidCredential)):
            headers["WWW-Authenticate"] = "Bearer"

        content = {"error": exc.error_code, "message": exc.message, "request_id": rid}
        if exc.status_code == 400 and "field" in exc.context:
            content["details"] = {"field": exc.context["field"]}
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: the stack trace goes to the log, never to the client."""
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Tests build their own instance and swap the identity verifier and store
    gateway through `app.dependency_overrides`.
    """
    app = FastAPI(
        title="FinEase API",
        description="Personal-finance transaction tracker. Every /my-transaction route "
        "requires a Firebase ID token (Authorization: Bearer <token>).",
        version=__version__,
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers refuse credentialed responses with a wildcard origin
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(transactions.router)

    return app


app = create_app()


def run() -> None:
    """Entry point for the `finease` console script."""
    uvicorn.run(
        "finease.main:app",
        host=settings.backend_host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
