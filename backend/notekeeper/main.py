"""
NoteKeeper — FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers.
Who:   uvicorn (uvicorn notekeeper.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware: CORS → GZip → Req ID → Logging → Auth       │
    │                                                          │
    │  Routes:                                                 │
    │   GET /  POST /notes  POST /notes/{id}/delete  (page)    │
    │   /api/notes  /files/{key}  /auth/*  /health             │
    │                                                          │
    │  Exception Handlers:                                     │
    │   Validation→400  Auth→401/redirect  NotFound→404        │
    │   GraphQL→502  ObjectStorage→502  other→500              │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check (logged, not fatal), local
              storage directory.
    Shutdown: close the GraphQL client's connections.
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notekeeper import __version__
from notekeeper.config import settings
from notekeeper.exceptions import (
    AuthenticationError,
    GraphQLError,
    NoteKeeperError,
    NotFoundError,
    ObjectStorageError,
    ValidationError,
)
from notekeeper.middleware.auth import AuthenticatorMiddleware, is_api_request, sign_in_redirect
from notekeeper.middleware.logging import RequestLoggingMiddleware
from notekeeper.middleware.request_id import RequestIDMiddleware, request_id_var
from notekeeper.routes import auth, health, notes, views
from notekeeper.services.notes_api import notes_api
from notekeeper.services.session_store import session_store

logger = logging.getLogger(__name__)

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "botocore", "boto3", "urllib3")


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole application, once, at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s

    The SDK and HTTP client loggers are raised to WARNING; at DEBUG they
    log every connection and request signature.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("NoteKeeper %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: /health still answers and explains what is unreachable
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    if settings.storage_backend == "local":
        storage = Path(settings.storage_root)
        storage.mkdir(parents=True, exist_ok=True)
        logger.info("Local object storage: %s", storage.resolve())
    else:
        logger.info("S3 object storage: s3://%s/%s", settings.storage_bucket, settings.storage_prefix)

    logger.info("GraphQL endpoint: %s (%s)", settings.graphql_endpoint, settings.graphql_auth_mode)
    logger.info("Authentication: %s", "Cognito" if settings.auth_enabled else "disabled (anonymous sessions)")
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("NoteKeeper shutting down...")
    await notes_api.close()
    session_store.clear()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "details": details,
            "request_id": request_id_var.get(""),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP responses.

    Handler hierarchy:
        ValidationError      → 400
        AuthenticationError  → 401 (page requests: redirect to sign-in)
        NotFoundError        → 404
        GraphQLError         → 502
        ObjectStorageError   → 502
        NoteKeeperError      → 500
        Exception            → 500

    Upstream context (GraphQL errors, bucket names, SDK error types) is
    logged server-side and never returned to the client.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return error_response(400, "validation_error", exc.message, {"field": exc.field} if exc.field else None)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        """
        No usable identity. With Cognito enabled the session is dropped and
        page requests go back to the sign-in form; otherwise (API key mode)
        a redirect would loop, so everyone gets the 401.
        """
        rid = request_id_var.get("")
        logger.warning("[%s] Authentication error: %s | Context: %s", rid, exc.message, exc.context)
        if settings.auth_enabled:
            session = getattr(request.state, "user_session", None)
            if session is not None:
                session_store.discard(session.session_id)
            if not is_api_request(request):
                return sign_in_redirect(request)
        return error_response(401, "authentication_required", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(GraphQLError)
    async def handle_graphql_error(request: Request, exc: GraphQLError):
        rid = request_id_var.get("")
        logger.error("[%s] GraphQL error: %s | Context: %s", rid, exc.message, exc.context)
        return error_response(502, "upstream_error", "The notes API request failed. Please try again later.")

    @app.exception_handler(ObjectStorageError)
    async def handle_object_storage_error(request: Request, exc: ObjectStorageError):
        rid = request_id_var.get("")
        logger.error("[%s] Object storage error: %s | Context: %s", rid, exc.message, exc.context)
        return error_response(502, "storage_error", exc.message)

    @app.exception_handler(NoteKeeperError)
    async def handle_app_error(request: Request, exc: NoteKeeperError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="NoteKeeper",
        description=(
            "Notes with optional images. Records live behind a GraphQL API, "
            "images in object storage; sign-in is delegated to Amazon Cognito."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: CORS → GZip → RequestID → Logging → Authenticator
    app.add_middleware(AuthenticatorMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(app)

    app.include_router(views.router)
    app.include_router(notes.router)
    app.include_router(notes.files_router)
    app.include_router(auth.router)
    app.include_router(health.router)

    return app


app = create_app()
