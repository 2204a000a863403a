"""
Gallery Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn gallery.main:app --port 5000),
       or through the gallery-server console script, which honours PORT.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────────┐ ┌──────────────┐ ┌──────────────────┐  │
    │  │  Request ID  │→│   Logging    │→│      CORS        │  │
    │  └──────────────┘ └──────────────┘ └──────────────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌────────────┐ ┌──────────────────────┐ ┌────────────┐  │
    │  │ POST login │ │ /api/images (+admin) │ │ GET health │  │
    │  └────────────┘ └──────────────────────┘ └────────────┘  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ Validation→400 │ Auth→401/403 │ NotFound→404 │ 500 │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, never fatal)
    3. Create the upload staging directory
    4. Select the storage mode and seed accounts (once per process)

    Shutdown:
    1. Dispose the database engine, if the persistent store was selected
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gallery import __version__
from gallery.config import settings
from gallery.exceptions import (
    AuthenticationError,
    DatabaseError,
    FileStorageError,
    GalleryError,
    InsufficientPrivilegeError,
    InvalidTokenError,
    MediaServiceError,
    NotFoundError,
    ValidationError,
)
from gallery.middleware.logging import RequestLoggingMiddleware
from gallery.middleware.request_id import RequestIDMiddleware, request_id_var
from gallery.routes import auth, health, images
from gallery.services.cloudinary_service import build_media_service
from gallery.services.storage_mode import build_gallery_state
from gallery.services.upload_service import UploadService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: 2024-01-15T12:00:00 [INFO] gallery.routes.images: message
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Third-party chatter
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Gallery Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: listing and login work without the media host
        logger.error("Configuration error: %s", str(e))

    uploads = UploadService(
        upload_dir=settings.upload_dir,
        max_file_size=settings.max_file_size,
    )
    uploads.ensure_upload_dir()

    state = await build_gallery_state(settings, media=build_media_service(), uploads=uploads)
    app.state.gallery = state

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Gallery Backend shutting down...")
    await state.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        body["details"] = details
    return body


# Context keys safe to show a client; driver messages and paths stay in the log
_DIAGNOSTIC_KEYS = ("operation", "error_type")


def _diagnostic_details(context: Dict[str, Any]) -> Dict[str, Any]:
    return {key: context[key] for key in _DIAGNOSTIC_KEYS if key in context}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the GalleryError hierarchy onto HTTP responses.

    Handler hierarchy:
        ValidationError, RequestValidationError → 400 validation_error
        AuthenticationError (incl. bad login)   → 401 unauthorized
        InvalidTokenError                       → 403 forbidden
        InsufficientPrivilegeError              → 403 forbidden
        NotFoundError                           → 404 not_found
        MediaServiceError                       → 500 media_service_error
        FileStorageError / DatabaseError        → 500 server_error
        GalleryError (base)                     → 500 server_error
        Exception (fallback)                    → 500 internal_server_error

    Auth failures never say which half of a login was wrong, and no handler
    echoes a token or password.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        logger.warning("[%s] Request validation error: %s (%s)", request_id_var.get(""), message, field)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", message, {"field": field} if field else None),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body("unauthorized", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(InvalidTokenError)
    async def handle_invalid_token(request: Request, exc: InvalidTokenError):
        return JSONResponse(status_code=403, content=_error_body("forbidden", exc.message))

    @app.exception_handler(InsufficientPrivilegeError)
    async def handle_insufficient_privilege(request: Request, exc: InsufficientPrivilegeError):
        logger.warning("[%s] Non-admin attempted %s %s", request_id_var.get(""), request.method, request.url.path)
        return JSONResponse(status_code=403, content=_error_body("forbidden", exc.message))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_error_body("not_found", exc.message))

    @app.exception_handler(MediaServiceError)
    async def handle_media_error(request: Request, exc: MediaServiceError):
        logger.error("[%s] Media service error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("media_service_error", exc.message, exc.context),
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("[%s] File storage error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message, _diagnostic_details(exc.context)),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "server_error",
                "An internal error occurred. Please try again later.",
                _diagnostic_details(exc.context),
            ),
        )

    @app.exception_handler(GalleryError)
    async def handle_gallery_error(request: Request, exc: GalleryError):
        logger.error("[%s] Unhandled gallery error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(status_code=500, content=_error_body("server_error", exc.message))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Assemble middleware, exception handlers and routers.

    The lifespan handler builds app.state.gallery; tests that skip the
    lifespan (ASGITransport) assign a state of their own instead.
    """
    app = FastAPI(
        title="Image Gallery API",
        description=(
            "Image gallery backend: public listing, admin-only upload, retitle "
            "and delete, with images hosted on Cloudinary."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(images.router)
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve on BACKEND_HOST:PORT (default 0.0.0.0:5000)."""
    import uvicorn

    uvicorn.run("gallery.main:app", host=settings.backend_host, port=settings.port)


if __name__ == "__main__":
    run()
