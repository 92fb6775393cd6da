"""
Quill API

Blog platform backend: posts, comments, likes, and AI page redesign.
"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quill.config import get_settings
from quill.db import check_database_connectivity, init_db
from quill.middleware import RequestIDMiddleware, SecurityHeadersMiddleware, configure_logging
from quill.routers import ai_design, comments, likes, posts, users, website
from quill.services.errors import QuillError
from quill.services.events import WILDCARD, get_event_bus, log_event

logger = logging.getLogger(__name__)

settings = get_settings()

SERVICE_NAME = "quill-api"
VERSION = "0.1.0"

# (response body, time computed)
_health_cache: tuple[dict[str, Any], float] | None = None
_HEALTH_CACHE_TTL = 30  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging, create tables, and hook the event logger."""
    configure_logging(logging.DEBUG if get_settings().debug else logging.INFO)
    init_db()
    unsubscribe = get_event_bus().subscribe(WILDCARD, log_event)
    logger.info("Quill API started (environment=%s)", get_settings().environment)
    yield
    unsubscribe()


app = FastAPI(
    title="Quill API",
    description="Blog platform with AI-redesignable post pages",
    version=VERSION,
    lifespan=lifespan,
)

# Security headers wrap every response, including error pages
app.add_middleware(SecurityHeadersMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request ID (added last, so it runs first as the outermost middleware)
app.add_middleware(RequestIDMiddleware)

# Routers
app.include_router(posts.router, prefix="/api")
app.include_router(ai_design.router, prefix="/api")
app.include_router(comments.router, prefix="/api")
app.include_router(likes.router, prefix="/api")
app.include_router(website.router, prefix="/api")
app.include_router(users.router, prefix="/api")


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


@app.exception_handler(QuillError)
async def quill_error_handler(request: Request, exc: QuillError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        message = f"{field}: {message}" if field else message
    else:
        message = "Invalid request"
    return _error(400, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


def _check_config() -> str:
    """'ok' when database, auth, and LLM settings are all present."""
    s = get_settings()
    if s.database_url and s.auth_configured and s.llm_configured:
        return "ok"
    return "fail"


def _run_health_checks() -> dict[str, Any]:
    """Config and database checks, cached for _HEALTH_CACHE_TTL seconds."""
    global _health_cache
    now = time.time()
    if _health_cache is not None:
        cached_result, cached_at = _health_cache
        if now - cached_at < _HEALTH_CACHE_TTL:
            return cached_result

    config_status = _check_config()
    database_status = "ok" if check_database_connectivity() else "fail"

    checks = {"config": config_status, "database": database_status}
    failed = [k for k, v in checks.items() if v != "ok"]

    if database_status != "ok":
        overall = "unhealthy"
    elif failed:
        overall = "degraded"
    else:
        overall = "ok"
    if failed:
        logger.warning("Health check %s, failed: %s", overall, ", ".join(failed))

    result: dict[str, Any] = {
        "status": overall,
        "service": SERVICE_NAME,
        "version": VERSION,
        "checks": checks,
    }
    _health_cache = (result, now)
    return result


@app.get("/api/health")
async def health_check() -> JSONResponse:
    """Service status; 503 only when the database is unreachable."""
    result = _run_health_checks()
    status_code = 200 if result["status"] in ("ok", "degraded") else 503
    return JSONResponse(content=result, status_code=status_code)
