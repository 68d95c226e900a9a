"""
Main FastAPI application for the PaperForum backend.
Handles CORS, rate limiting, security headers, request logging middleware,
lifespan events, and router registration.
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from paperforum.config import settings
from paperforum.database import close_db, init_db
from paperforum.routers import auth, bookmarks, discovery, health, notifications, papers, users
from paperforum.services.background_jobs import build_background_jobs
from paperforum.services.rate_limiter import FixedWindowRateLimiter
from paperforum.services.security import SECURITY_HEADERS, login_tracker
from paperforum.utils.helpers import utcnow

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rate limiters (in-process; reset on restart)
# ---------------------------------------------------------------------------

api_limiter = FixedWindowRateLimiter(
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
)
auth_limiter = FixedWindowRateLimiter(
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    max_requests=settings.AUTH_RATE_LIMIT_MAX_REQUESTS,
)

background_jobs = build_background_jobs([api_limiter, auth_limiter], login_tracker)


# ---------------------------------------------------------------------------
# Startup / shutdown helpers
# ---------------------------------------------------------------------------

async def _check_database() -> bool:
    """Initialise DB tables and verify the connection.  Returns True on success."""
    try:
        await init_db()
        logger.info("✓ Database connection OK")
        return True
    except Exception as exc:
        logger.error("✗ Database connection failed: %s", exc)
        raise


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown event handler."""
    logger.info("=" * 60)
    logger.info("  Starting PaperForum backend …")
    logger.info("=" * 60)

    # 1: Database (required; raises on failure)
    await _check_database()

    # 2: Periodic maintenance
    if settings.BACKGROUND_JOBS_ENABLED:
        background_jobs.start()
    else:
        logger.info("Background jobs disabled")

    logger.info("=" * 60)
    logger.info("  PaperForum backend ready on http://%s:%d", settings.HOST, settings.PORT)
    logger.info("  Swagger UI : http://%s:%d/docs", settings.HOST, settings.PORT)
    logger.info("  Health     : http://%s:%d/api/health", settings.HOST, settings.PORT)
    logger.info("=" * 60)

    yield  # ← server is running

    logger.info("Shutting down PaperForum backend …")
    await background_jobs.stop()
    await close_db()
    logger.info("✓ Shutdown complete.")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="PaperForum API",
    description=(
        "**PaperForum** — research paper publishing and discussion platform.\n\n"
        "Key endpoints:\n"
        "- `POST /api/auth/register` / `POST /api/auth/login` — obtain a bearer token\n"
        "- `GET  /api/papers` — browse published papers\n"
        "- `POST /api/papers` — author a paper\n"
        "- `GET  /api/papers/{id}/cite` — APA / MLA / Chicago / BibTeX / EndNote\n"
        "- `POST /api/user/claim-authorship` — claim imported papers\n"
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# Rate limiting middleware
# ---------------------------------------------------------------------------

def _too_many_requests(retry_after: int) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": "Too many requests", "retryAfter": retry_after},
        headers={"Retry-After": str(retry_after)},
    )


@app.middleware("http")
async def rate_limit(request: Request, call_next):
    """
    Fixed-window limits per client IP on ``/api/`` routes, with a stricter
    limit on ``/api/auth/``.  Auth requests count against both; CORS
    preflights count against neither.
    """
    path = request.url.path
    if (
        not settings.RATE_LIMIT_ENABLED
        or request.method == "OPTIONS"
        or not path.startswith("/api/")
    ):
        return await call_next(request)

    client_ip = request.client.host if request.client else None

    decision = api_limiter.hit(client_ip)
    if not decision.allowed:
        logger.warning("Rate limit exceeded for %s on %s", client_ip, path)
        return _too_many_requests(decision.retry_after)

    if path.startswith("/api/auth/"):
        auth_decision = auth_limiter.hit(client_ip)
        if not auth_decision.allowed:
            logger.warning("Auth rate limit exceeded for %s on %s", client_ip, path)
            return _too_many_requests(auth_decision.retry_after)

    return await call_next(request)


# ---------------------------------------------------------------------------
# Security headers
# ---------------------------------------------------------------------------

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip noisy health-check polling from the frontend
    if request.url.path not in ("/api/health/", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# CORS (added last so it wraps the middleware above)
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count", "X-Page", "X-Total-Pages", "Retry-After"],
)


# ---------------------------------------------------------------------------
# Global exception handler
# ---------------------------------------------------------------------------

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": None if settings.is_production else str(exc),
            "path": str(request.url.path),
            "timestamp": utcnow().isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,        prefix="/api/health",        tags=["Health"])
app.include_router(auth.router,          prefix="/api/auth",          tags=["Auth"])
app.include_router(papers.router,        prefix="/api/papers",        tags=["Papers"])
app.include_router(bookmarks.router,     prefix="/api/bookmarks",     tags=["Bookmarks"])
app.include_router(users.router,         prefix="/api/user",          tags=["User"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(discovery.router,     prefix="/api",               tags=["Discovery"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root — returns basic service info."""
    return {
        "name": "PaperForum API",
        "version": "0.1.0",
        "description": "Research Paper Publishing Platform Backend",
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "auth": "/api/auth",
            "papers": "/api/papers",
            "bookmarks": "/api/bookmarks",
            "user": "/api/user",
            "notifications": "/api/notifications",
            "trending_topics": "/api/trending-topics",
            "journals": "/api/journals",
        },
    }


def run() -> None:
    import uvicorn

    uvicorn.run(
        "paperforum.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=not settings.is_production,
        log_level="info",
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    run()
