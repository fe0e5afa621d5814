"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from docbridge.callback.routes import router as callback_router
from docbridge.config import get_settings
from docbridge.limiter import limiter
from docbridge.logging_config import setup_logging
from docbridge.preview.routes import router as preview_router
from docbridge.viewer.hooks import FRAME_DOMAINS, frame_src_policy
from docbridge.viewer.routes import router as viewer_router

log = logging.getLogger(__name__)

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration problems on startup; nothing to initialize otherwise."""
    settings = get_settings()
    log.info("Startup: storage=%s document_server=%s", settings.storage_base_path, settings.document_server_url or "-")
    if not settings.jwt_secret:
        log.warning("jwt_secret is not set: callback links and previews are disabled")
    yield
    log.info("Shutdown")


app = FastAPI(title="Document Server Bridge", version="0.1.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers and the viewer frame policy to all responses."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Content-Security-Policy"] = frame_src_policy(FRAME_DOMAINS)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Return generic 500 without leaking stack trace or internals."""
    if isinstance(exc, HTTPException):
        raise exc
    log.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(callback_router)
app.include_router(preview_router)
app.include_router(viewer_router)


@app.get("/health")
@limiter.exempt
def health() -> JSONResponse:
    """Health check for Docker and reverse proxy. Exempt from rate limiting."""
    return JSONResponse(content={"status": "ok"})
