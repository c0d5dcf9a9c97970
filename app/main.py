from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import get_settings
from app.logging_config import setup_logging
from app.middleware import RequestLoggingMiddleware, SessionMiddleware
from app.monitoring import setup_sentry
from app.previews import PreviewStore
from app.ratelimit import limiter
from app.routes import form, pages
from app.routes.pages import templates
from app.sessions import SessionRegistry

# Raises ConfigError when the API key is missing; the service must not start without it
settings = get_settings()

setup_sentry(settings)

logger = setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Release every preview still held by an open form
    app.state.sessions.close_all()


app = FastAPI(title="Local Market Estimator", version="0.1.0", lifespan=lifespan)
app.state.limiter = limiter
app.state.sessions = SessionRegistry(
    PreviewStore(),
    ttl_seconds=settings.session_ttl_seconds,
    max_sessions=settings.max_sessions,
)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SessionMiddleware)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    """Last-resort handler: swap the whole view for the recovery panel."""
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
        extra={"extra_data": {"path": request.url.path}},
    )
    if request.url.path.startswith("/api/"):
        return JSONResponse({"detail": "An unexpected error occurred. Please try again."}, status_code=500)
    context = {"error": repr(exc) if settings.debug else None}
    return templates.TemplateResponse(request, "recovery.html", context, status_code=500)


# Routes
app.include_router(pages.router)
app.include_router(form.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok"}
