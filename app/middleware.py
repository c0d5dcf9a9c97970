import logging
import secrets
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("estimator")

SESSION_COOKIE_NAME = "estimator_session"
SESSION_MAX_AGE = 86400  # 1 day

SKIP_LOG_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}
# The page fetches the preview again after every image change
SKIP_LOG_PREFIXES = ("/api/previews/",)
UPLOAD_PATH = "/api/form/image"


class SessionMiddleware(BaseHTTPMiddleware):
    """Assigns a session cookie to every visitor so each browser gets its own form."""

    async def dispatch(self, request: Request, call_next) -> Response:
        # Skip session processing for CORS preflight requests
        if request.method == "OPTIONS":
            return await call_next(request)

        session_id = request.cookies.get(SESSION_COOKIE_NAME)
        new_session = False

        if not session_id:
            session_id = secrets.token_urlsafe(24)
            new_session = True

        request.state.session_id = session_id

        response: Response = await call_next(request)

        if new_session:
            response.set_cookie(
                key=SESSION_COOKIE_NAME,
                value=session_id,
                max_age=SESSION_MAX_AGE,
                httponly=True,
                samesite="lax",
                secure=request.url.scheme == "https",
                path="/",
            )

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status code, duration, and session for each request.

    Image uploads also log their declared size, which is what bounds the
    memory a session holds.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = round((time.time() - start) * 1000)

        path = request.url.path
        if path in SKIP_LOG_PATHS or path.startswith(SKIP_LOG_PREFIXES):
            return response

        session_id = getattr(request.state, "session_id", None)
        extra_data = {
            "method": request.method,
            "path": path,
            "status": response.status_code,
            "duration_ms": duration_ms,
            "session": session_id[:8] if session_id else None,
        }
        if path == UPLOAD_PATH:
            extra_data["upload_bytes"] = request.headers.get("content-length")
        logger.info(f"{request.method} {path} {response.status_code}", extra={"extra_data": extra_data})
        return response
