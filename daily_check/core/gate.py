"""
Session gate: every path that is not public needs a valid session token.
API paths answer 401 with the JSON envelope; page paths redirect to /login?callbackUrl=<path>.
"""

import logging
from urllib.parse import urlencode

from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from daily_check.core.auth import decode_token, extract_token
from daily_check.schemas.envelope import error_envelope

logger = logging.getLogger(__name__)

HOME_REDIRECT = "/log-activity"
LOGIN_PATH = "/login"

PUBLIC_PATHS = frozenset(
    {
        "/login",
        "/register",
        "/forgot-password",
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/metrics",
        "/api/v1/clear-test-data",  # guarded by app_env inside the handler
    }
)
PUBLIC_PREFIXES = ("/api/v1/auth/", "/metrics/", "/docs/")


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


def session_user(request) -> dict | None:
    """Decoded `user` claim of the request's session token, or None if absent/invalid."""
    token = extract_token(request)
    if not token:
        return None
    try:
        payload = decode_token(token)
    except Exception as e:
        logger.debug("Invalid session token on %s: %s", request.url.path, e)
        return None
    return payload.get("user") or None


class AuthGateMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        path = request.url.path
        if path == "/":
            return RedirectResponse(HOME_REDIRECT, status_code=307)
        if request.method == "OPTIONS" or is_public_path(path):
            return await call_next(request)

        user = session_user(request)
        if user is None:
            if path.startswith("/api/"):
                return JSONResponse(status_code=401, content=error_envelope("Not authenticated"))
            query = urlencode({"callbackUrl": path})
            return RedirectResponse(f"{LOGIN_PATH}?{query}", status_code=307)

        request.state.session_user = user
        return await call_next(request)
