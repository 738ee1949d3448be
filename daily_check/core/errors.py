"""Exception handlers: every error leaves the API as {success: false, message, ...}."""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from daily_check.config import settings
from daily_check.schemas.envelope import error_envelope

logger = logging.getLogger(__name__)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        body = error_envelope(str(detail.get("message", "")), **{k: v for k, v in detail.items() if k != "message"})
    else:
        body = error_envelope(str(detail))
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


def _format_validation_error(err: dict) -> str:
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "; ".join(_format_validation_error(e) for e in errors) or "Invalid request"
    return JSONResponse(status_code=400, content=error_envelope(message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    message = "Internal server error"
    if settings.debug:
        message += f": {type(exc).__name__}: {exc}"
    return JSONResponse(status_code=500, content=error_envelope(message))


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.info("Rate limit exceeded on %s: %s", request.url.path, exc.detail)
    return JSONResponse(
        status_code=429,
        content=error_envelope(f"Too many requests: {exc.detail}"),
        headers={"Retry-After": "60"},
    )
