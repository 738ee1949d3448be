import logging
import sys
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from daily_check.api.v1 import auth, checkins, maintenance, meals, sleep, summary, users, verification

# Package loggers (verification, SMS, gate) print to stdout
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logging.getLogger("daily_check").setLevel(logging.DEBUG)
from daily_check.config import settings
from daily_check.core.errors import (
    http_exception_handler,
    rate_limit_exceeded_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from daily_check.core.gate import AuthGateMiddleware
from daily_check.core.rate_limit import limiter
from daily_check.db.session import init_db
from daily_check.services.http_client import close_http_client, init_http_client
from prometheus_client import make_asgi_app

logger = logging.getLogger("daily_check.main")

scheduler = AsyncIOScheduler()


async def scheduled_verification_cleanup():
    """Delete expired verification requests."""
    from daily_check.services.verification import run_verification_cleanup

    await run_verification_cleanup()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.is_production:
        if not settings.encryption_key or len(settings.encryption_key) < 32:
            raise RuntimeError(
                "ENCRYPTION_KEY must be set in production (min 32 chars). "
                'Generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"'
            )
        settings.validate_jwt_config()
        if settings.verification_bypass_code:
            logger.warning("VERIFICATION_BYPASS_CODE is set but ignored in production")
    await init_db()
    init_http_client(timeout=30.0)

    scheduler.add_job(
        scheduled_verification_cleanup,
        "interval",
        minutes=settings.verification_cleanup_interval_minutes,
        id="verification_cleanup",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Daily Check API started (env=%s, sms_provider=%s)", settings.app_env, settings.sms_provider)
    yield
    scheduler.shutdown()
    await close_http_client()


app = FastAPI(
    title="Daily Check API",
    description="Daily wellbeing log for parents: meals, sleep and check-ins, with phone-verified accounts",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)
app.add_middleware(AuthGateMiddleware)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=500)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=()"
        if settings.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()] if settings.cors_origins else ["*"]
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth.router, prefix="/api/v1")
app.include_router(verification.router, prefix="/api/v1")
app.include_router(meals.router, prefix="/api/v1")
app.include_router(sleep.router, prefix="/api/v1")
app.include_router(checkins.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(summary.router, prefix="/api/v1")
app.include_router(maintenance.router, prefix="/api/v1")

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
@limiter.exempt
def health(request: Request):
    return {"status": "ok"}
