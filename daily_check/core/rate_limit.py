"""
Request rate limiting (slowapi), keyed by client address.
Shared by main (default limits, middleware) and routers that set tighter per-endpoint limits.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from daily_check.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.default_rate_limit],
    enabled=settings.rate_limit_enabled,
)
