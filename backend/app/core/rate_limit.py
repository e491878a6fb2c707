"""
Shared rate limiting configuration.

Defines the global SlowAPI limiter instance to avoid circular imports between
routers and the FastAPI app. Rejections (RateLimitExceeded) are rendered by the
handlers in app.core.errors.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Global limiter instance reused by the app and routers
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/hour"],
    enabled=settings.rate_limit_enabled,
)
