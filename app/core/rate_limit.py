"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.core.config import get_settings

settings = get_settings()


def get_real_client_ip(request: Request) -> str:
    """Get the real client IP address, handling proxies.

    Checks X-Forwarded-For and X-Real-IP headers before falling back
    to the direct client address.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # The first entry is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_real_client_ip,
    default_limits=["1000/hour"],
    storage_uri=settings.rate_limit_storage_uri or settings.redis_url,
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)

# Rate limit constants, used as decorators: @limiter.limit(RATE_LIMIT_AUTH)

# Sign-in endpoints - prevent brute force
RATE_LIMIT_AUTH = "20/minute"

# Bookmark reads and deletes
RATE_LIMIT_BOOKMARKS = "100/minute"

# Bookmark creation - prevent spam
RATE_LIMIT_CREATE_BOOKMARK = "60/minute"

# Summaries call a paid upstream API
RATE_LIMIT_SUMMARIZE = "10/minute"
