from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from events_api.core.config import Settings

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def make_limiter(settings: Settings) -> Limiter:
    """Per-client limit shared by every route, counted in Redis."""
    return Limiter(
        key_func=get_remote_address,
        application_limits=[
            f"{settings.rate_limit_max} per {settings.rate_limit_window_seconds} seconds"
        ],
        storage_uri=settings.rate_limit_storage_uri or settings.redis_url,
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"error": RATE_LIMIT_MESSAGE})
