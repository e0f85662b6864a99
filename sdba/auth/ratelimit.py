from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from sdba import config

PUBLIC_RATE_LIMIT = "10 per 10 seconds"
ADMIN_RATE_LIMIT = "100 per minute"

limiter = Limiter(key_func=get_remote_address, enabled=config.RATE_LIMIT_ENABLED)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"ok": False, "error": f"Rate limit exceeded: {exc.detail}", "code": "RATE_LIMITED"},
    )
