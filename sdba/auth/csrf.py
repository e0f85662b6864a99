"""CSRF protection using the double-submit cookie pattern.

A token is ``<random hex>.<hmac>``; the client receives it from
``GET /api/csrf-token`` both in the body and as a cookie and must echo it in
the ``X-CSRF-Token`` header on every state-changing admin request.
"""

import hashlib
import hmac
import logging
import secrets
from typing import Optional

from fastapi import Request, Response

from sdba import config
from sdba.errors import ApiError

logger = logging.getLogger(__name__)

CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"
SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}

_DEVELOPMENT_SECRET = "development-csrf-secret-change-in-production"


def get_csrf_secret() -> str:
    if config.CSRF_SECRET:
        return config.CSRF_SECRET
    if config.IS_PRODUCTION:
        raise RuntimeError(
            "CSRF_SECRET environment variable is required in production"
        )
    return _DEVELOPMENT_SECRET


def _sign(value: str) -> str:
    return hmac.new(get_csrf_secret().encode(), value.encode(), hashlib.sha256).hexdigest()


def generate_csrf_token() -> str:
    token = secrets.token_hex(32)
    return f"{token}.{_sign(token)}"


def verify_csrf_token(token: Optional[str]) -> bool:
    if not token or not isinstance(token, str):
        return False

    parts = token.split(".")
    if len(parts) != 2:
        return False

    value, signature = parts
    return hmac.compare_digest(signature.encode("utf-8"), _sign(value).encode("utf-8"))


def set_csrf_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        CSRF_COOKIE_NAME,
        token,
        httponly=True,
        secure=config.IS_PRODUCTION,
        samesite="strict",
        path="/",
    )


def requires_csrf_protection(method: str) -> bool:
    return method.upper() not in SAFE_METHODS


def verify_csrf_request(request: Request) -> bool:
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
    header_token = request.headers.get(CSRF_HEADER_NAME)

    if not cookie_token or not header_token:
        return False
    if not hmac.compare_digest(cookie_token.encode("utf-8"), header_token.encode("utf-8")):
        return False
    return verify_csrf_token(cookie_token)


async def verify_csrf(request: Request) -> None:
    """Router dependency rejecting unsafe requests without a valid token."""
    if not requires_csrf_protection(request.method):
        return
    if not verify_csrf_request(request):
        logger.warning("CSRF validation failed for %s", request.url.path)
        raise ApiError(403, "CSRF token validation failed", "CSRF_ERROR")
