import logging
from typing import Any, Dict, Optional
from uuid import UUID

from jose import jwt, JWTError
from fastapi import Depends, Header, Request

from sdba import config
from sdba.errors import forbidden

logger = logging.getLogger(__name__)

SUPABASE_JWT_SECRET = config.SUPABASE_JWT_SECRET

if not SUPABASE_JWT_SECRET:
    raise RuntimeError("SUPABASE_JWT_SECRET is not set in environment variables")

SESSION_COOKIE_NAME = "sb-access-token"


def is_admin_user(user: Optional[Dict[str, Any]]) -> bool:
    if not user:
        return False

    app_metadata = user.get("app_metadata") or {}
    user_metadata = user.get("user_metadata") or {}

    roles = app_metadata.get("roles") or user_metadata.get("roles") or []
    role = app_metadata.get("role") or user_metadata.get("role")
    return "admin" in roles or role == "admin" or user_metadata.get("is_admin") is True


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1]
    return request.cookies.get(SESSION_COOKIE_NAME)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> Optional[Dict[str, Any]]:
    token = _extract_token(request, authorization)
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            options={"verify_aud": False}
        )
    except JWTError as e:
        logger.warning("JWT decode error: %s", e)
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    return {
        "id": user_id,
        "email": payload.get("email"),
        "app_metadata": payload.get("app_metadata") or {},
        "user_metadata": payload.get("user_metadata") or {},
    }


def current_user_id(user: Dict[str, Any]) -> UUID:
    try:
        return UUID(str(user["id"]))
    except (KeyError, ValueError) as exc:
        raise forbidden() from exc


async def require_admin(user=Depends(get_current_user)) -> Dict[str, Any]:
    if not is_admin_user(user):
        raise forbidden()
    return user
