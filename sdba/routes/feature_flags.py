from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from sdba.auth.csrf import verify_csrf
from sdba.auth.dependencies import current_user_id, require_admin
from sdba.auth.ratelimit import ADMIN_RATE_LIMIT, limiter
from sdba.db.database import get_session
from sdba.schemas import FeatureFlagUpdate
from sdba.services.feature_flags import (
    audit_to_dict,
    flag_to_dict,
    get_all_feature_flags,
    get_feature_flag_audit_log,
    get_feature_flag_or_404,
    update_feature_flag,
)

router = APIRouter(
    prefix="/api/admin/feature-flags",
    tags=["Feature Flags"],
    dependencies=[Depends(verify_csrf)],
)


@router.get("")
@limiter.limit(ADMIN_RATE_LIMIT)
async def get_feature_flags_route(
    request: Request,
    flag_key: Optional[str] = Query(default=None, alias="flagKey"),
    include_audit: bool = Query(default=False, alias="includeAudit"),
    session: AsyncSession = Depends(get_session),
    user: Dict[str, Any] = Depends(require_admin),
) -> Dict[str, Any]:
    if not flag_key:
        flags = await get_all_feature_flags(session)
        return {"ok": True, "flags": [flag_to_dict(flag) for flag in flags]}

    flag = await get_feature_flag_or_404(session, flag_key)
    response: Dict[str, Any] = {"ok": True, "flag": flag_to_dict(flag)}
    if include_audit:
        audit = await get_feature_flag_audit_log(session, flag_key)
        response["audit"] = [audit_to_dict(entry) for entry in audit]
    return response


@router.patch("")
@limiter.limit(ADMIN_RATE_LIMIT)
async def update_feature_flag_route(
    request: Request,
    payload: FeatureFlagUpdate,
    session: AsyncSession = Depends(get_session),
    user: Dict[str, Any] = Depends(require_admin),
) -> Dict[str, Any]:
    flag = await update_feature_flag(session, payload, current_user_id(user))
    return {"ok": True, "flag": flag_to_dict(flag)}
