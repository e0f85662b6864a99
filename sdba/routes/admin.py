import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlmodel.ext.asyncio.session import AsyncSession

from sdba.auth.csrf import verify_csrf
from sdba.auth.dependencies import require_admin
from sdba.auth.ratelimit import ADMIN_RATE_LIMIT, limiter
from sdba.db.database import get_session
from sdba.schemas import ApproveRequest, ExportRequest, RejectRequest
from sdba.services.approval import approve, reject
from sdba.services.export import CSV_MEDIA_TYPE, build_export
from sdba.services.listing import get_counters, list_registrations, parse_season, validate_pagination

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(verify_csrf)],
)


@router.post("/approve")
@limiter.limit(ADMIN_RATE_LIMIT)
async def approve_registration_route(
    request: Request,
    payload: ApproveRequest,
    session: AsyncSession = Depends(get_session),
    user: Dict[str, Any] = Depends(require_admin),
) -> Dict[str, Any]:
    return await approve(session, payload, user)


@router.post("/reject")
@limiter.limit(ADMIN_RATE_LIMIT)
async def reject_registration_route(
    request: Request,
    payload: RejectRequest,
    session: AsyncSession = Depends(get_session),
    user: Dict[str, Any] = Depends(require_admin),
) -> Dict[str, Any]:
    return await reject(session, payload, user)


@router.get("/list")
@limiter.limit(ADMIN_RATE_LIMIT)
async def list_registrations_route(
    request: Request,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(default=None, alias="pageSize"),
    q: Optional[str] = None,
    status: str = Query(default="all", pattern="^(all|pending|approved|rejected)$"),
    event: str = Query(default="all", pattern="^(all|tn|wu|sc)$"),
    season: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
    user: Dict[str, Any] = Depends(require_admin),
) -> Dict[str, Any]:
    page_number, size = validate_pagination(page, page_size)
    return await list_registrations(
        session,
        page=page_number,
        page_size=size,
        q=q,
        status=status,
        event=event,
        season=parse_season(season),
    )


@router.get("/counters")
@limiter.limit(ADMIN_RATE_LIMIT)
async def counters_route(
    request: Request,
    session: AsyncSession = Depends(get_session),
    user: Dict[str, Any] = Depends(require_admin),
) -> Dict[str, Any]:
    return await get_counters(session)


@router.post("/export")
@limiter.limit(ADMIN_RATE_LIMIT)
async def export_route(
    request: Request,
    payload: ExportRequest,
    session: AsyncSession = Depends(get_session),
    user: Dict[str, Any] = Depends(require_admin),
) -> Response:
    filename, content = await build_export(session, payload)
    logger.info("Export %s requested by %s", filename, user.get("id"))

    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-store",
    }
    return Response(content=content, media_type=CSV_MEDIA_TYPE, headers=headers)
