from collections import defaultdict
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import exists, func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from sdba.models import TEAM_MODELS_BY_EVENT, EventType, RegistrationMeta, RegistrationStatus
from sdba.models.timestamps import utc_now
from sdba.sanitize import escape_like_pattern

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
LIKE_ESCAPE = "\\"


def _to_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def validate_pagination(page: Any = None, page_size: Any = None) -> Tuple[int, int]:
    """Clamp raw query values to ``page >= 1`` and ``1 <= page_size <= 100``."""
    page_number = max(1, _to_int(page, 1))
    size = min(MAX_PAGE_SIZE, max(1, _to_int(page_size, DEFAULT_PAGE_SIZE)))
    return page_number, size


def parse_season(value: Any) -> Optional[int]:
    season = _to_int(value, 0)
    if 2000 <= season <= 2100:
        return season
    return None


def _search_filter(q: str):
    pattern = f"%{escape_like_pattern(q, LIKE_ESCAPE)}%"
    clauses = [RegistrationMeta.org_name.ilike(pattern, escape=LIKE_ESCAPE)]
    for team_model in TEAM_MODELS_BY_EVENT.values():
        clauses.append(
            exists().where(
                team_model.registration_id == RegistrationMeta.id,
                or_(
                    team_model.team_name.ilike(pattern, escape=LIKE_ESCAPE),
                    team_model.team_code.ilike(pattern, escape=LIKE_ESCAPE),
                    team_model.email_1.ilike(pattern, escape=LIKE_ESCAPE),
                ),
            )
        )
    return or_(*clauses)


def build_registration_filters(
    q: Optional[str] = None,
    status: Optional[str] = None,
    event: Optional[str] = None,
    season: Optional[int] = None,
) -> List:
    filters = []
    if status and status != "all":
        filters.append(RegistrationMeta.status == RegistrationStatus(status))
    if event and event != "all":
        filters.append(RegistrationMeta.event_type == EventType(event).value)
    if season is not None:
        filters.append(RegistrationMeta.season == season)
    if q and q.strip():
        filters.append(_search_filter(q.strip()))
    return filters


async def _team_codes_by_registration(
    session: AsyncSession, registrations: Sequence[RegistrationMeta]
) -> Dict[UUID, List[str]]:
    codes: Dict[UUID, List[str]] = defaultdict(list)
    ids_by_event: Dict[EventType, List[UUID]] = defaultdict(list)
    for registration in registrations:
        ids_by_event[EventType(registration.event_type)].append(registration.id)

    for event_type, ids in ids_by_event.items():
        team_model = TEAM_MODELS_BY_EVENT[event_type]
        result = await session.exec(
            select(team_model.registration_id, team_model.team_code)
            .where(team_model.registration_id.in_(ids))
            .order_by(team_model.team_code)
        )
        for registration_id, team_code in result.all():
            if team_code:
                codes[registration_id].append(team_code)
    return codes


def _project(registration: RegistrationMeta, team_codes: List[str]) -> Dict[str, Any]:
    managers = registration.managers_json or {}
    return {
        "id": registration.id,
        "season": registration.season,
        "event_type": registration.event_type,
        "category": registration.race_category,
        "num_teams": registration.num_teams,
        "team_codes": team_codes,
        "org_name": registration.org_name,
        "org_address": registration.org_address,
        "manager_name": managers.get("manager1_name"),
        "manager_email": managers.get("manager1_email"),
        "manager_mobile": managers.get("manager1_mobile"),
        "status": registration.status.value,
        "approved_by": registration.approved_by,
        "approved_at": registration.approved_at,
        "created_at": registration.created_at,
    }


async def list_registrations(
    session: AsyncSession,
    page: int,
    page_size: int,
    q: Optional[str] = None,
    status: Optional[str] = None,
    event: Optional[str] = None,
    season: Optional[int] = None,
) -> Dict[str, Any]:
    filters = build_registration_filters(q=q, status=status, event=event, season=season)

    total_result = await session.exec(
        select(func.count()).select_from(RegistrationMeta).where(*filters)
    )
    total = total_result.one()

    result = await session.exec(
        select(RegistrationMeta)
        .where(*filters)
        .order_by(RegistrationMeta.created_at.desc(), RegistrationMeta.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    registrations = result.all()
    team_codes = await _team_codes_by_registration(session, registrations)

    return {
        "ok": True,
        "page": page,
        "pageSize": page_size,
        "total": total,
        "items": [_project(registration, team_codes.get(registration.id, [])) for registration in registrations],
    }


async def get_counters(session: AsyncSession, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utc_now()
    midnight = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)

    result = await session.exec(
        select(RegistrationMeta.status, func.count()).group_by(RegistrationMeta.status)
    )
    by_status = {status: count for status, count in result.all()}

    new_today_result = await session.exec(
        select(func.count()).select_from(RegistrationMeta).where(RegistrationMeta.created_at >= midnight)
    )

    return {
        "ok": True,
        "total": sum(by_status.values()),
        "pending": by_status.get(RegistrationStatus.PENDING, 0),
        "approved": by_status.get(RegistrationStatus.APPROVED, 0),
        "rejected": by_status.get(RegistrationStatus.REJECTED, 0),
        "new_today": new_today_result.one(),
    }
