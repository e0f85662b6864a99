"""Registration state transitions.

Both transitions are a single conditional ``UPDATE ... WHERE status =
'pending'``; when no row moves, the registration is looked up once more to
report whether it is missing or already decided.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from sdba.models import TEAM_MODELS_BY_EVENT, EventType, RegistrationMeta, RegistrationStatus
from sdba.models.timestamps import utc_now

logger = logging.getLogger(__name__)


class ProcedureError(Exception):
    NOT_FOUND = "NOT_FOUND"
    NOT_PENDING = "NOT_PENDING"

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


async def _raise_not_transitioned(session: AsyncSession, registration_id: UUID) -> None:
    registration = await session.get(RegistrationMeta, registration_id)
    if registration is None:
        raise ProcedureError(ProcedureError.NOT_FOUND, f"registration {registration_id} not found")
    raise ProcedureError(
        ProcedureError.NOT_PENDING,
        f"registration {registration_id} is not pending (status: {registration.status.value})",
    )


async def _transition(
    session: AsyncSession,
    registration_id: UUID,
    status: RegistrationStatus,
    values: dict,
) -> None:
    statement = (
        update(RegistrationMeta)
        .where(
            RegistrationMeta.id == registration_id,
            RegistrationMeta.status == RegistrationStatus.PENDING,
        )
        .values(status=status, **values)
    )
    result = await session.execute(statement)
    if result.rowcount != 1:
        await session.rollback()
        await _raise_not_transitioned(session, registration_id)


async def approve_registration(
    session: AsyncSession,
    registration_id: UUID,
    admin_user_id: UUID,
    notes: Optional[str] = None,
) -> Optional[UUID]:
    """Move a pending registration to approved.

    Returns the id of the registration's first team row ordered by team code,
    or ``None`` when the registration has no teams.
    """
    now = utc_now()
    await _transition(
        session,
        registration_id,
        RegistrationStatus.APPROVED,
        {
            "approved_by": admin_user_id,
            "approved_at": now,
            "admin_notes": notes,
            "updated_at": now,
        },
    )

    registration = await session.get(RegistrationMeta, registration_id)
    team_model = TEAM_MODELS_BY_EVENT[EventType(registration.event_type)]
    result = await session.exec(
        select(team_model.id)
        .where(team_model.registration_id == registration_id)
        .order_by(team_model.team_code)
    )
    team_meta_id = result.first()

    await session.commit()
    logger.info("Registration %s approved by %s", registration_id, admin_user_id)
    return team_meta_id


async def reject_registration(
    session: AsyncSession,
    registration_id: UUID,
    admin_user_id: UUID,
    notes: str,
) -> None:
    now = utc_now()
    await _transition(
        session,
        registration_id,
        RegistrationStatus.REJECTED,
        {
            "rejected_by": admin_user_id,
            "rejected_at": now,
            "admin_notes": notes,
            "updated_at": now,
        },
    )
    await session.commit()
    logger.info("Registration %s rejected by %s", registration_id, admin_user_id)
