import logging
from typing import Any, Dict

from sqlalchemy.exc import DBAPIError
from sqlmodel.ext.asyncio.session import AsyncSession

from sdba.auth.dependencies import current_user_id
from sdba.errors import ApiError, conflict, internal_server_error
from sdba.schemas import ApproveRequest, RejectRequest
from sdba.services.procedures import ProcedureError, approve_registration, reject_registration

logger = logging.getLogger(__name__)

# Messages raised by database-side functions that mean "someone else already
# decided this registration".
ALREADY_PROCESSED_MARKERS = ("not found", "not pending", "already_processed")


def is_already_processed(message: str) -> bool:
    lowered = (message or "").lower()
    return any(marker in lowered for marker in ALREADY_PROCESSED_MARKERS)


def already_processed() -> ApiError:
    return conflict("Registration already processed or not found", "ALREADY_PROCESSED")


def _classify_backend_error(exc: DBAPIError) -> ApiError:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    if is_already_processed(message):
        return already_processed()
    logger.error("Registration procedure failed: %s", message)
    return internal_server_error(message)


async def approve(session: AsyncSession, request: ApproveRequest, user: Dict[str, Any]) -> Dict[str, Any]:
    try:
        team_meta_id = await approve_registration(
            session, request.registration_id, current_user_id(user), request.notes
        )
    except ProcedureError as exc:
        logger.info("Approve refused for %s: %s", request.registration_id, exc.code)
        raise already_processed() from exc
    except DBAPIError as exc:
        await session.rollback()
        raise _classify_backend_error(exc) from exc

    return {"ok": True, "team_meta_id": team_meta_id}


async def reject(session: AsyncSession, request: RejectRequest, user: Dict[str, Any]) -> Dict[str, Any]:
    try:
        await reject_registration(session, request.registration_id, current_user_id(user), request.notes)
    except ProcedureError as exc:
        logger.info("Reject refused for %s: %s", request.registration_id, exc.code)
        raise already_processed() from exc
    except DBAPIError as exc:
        await session.rollback()
        raise _classify_backend_error(exc) from exc

    return {"ok": True}
