from fastapi import APIRouter, Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from sdba.auth.ratelimit import PUBLIC_RATE_LIMIT, limiter
from sdba.db.database import get_session
from sdba.schemas import (
    EventRegistrationPayload,
    RegistrationCreatedResponse,
    RegistrationEvent,
    RegistrationPayload,
)
from sdba.services.registration import create_event_registration, create_registration

router = APIRouter(prefix="/api/public", tags=["Public"])


@router.post("/register", response_model=RegistrationCreatedResponse, status_code=201)
@limiter.limit(PUBLIC_RATE_LIMIT)
async def register(
    request: Request,
    payload: RegistrationPayload,
    session: AsyncSession = Depends(get_session),
) -> RegistrationCreatedResponse:
    return await create_registration(session, payload)


@router.post("/register/{event}", response_model=RegistrationCreatedResponse, status_code=201)
@limiter.limit(PUBLIC_RATE_LIMIT)
async def register_event_teams(
    request: Request,
    event: RegistrationEvent,
    payload: EventRegistrationPayload,
    session: AsyncSession = Depends(get_session),
) -> RegistrationCreatedResponse:
    return await create_event_registration(session, event, payload)
