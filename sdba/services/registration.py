import logging
from typing import Dict, List, Optional, Sequence, Type

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from sdba.errors import bad_request
from sdba.models import (
    DIVISION_LETTERS,
    TEAM_MODELS_BY_EVENT,
    EventType,
    PracticePreference,
    PracticeSlotRank,
    RaceDayRequest,
    RegistrationMeta,
    TeamBase,
    TeamMeta,
)
from sdba.schemas import (
    EventRegistrationPayload,
    ManagerContacts,
    PracticeHelper,
    PracticeTeamPayload,
    RegistrationCreatedResponse,
    RegistrationEvent,
    RegistrationPayload,
    TeamCode,
)

logger = logging.getLogger(__name__)


def _manager_columns(managers: ManagerContacts) -> Dict[str, Optional[str]]:
    return {
        "team_manager_1": managers.manager1_name,
        "mobile_1": managers.manager1_mobile,
        "email_1": managers.manager1_email,
        "team_manager_2": managers.manager2_name,
        "mobile_2": managers.manager2_mobile,
        "email_2": managers.manager2_email,
        "team_manager_3": managers.manager3_name,
        "mobile_3": managers.manager3_mobile,
        "email_3": managers.manager3_email,
    }


def _created_response(registration_id, teams: Sequence[TeamBase]) -> RegistrationCreatedResponse:
    return RegistrationCreatedResponse(
        registration_id=registration_id,
        teams=[TeamCode(id=team.id, team_code=team.team_code) for team in teams],
    )


def _practice_rows(team: TeamMeta, entry: PracticeTeamPayload) -> List:
    rows: List = []
    for day in entry.dates:
        rows.append(
            PracticePreference(
                team_id=team.id,
                pref_date=day.pref_date,
                duration_hours=day.duration_hours,
                need_steersman=day.helper in (PracticeHelper.STEERSMAN, PracticeHelper.BOTH),
                need_coach=day.helper in (PracticeHelper.COACH, PracticeHelper.BOTH),
            )
        )
    for slot in entry.slot_ranks:
        rows.append(PracticeSlotRank(team_id=team.id, rank=slot.rank, slot_code=slot.slot_code))
    return rows


async def find_replayed_submission(
    session: AsyncSession,
    client_tx_id: Optional[str],
    event_type: EventType,
    team_model: Type[TeamBase],
) -> Optional[RegistrationCreatedResponse]:
    """Return the earlier result when a client resubmits the same transaction id.

    Only submissions for the same event count as a replay.
    """
    if not client_tx_id:
        return None

    result = await session.exec(
        select(RegistrationMeta).where(
            RegistrationMeta.client_tx_id == client_tx_id,
            RegistrationMeta.event_type == event_type.value,
        )
    )
    existing = result.first()
    if existing is None:
        return None

    teams = await session.exec(
        select(team_model)
        .where(team_model.registration_id == existing.id)
        .order_by(team_model.created_at, team_model.team_code)
    )
    logger.info("Replayed submission %s for registration %s", client_tx_id, existing.id)
    return _created_response(existing.id, teams.all())


async def _persist(
    session: AsyncSession,
    registration: RegistrationMeta,
    teams: List[TeamBase],
    extra_rows: Sequence = (),
) -> RegistrationCreatedResponse:
    event_type = registration.event_type
    # Parent, teams and optional rows share one transaction; nothing is left
    # behind when any insert fails.
    try:
        session.add(registration)
        await session.flush()
        session.add_all(teams)
        await session.flush()
        if extra_rows:
            session.add_all(list(extra_rows))
            await session.flush()
        response = _created_response(registration.id, teams)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        message = str(exc.orig) if isinstance(exc, DBAPIError) else str(exc)
        logger.error("Registration insert failed: %s", message)
        raise bad_request(message) from exc

    logger.info(
        "Registration %s created with %d %s team(s)",
        response.registration_id,
        len(response.teams),
        event_type,
    )
    return response


async def create_registration(
    session: AsyncSession,
    payload: RegistrationPayload,
) -> RegistrationCreatedResponse:
    replayed = await find_replayed_submission(session, payload.client_tx_id, EventType.TN, TeamMeta)
    if replayed is not None:
        return replayed

    registration = RegistrationMeta(
        event_type=EventType.TN.value,
        season=payload.season,
        race_category=payload.race_category.value,
        num_teams=payload.num_teams,
        num_teams_opt1=payload.num_teams_opt1,
        num_teams_opt2=payload.num_teams_opt2,
        org_name=payload.org_name,
        org_address=payload.org_address,
        managers_json=payload.managers.model_dump(),
        client_tx_id=payload.client_tx_id,
    )

    managers = _manager_columns(payload.managers)
    division = DIVISION_LETTERS[payload.race_category]
    teams = [
        TeamMeta(
            registration_id=registration.id,
            season=payload.season,
            category=payload.race_category.value,
            division_code=division,
            option_choice=option.value,
            team_name=name,
            org_name=payload.org_name,
            org_address=payload.org_address,
            **managers,
        )
        for name, option in zip(payload.team_names, payload.team_options)
    ]

    extra_rows: List = []
    if payload.race_day is not None:
        extra_rows.append(
            RaceDayRequest(registration_id=registration.id, **payload.race_day.model_dump())
        )
    for entry in payload.practice or []:
        extra_rows.extend(_practice_rows(teams[entry.team_index], entry))

    return await _persist(session, registration, teams, extra_rows)


async def create_event_registration(
    session: AsyncSession,
    event: RegistrationEvent,
    payload: EventRegistrationPayload,
) -> RegistrationCreatedResponse:
    event_type = EventType(event.value)
    team_model = TEAM_MODELS_BY_EVENT[event_type]

    replayed = await find_replayed_submission(session, payload.client_tx_id, event_type, team_model)
    if replayed is not None:
        return replayed

    registration = RegistrationMeta(
        event_type=event_type.value,
        season=payload.season,
        num_teams=len(payload.teams),
        org_name=payload.org_name,
        org_address=payload.org_address,
        managers_json=payload.managers.model_dump(),
        client_tx_id=payload.client_tx_id,
    )

    managers = _manager_columns(payload.managers)
    teams = [
        team_model(
            registration_id=registration.id,
            season=payload.season,
            category=team.category,
            division_code=team.division,
            package_choice=team.boat_type,
            team_size=team.team_size,
            team_name=team.name,
            org_name=payload.org_name,
            org_address=payload.org_address,
            **managers,
        )
        for team in payload.teams
    ]

    return await _persist(session, registration, teams)
