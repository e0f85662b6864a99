import re
from datetime import datetime
from typing import ClassVar, Optional, Type
from uuid import UUID, uuid4

from sqlalchemy import event, select
from sqlalchemy.orm import object_session
from sqlmodel import Field, SQLModel

from .timestamps import timestamp_field


class TeamBase(SQLModel):
    """Columns shared by the TN, warm-up and short-course team tables."""

    team_code_prefix: ClassVar[str] = "S"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    registration_id: UUID = Field(foreign_key="registration_meta.id", index=True)
    season: int = Field(index=True)
    division_code: Optional[str] = Field(default=None, max_length=8)
    team_code: Optional[str] = Field(default=None, max_length=32, unique=True)
    team_name: str = Field(max_length=255)
    org_name: str = Field(max_length=255)
    org_address: Optional[str] = Field(default=None)
    team_manager_1: str = Field(max_length=255)
    mobile_1: Optional[str] = Field(default=None, max_length=32)
    email_1: Optional[str] = Field(default=None, max_length=254)
    team_manager_2: Optional[str] = Field(default=None, max_length=255)
    mobile_2: Optional[str] = Field(default=None, max_length=32)
    email_2: Optional[str] = Field(default=None, max_length=254)
    team_manager_3: Optional[str] = Field(default=None, max_length=255)
    mobile_3: Optional[str] = Field(default=None, max_length=32)
    email_3: Optional[str] = Field(default=None, max_length=254)
    created_at: datetime = timestamp_field(index=True)
    updated_at: datetime = timestamp_field()


def team_code_stem(team_model: Type[TeamBase], season: int, division_code: Optional[str]) -> str:
    return f"{team_model.team_code_prefix}{season % 100:02d}-{division_code or 'X'}"


def _sequence_of(code: Optional[str], stem: str) -> int:
    match = re.fullmatch(rf"{re.escape(stem)}(\d{{3}})", code or "")
    return int(match.group(1)) if match else 0


def register_team_code_hook(team_model: Type[TeamBase]) -> None:
    """Register a SQLAlchemy hook that assigns ``team_code`` on insert.

    Codes are never chosen by request handlers: every team table gets this
    hook, which numbers new rows one past the highest sequence already used
    for the same prefix, season and division.  Rows still pending in the
    same flush are counted too, because a roster is inserted as one batch.
    """

    @event.listens_for(team_model, "before_insert")
    def _assign_team_code(mapper, connection, target) -> None:  # type: ignore[override]
        if target.team_code:
            return

        stem = team_code_stem(team_model, target.season, target.division_code)
        table = team_model.__table__
        existing = connection.execute(
            select(table.c.team_code).where(table.c.team_code.like(f"{stem}%"))
        ).scalars()
        highest = max((_sequence_of(code, stem) for code in existing), default=0)

        session = object_session(target)
        if session is not None:
            for pending in session.new:
                if pending is not target and isinstance(pending, team_model):
                    highest = max(highest, _sequence_of(pending.team_code, stem))

        target.team_code = f"{stem}{highest + 1:03d}"


class TeamMeta(TeamBase, table=True):
    __tablename__ = "team_meta"

    category: str = Field(max_length=32, index=True)
    option_choice: str = Field(default="Option 1", max_length=16)


class WuTeamMeta(TeamBase, table=True):
    __tablename__ = "wu_team_meta"

    team_code_prefix: ClassVar[str] = "W"

    category: Optional[str] = Field(default=None, max_length=64)
    package_choice: Optional[str] = Field(default=None, max_length=64)
    team_size: Optional[int] = Field(default=None)


class ScTeamMeta(TeamBase, table=True):
    __tablename__ = "sc_team_meta"

    team_code_prefix: ClassVar[str] = "C"

    category: Optional[str] = Field(default=None, max_length=64)
    package_choice: Optional[str] = Field(default=None, max_length=64)
    team_size: Optional[int] = Field(default=None)


for _team_model in (TeamMeta, WuTeamMeta, ScTeamMeta):
    register_team_code_hook(_team_model)
