from datetime import date, datetime
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field

from .timestamps import timestamp_field


class PracticePreference(SQLModel, table=True):
    __tablename__ = "practice_preferences"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    team_id: UUID = Field(foreign_key="team_meta.id", index=True)
    pref_date: date
    duration_hours: int
    need_steersman: bool = Field(default=False)
    need_coach: bool = Field(default=False)
    created_at: datetime = timestamp_field()


class PracticeSlotRank(SQLModel, table=True):
    __tablename__ = "practice_slot_ranks"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    team_id: UUID = Field(foreign_key="team_meta.id", index=True)
    rank: int
    slot_code: str = Field(max_length=32)
