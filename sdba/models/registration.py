from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from .timestamps import optional_timestamp_field, timestamp_field


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EventType(str, Enum):
    TN = "tn"
    WU = "wu"
    SC = "sc"


class RaceCategory(str, Enum):
    MEN_OPEN = "men_open"
    LADIES_OPEN = "ladies_open"
    MIXED_OPEN = "mixed_open"
    MIXED_CORPORATE = "mixed_corporate"


# Division letter used in TN team codes, e.g. S25-M001.
DIVISION_LETTERS = {
    RaceCategory.MEN_OPEN: "M",
    RaceCategory.LADIES_OPEN: "L",
    RaceCategory.MIXED_OPEN: "X",
    RaceCategory.MIXED_CORPORATE: "C",
}


class RegistrationMeta(SQLModel, table=True):
    __tablename__ = "registration_meta"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    event_type: str = Field(default=EventType.TN.value, max_length=4, index=True)
    season: int = Field(index=True)
    race_category: Optional[str] = Field(default=None, max_length=32)
    num_teams: int
    num_teams_opt1: int = Field(default=0)
    num_teams_opt2: int = Field(default=0)
    org_name: str = Field(max_length=255)
    org_address: Optional[str] = Field(default=None)
    managers_json: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    client_tx_id: Optional[str] = Field(default=None, max_length=64)

    status: RegistrationStatus = Field(default=RegistrationStatus.PENDING, index=True)
    approved_by: Optional[UUID] = Field(default=None)
    approved_at: Optional[datetime] = optional_timestamp_field()
    rejected_by: Optional[UUID] = Field(default=None)
    rejected_at: Optional[datetime] = optional_timestamp_field()
    admin_notes: Optional[str] = Field(default=None)

    created_at: datetime = timestamp_field(index=True)
    updated_at: datetime = timestamp_field()
