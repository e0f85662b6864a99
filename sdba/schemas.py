"""Request payloads.

Every payload is validated here, before any service touches the database.
Failures surface as 422 responses through FastAPI's request validation.
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field as PydanticField, field_validator, model_validator
from sqlmodel import Field, SQLModel

from sdba.models import RaceCategory
from sdba.sanitize import sanitize_notes, sanitize_optional, sanitize_text, validate_email


class TeamOption(str, Enum):
    OPTION_1 = "Option 1"
    OPTION_2 = "Option 2"


class PracticeHelper(str, Enum):
    NONE = "NONE"
    STEERSMAN = "S"
    COACH = "T"
    BOTH = "ST"


class ExportMode(str, Enum):
    TN = "tn"
    WU = "wu"
    SC = "sc"
    ALL = "all"


class RegistrationEvent(str, Enum):
    WU = "wu"
    SC = "sc"


def _required_text(value: str) -> str:
    cleaned = sanitize_text(value)
    if not cleaned:
        raise ValueError("must not be empty")
    return cleaned


def _optional_email(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not validate_email(value):
        raise ValueError("Invalid email format")
    return sanitize_text(value)


class ManagerContacts(SQLModel):
    manager1_name: str = Field(min_length=1)
    manager1_mobile: Optional[str] = None
    manager1_email: Optional[str] = None
    manager2_name: str = Field(min_length=1)
    manager2_mobile: Optional[str] = None
    manager2_email: Optional[str] = None
    manager3_name: Optional[str] = None
    manager3_mobile: Optional[str] = None
    manager3_email: Optional[str] = None

    @field_validator("manager1_name", "manager2_name")
    @classmethod
    def _clean_required_name(cls, value: str) -> str:
        return _required_text(value)

    @field_validator("manager3_name", "manager1_mobile", "manager2_mobile", "manager3_mobile")
    @classmethod
    def _clean_optional_text(cls, value: Optional[str]) -> Optional[str]:
        return sanitize_optional(value)

    @field_validator("manager1_email", "manager2_email", "manager3_email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        return _optional_email(value)


class RaceDayPayload(SQLModel):
    marquee_qty: int = Field(default=0, ge=0)
    steer_with_qty: int = Field(default=0, ge=0)
    steer_without_qty: int = Field(default=0, ge=0)
    junk_boat_no: Optional[str] = Field(default=None, max_length=32)
    junk_boat_qty: int = Field(default=0, ge=0)
    speed_boat_no: Optional[str] = Field(default=None, max_length=32)
    speed_boat_qty: int = Field(default=0, ge=0)

    @field_validator("junk_boat_no", "speed_boat_no")
    @classmethod
    def _clean_boat_no(cls, value: Optional[str]) -> Optional[str]:
        return sanitize_optional(value)


class PracticeDate(SQLModel):
    pref_date: date
    duration_hours: int = Field(ge=1, le=8)
    helper: PracticeHelper = PracticeHelper.NONE


class PracticeSlotRankPayload(SQLModel):
    rank: int = Field(ge=1, le=3)
    slot_code: str = Field(min_length=1, max_length=32)


class PracticeTeamPayload(SQLModel):
    team_index: int = Field(ge=0)
    dates: List[PracticeDate] = Field(default_factory=list)
    slot_ranks: List[PracticeSlotRankPayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_slot_ranks(self) -> "PracticeTeamPayload":
        ranks = [entry.rank for entry in self.slot_ranks]
        if len(ranks) != len(set(ranks)):
            raise ValueError("Duplicate slot rankings are not allowed")
        codes = [entry.slot_code for entry in self.slot_ranks]
        if len(codes) != len(set(codes)):
            raise ValueError("Duplicate slot codes are not allowed")
        return self


class RegistrationPayload(SQLModel):
    race_category: RaceCategory
    num_teams: int = Field(ge=1)
    num_teams_opt1: int = Field(ge=0)
    num_teams_opt2: int = Field(ge=0)
    season: int = Field(ge=2000, le=2100)

    org_name: str = Field(min_length=1)
    org_address: Optional[str] = None
    team_names: List[str]
    team_options: List[TeamOption]
    managers: ManagerContacts

    client_tx_id: Optional[str] = Field(default=None, max_length=64)
    race_day: Optional[RaceDayPayload] = None
    practice: Optional[List[PracticeTeamPayload]] = None

    @field_validator("org_name")
    @classmethod
    def _clean_org_name(cls, value: str) -> str:
        return _required_text(value)

    @field_validator("org_address")
    @classmethod
    def _clean_org_address(cls, value: Optional[str]) -> Optional[str]:
        return sanitize_optional(value)

    @field_validator("team_names")
    @classmethod
    def _clean_team_names(cls, value: List[str]) -> List[str]:
        return [_required_text(name) for name in value]

    @model_validator(mode="after")
    def _check_counts(self) -> "RegistrationPayload":
        if self.num_teams_opt1 + self.num_teams_opt2 != self.num_teams:
            raise ValueError("num_teams_opt1 + num_teams_opt2 must equal num_teams")
        if len(self.team_names) != self.num_teams or len(self.team_options) != self.num_teams:
            raise ValueError("team_names / team_options length must equal num_teams")

        seen = set()
        for entry in self.practice or []:
            if entry.team_index >= self.num_teams:
                raise ValueError(f"practice team_index {entry.team_index} is out of range")
            if entry.team_index in seen:
                raise ValueError(f"practice team_index {entry.team_index} is repeated")
            seen.add(entry.team_index)
        return self


class EventTeamPayload(SQLModel):
    name: str = Field(min_length=1)
    category: Optional[str] = None
    boat_type: str = Field(min_length=1, max_length=64)
    division: str = Field(min_length=1, max_length=8)
    team_size: Optional[int] = Field(default=None, ge=1)

    @field_validator("name", "boat_type", "division")
    @classmethod
    def _clean_required(cls, value: str) -> str:
        return _required_text(value)

    @field_validator("category")
    @classmethod
    def _clean_category(cls, value: Optional[str]) -> Optional[str]:
        return sanitize_optional(value)


class EventRegistrationPayload(SQLModel):
    season: int = Field(ge=2000, le=2100)
    org_name: str = Field(min_length=1)
    org_address: Optional[str] = None
    managers: ManagerContacts
    teams: List[EventTeamPayload] = Field(min_length=1)
    client_tx_id: Optional[str] = Field(default=None, max_length=64)

    @field_validator("org_name")
    @classmethod
    def _clean_org_name(cls, value: str) -> str:
        return _required_text(value)

    @field_validator("org_address")
    @classmethod
    def _clean_org_address(cls, value: Optional[str]) -> Optional[str]:
        return sanitize_optional(value)


class TeamCode(SQLModel):
    id: UUID
    team_code: str


class RegistrationCreatedResponse(SQLModel):
    registration_id: UUID
    teams: List[TeamCode]


class ApproveRequest(SQLModel):
    registration_id: UUID
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def _clean_notes(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return sanitize_notes(value) or None


class RejectRequest(SQLModel):
    registration_id: UUID
    notes: str = Field(min_length=1)

    @field_validator("notes")
    @classmethod
    def _clean_notes(cls, value: str) -> str:
        cleaned = sanitize_notes(value)
        if not cleaned:
            raise ValueError("notes are required to reject a registration")
        return cleaned


class ExportRequest(SQLModel):
    mode: ExportMode
    season: Optional[int] = Field(default=None, ge=2000, le=2100)
    category: Optional[RaceCategory] = None


# pydantic's BaseModel rather than SQLModel: SQLModel reserves ``metadata``.
class FeatureFlagUpdate(BaseModel):
    flagKey: str
    enabled: Optional[bool] = None
    rollout_percentage: Optional[int] = PydanticField(default=None, ge=0, le=100)
    enabled_for_users: Optional[List[UUID]] = None
    enabled_for_emails: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("enabled_for_emails")
    @classmethod
    def _check_emails(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        for email in value:
            if not validate_email(email):
                raise ValueError(f"Invalid email format: {email}")
        return value
