from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field

from .timestamps import timestamp_field


class RaceDayRequest(SQLModel, table=True):
    __tablename__ = "race_day_requests"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    registration_id: UUID = Field(foreign_key="registration_meta.id", unique=True)
    marquee_qty: int = Field(default=0)
    steer_with_qty: int = Field(default=0)
    steer_without_qty: int = Field(default=0)
    junk_boat_no: Optional[str] = Field(default=None, max_length=32)
    junk_boat_qty: int = Field(default=0)
    speed_boat_no: Optional[str] = Field(default=None, max_length=32)
    speed_boat_qty: int = Field(default=0)
    created_at: datetime = timestamp_field()
