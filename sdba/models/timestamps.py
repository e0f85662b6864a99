from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime
from sqlmodel import Field

# Every timestamp is stored timezone aware, in UTC.
TIMESTAMP_TYPE = DateTime(timezone=True)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_field(**kwargs: Any) -> Any:
    """A column defaulting to the insert time."""
    return Field(default_factory=utc_now, sa_type=TIMESTAMP_TYPE, **kwargs)


def optional_timestamp_field() -> Any:
    return Field(default=None, sa_type=TIMESTAMP_TYPE)
