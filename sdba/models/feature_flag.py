from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from .timestamps import timestamp_field


class FeatureFlag(SQLModel, table=True):
    __tablename__ = "feature_flags"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    flag_key: str = Field(max_length=64, unique=True, index=True)
    flag_name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None)
    enabled: bool = Field(default=False)
    rollout_percentage: int = Field(default=0)
    enabled_for_users: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    enabled_for_emails: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    # ``metadata`` is reserved on declarative classes, so the column is mapped
    # under a different attribute name.
    flag_metadata: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column("metadata", JSON)
    )
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
    updated_by: Optional[UUID] = Field(default=None)


class FeatureFlagAuditLog(SQLModel, table=True):
    __tablename__ = "feature_flag_audit_log"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    flag_id: UUID = Field(foreign_key="feature_flags.id", index=True)
    flag_key: str = Field(max_length=64, index=True)
    action: str = Field(max_length=32)
    old_value: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    new_value: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    changed_by: Optional[UUID] = Field(default=None)
    changed_at: datetime = timestamp_field(index=True)
    notes: Optional[str] = Field(default=None)
