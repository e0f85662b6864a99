import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from sdba.errors import not_found
from sdba.models import FeatureFlag, FeatureFlagAuditLog
from sdba.models.timestamps import utc_now
from sdba.schemas import FeatureFlagUpdate

logger = logging.getLogger(__name__)

AUDIT_LOG_LIMIT = 50


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def flag_to_dict(flag: FeatureFlag) -> Dict[str, Any]:
    return {
        "id": str(flag.id),
        "flag_key": flag.flag_key,
        "flag_name": flag.flag_name,
        "description": flag.description,
        "enabled": flag.enabled,
        "rollout_percentage": flag.rollout_percentage,
        "enabled_for_users": list(flag.enabled_for_users or []),
        "enabled_for_emails": list(flag.enabled_for_emails or []),
        "metadata": dict(flag.flag_metadata or {}),
        "created_at": _iso(flag.created_at),
        "updated_at": _iso(flag.updated_at),
        "updated_by": str(flag.updated_by) if flag.updated_by else None,
    }


def audit_to_dict(entry: FeatureFlagAuditLog) -> Dict[str, Any]:
    return {
        "id": str(entry.id),
        "flag_id": str(entry.flag_id),
        "flag_key": entry.flag_key,
        "action": entry.action,
        "old_value": entry.old_value,
        "new_value": entry.new_value,
        "changed_by": str(entry.changed_by) if entry.changed_by else None,
        "changed_at": _iso(entry.changed_at),
        "notes": entry.notes,
    }


async def get_all_feature_flags(session: AsyncSession) -> List[FeatureFlag]:
    result = await session.exec(select(FeatureFlag).order_by(FeatureFlag.flag_key))
    return list(result.all())


async def get_feature_flag(session: AsyncSession, flag_key: str) -> Optional[FeatureFlag]:
    result = await session.exec(select(FeatureFlag).where(FeatureFlag.flag_key == flag_key))
    return result.first()


async def get_feature_flag_or_404(session: AsyncSession, flag_key: str) -> FeatureFlag:
    flag = await get_feature_flag(session, flag_key)
    if flag is None:
        raise not_found(f"Feature flag '{flag_key}' not found")
    return flag


async def get_feature_flag_audit_log(
    session: AsyncSession, flag_key: str, limit: int = AUDIT_LOG_LIMIT
) -> List[FeatureFlagAuditLog]:
    result = await session.exec(
        select(FeatureFlagAuditLog)
        .where(FeatureFlagAuditLog.flag_key == flag_key)
        .order_by(FeatureFlagAuditLog.changed_at.desc())
        .limit(limit)
    )
    return list(result.all())


def audit_action(old: Dict[str, Any], new: Dict[str, Any]) -> str:
    if old["enabled"] != new["enabled"]:
        return "enabled" if new["enabled"] else "disabled"
    if old["rollout_percentage"] != new["rollout_percentage"]:
        return "rollout_changed"
    return "updated"


async def update_feature_flag(
    session: AsyncSession,
    request: FeatureFlagUpdate,
    updated_by: UUID,
) -> FeatureFlag:
    """Apply the provided fields and record an audit entry in one commit."""
    flag = await get_feature_flag_or_404(session, request.flagKey)
    old_value = flag_to_dict(flag)

    updates = request.model_dump(exclude_unset=True, exclude={"flagKey"})
    if updates.get("enabled") is not None:
        flag.enabled = updates["enabled"]
    if updates.get("rollout_percentage") is not None:
        flag.rollout_percentage = updates["rollout_percentage"]
    if updates.get("enabled_for_users") is not None:
        flag.enabled_for_users = [str(user_id) for user_id in updates["enabled_for_users"]]
    if updates.get("enabled_for_emails") is not None:
        flag.enabled_for_emails = list(updates["enabled_for_emails"])
    if updates.get("metadata") is not None:
        flag.flag_metadata = dict(updates["metadata"])

    flag.updated_by = updated_by
    flag.updated_at = utc_now()
    new_value = flag_to_dict(flag)

    session.add(flag)
    session.add(
        FeatureFlagAuditLog(
            flag_id=flag.id,
            flag_key=flag.flag_key,
            action=audit_action(old_value, new_value),
            old_value=old_value,
            new_value=new_value,
            changed_by=updated_by,
        )
    )
    await session.commit()
    await session.refresh(flag)

    logger.info("Feature flag %s updated by %s", flag.flag_key, updated_by)
    return flag
