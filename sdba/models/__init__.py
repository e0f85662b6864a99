"""Convenience exports for the models package."""

from .feature_flag import FeatureFlag, FeatureFlagAuditLog
from .practice import PracticePreference, PracticeSlotRank
from .race_day import RaceDayRequest
from .registration import (
    DIVISION_LETTERS,
    EventType,
    RaceCategory,
    RegistrationMeta,
    RegistrationStatus,
)
from .team import ScTeamMeta, TeamBase, TeamMeta, WuTeamMeta

TEAM_MODELS_BY_EVENT = {
    EventType.TN: TeamMeta,
    EventType.WU: WuTeamMeta,
    EventType.SC: ScTeamMeta,
}
