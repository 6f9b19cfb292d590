from pokeroster.models.creature import (
    HIGH_STAT_RATIO,
    MAX_ATTACK,
    MAX_DEFENSE,
    MAX_EXP,
    MAX_HP,
    MAX_SPEED,
    STAT_CAPS,
    CatalogPageEntry,
    CreatureRecord,
    creature_id_from_url,
    detail_url,
)
from pokeroster.models.failure import (
    ApiResponse,
    ConflictError,
    FailureDetail,
    FailureKind,
    InvalidArgumentError,
    KnownError,
    NotFoundError,
    OutcomeType,
    StoreFailureError,
)
from pokeroster.models.team import (
    MAX_TEAM_SIZE,
    Team,
    TeamMember,
    TeamSnapshot,
    TeamWithMembers,
)

__all__ = [
    "HIGH_STAT_RATIO",
    "MAX_ATTACK",
    "MAX_DEFENSE",
    "MAX_EXP",
    "MAX_HP",
    "MAX_SPEED",
    "MAX_TEAM_SIZE",
    "STAT_CAPS",
    "ApiResponse",
    "CatalogPageEntry",
    "ConflictError",
    "CreatureRecord",
    "FailureDetail",
    "FailureKind",
    "InvalidArgumentError",
    "KnownError",
    "NotFoundError",
    "OutcomeType",
    "StoreFailureError",
    "Team",
    "TeamMember",
    "TeamSnapshot",
    "TeamWithMembers",
    "creature_id_from_url",
    "detail_url",
]
