"""
PokeRoster services.

Business logic for stat derivation, team evaluation and team management.
"""

from pokeroster.services.stat_engine import (
    Archetype,
    TypeEffectiveness,
    compatibility,
    multiplier,
    strength_archetype,
    tier,
    total_stats,
    type_effectiveness,
)
from pokeroster.services.team_evaluator import (
    TeamEvaluation,
    average_strength,
    evaluate,
    improvement_suggestions,
    is_balanced,
    synergy,
    type_coverage,
)
from pokeroster.services.team_repository import TeamRepository

__all__ = [
    # Stat engine
    "Archetype",
    "TypeEffectiveness",
    "compatibility",
    "multiplier",
    "strength_archetype",
    "tier",
    "total_stats",
    "type_effectiveness",
    # Team evaluator
    "TeamEvaluation",
    "average_strength",
    "evaluate",
    "improvement_suggestions",
    "is_balanced",
    "synergy",
    "type_coverage",
    # Repository
    "TeamRepository",
]
