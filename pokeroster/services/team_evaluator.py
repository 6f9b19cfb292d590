"""
Team evaluator.

Pure functions over an ordered list of team members: average strength,
type coverage, synergy, balance and improvement suggestions.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from itertools import combinations

from pokeroster.models.creature import HIGH_STAT_RATIO, STAT_CAPS, CreatureRecord
from pokeroster.models.team import MAX_TEAM_SIZE, TeamSnapshot
from pokeroster.services.stat_engine import (
    Archetype,
    compatibility,
    multiplier,
    strength_archetype,
    tier,
    total_stats,
)

# Attacking types checked for team vulnerabilities, in report order
COMMON_ATTACKING_TYPES = ["water", "fire", "electric", "grass", "fighting", "psychic"]

MIN_BALANCED_SIZE = 3
MIN_TYPE_COVERAGE = 4

EMPTY_TEAM_MESSAGE = "Add your first Pokemon to start building your team!"
WELL_BALANCED_MESSAGE = "Your team looks well-balanced! Great job!"
LIMITED_COVERAGE_MESSAGE = (
    "Your team has limited type coverage. Consider adding Pokemon with different types."
)

# (stat, suggestion when no member exceeds the high-stat threshold)
HIGH_STAT_SUGGESTIONS: list[tuple[str, str]] = [
    ("hp", "Your team lacks high HP Pokemon. Consider adding a tank."),
    ("attack", "Your team lacks high Attack Pokemon. Consider adding an attacker."),
    ("defense", "Your team lacks high Defense Pokemon. Consider adding a defender."),
    ("speed", "Your team lacks high Speed Pokemon. Consider adding a speedster."),
]


@dataclass
class TeamEvaluation:
    """Derived statistics for one team snapshot."""

    team_name: str
    member_count: int
    average_strength: int
    type_coverage: int
    synergy: float
    is_balanced: bool
    suggestions: list[str] = field(default_factory=list)
    tiers: dict[int, str] = field(default_factory=dict)
    archetypes: dict[int, Archetype] = field(default_factory=dict)


def average_strength(members: Sequence[CreatureRecord]) -> int:
    """Mean total stats, truncated. 0 for an empty team."""
    if not members:
        return 0
    return sum(total_stats(member) for member in members) // len(members)


def covered_types(members: Sequence[CreatureRecord]) -> set[str]:
    return {type_name for member in members for type_name in member.types}


def type_coverage(members: Sequence[CreatureRecord]) -> int:
    """Number of distinct types across the team."""
    return len(covered_types(members))


def synergy(members: Sequence[CreatureRecord]) -> float:
    """Mean compatibility over all unordered pairs. 0 for fewer than two members."""
    if len(members) <= 1:
        return 0.0
    scores = [compatibility(a, b) for a, b in combinations(members, 2)]
    return sum(scores) / len(scores)


def is_balanced(members: Sequence[CreatureRecord]) -> bool:
    """
    A team of 3+ is balanced with at least one attacker, one defender,
    and one speedster or tank.
    """
    if len(members) < MIN_BALANCED_SIZE:
        return False
    archetypes = {strength_archetype(member) for member in members}
    return (
        Archetype.ATTACKER in archetypes
        and Archetype.DEFENDER in archetypes
        and (Archetype.SPEEDSTER in archetypes or Archetype.TANK in archetypes)
    )


def missing_high_stats(members: Sequence[CreatureRecord]) -> list[str]:
    """Stats (hp, attack, defense, speed) that no member has above 70% of the cap."""
    return [
        stat
        for stat, _ in HIGH_STAT_SUGGESTIONS
        if not any(getattr(member, stat) > STAT_CAPS[stat] * HIGH_STAT_RATIO for member in members)
    ]


def vulnerable_types(members: Sequence[CreatureRecord]) -> list[str]:
    """
    Attacking types flagged as team weaknesses.

    A type is flagged when, for some member, every one of its types takes
    neutral or super-effective damage from it. This counts "not resisted"
    as a weakness, so it over-reports; kept as-is pending product review.
    """
    flagged: list[str] = []
    for member in members:
        for attacking in COMMON_ATTACKING_TYPES:
            if attacking in flagged:
                continue
            if all(multiplier(attacking, own) >= 1.0 for own in member.types):
                flagged.append(attacking)
    return flagged


def improvement_suggestions(
    members: Sequence[CreatureRecord], max_size: int = MAX_TEAM_SIZE
) -> list[str]:
    """
    Advisory messages for improving a team, most basic first.

    Returns a single positive message when nothing needs attention.
    """
    if not members:
        return [EMPTY_TEAM_MESSAGE]

    suggestions: list[str] = []

    if len(members) < max_size:
        suggestions.append(
            f"Your team has {len(members)}/{max_size} Pokemon. Consider adding more."
        )

    if type_coverage(members) < MIN_TYPE_COVERAGE and len(members) >= MIN_BALANCED_SIZE:
        suggestions.append(LIMITED_COVERAGE_MESSAGE)

    missing = set(missing_high_stats(members))
    suggestions.extend(message for stat, message in HIGH_STAT_SUGGESTIONS if stat in missing)

    weaknesses = vulnerable_types(members)
    if weaknesses:
        suggestions.append(
            f"Your team may be vulnerable to {', '.join(weaknesses)} type attacks."
        )

    return suggestions or [WELL_BALANCED_MESSAGE]


def evaluate(snapshot: TeamSnapshot) -> TeamEvaluation:
    """Compute every team statistic for a snapshot."""
    members = snapshot.members
    return TeamEvaluation(
        team_name=snapshot.name,
        member_count=len(members),
        average_strength=average_strength(members),
        type_coverage=type_coverage(members),
        synergy=synergy(members),
        is_balanced=is_balanced(members),
        suggestions=improvement_suggestions(members, snapshot.max_size),
        tiers={member.id: tier(member) for member in members},
        archetypes={member.id: strength_archetype(member) for member in members},
    )
