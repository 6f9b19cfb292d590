"""
Stat engine.

Pure functions over single creatures and pairs of creatures: total stats,
tier, type effectiveness, compatibility and strength archetype.
No I/O; results depend only on the records passed in.
"""

from enum import Enum

from pokeroster.models.creature import (
    HIGH_STAT_RATIO,
    MAX_ATTACK,
    MAX_DEFENSE,
    MAX_SPEED,
    CreatureRecord,
)

# Attacking type -> defending type -> damage multiplier.
# Only a subset of types is covered; unlisted pairs are neutral (1.0).
TYPE_EFFECTIVENESS: dict[str, dict[str, float]] = {
    "fire": {
        "fire": 0.5,
        "water": 0.5,
        "grass": 2.0,
        "ice": 2.0,
        "bug": 2.0,
        "steel": 2.0,
        "rock": 0.5,
        "dragon": 0.5,
    },
    "water": {
        "fire": 2.0,
        "water": 0.5,
        "grass": 0.5,
        "ground": 2.0,
        "rock": 2.0,
        "dragon": 0.5,
    },
    "grass": {
        "fire": 0.5,
        "water": 2.0,
        "grass": 0.5,
        "poison": 0.5,
        "ground": 2.0,
        "flying": 0.5,
        "bug": 0.5,
        "rock": 2.0,
        "dragon": 0.5,
        "steel": 0.5,
    },
    "electric": {
        "water": 2.0,
        "electric": 0.5,
        "grass": 0.5,
        "ground": 0.0,
        "flying": 2.0,
        "dragon": 0.5,
    },
    "normal": {
        "rock": 0.5,
        "ghost": 0.0,
        "steel": 0.5,
    },
    "fighting": {
        "normal": 2.0,
        "ice": 2.0,
        "poison": 0.5,
        "flying": 0.5,
        "psychic": 0.5,
        "bug": 0.5,
        "rock": 2.0,
        "ghost": 0.0,
        "dark": 2.0,
        "steel": 2.0,
        "fairy": 0.5,
    },
}

SUPER_EFFECTIVE = 2.0

# Tier bands, checked top-down; each lower edge is exclusive
TIER_THRESHOLDS: list[tuple[int, str]] = [
    (900, "S"),
    (750, "A"),
    (600, "B"),
    (450, "C"),
]
LOWEST_TIER = "D"

COMPATIBILITY_BASE = 50
COMPATIBILITY_MAX = 100
TYPE_DIVERSITY_BONUS = 10
COMPLEMENTARY_STATS_BONUS = 15
SPEED_SPREAD_BONUS = 10
SPEED_SPREAD_RATIO = 0.3


class TypeEffectiveness(str, Enum):
    """Advantage relationship between two creatures."""

    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"
    NEUTRAL = "neutral"


class Archetype(str, Enum):
    """A creature's strongest battle stat."""

    TANK = "tank"
    ATTACKER = "attacker"
    DEFENDER = "defender"
    SPEEDSTER = "speedster"

    @property
    def description(self) -> str:
        return _ARCHETYPE_DESCRIPTIONS[self]


_ARCHETYPE_DESCRIPTIONS: dict[Archetype, str] = {
    Archetype.TANK: "Tank with high HP",
    Archetype.ATTACKER: "Attacker with high damage",
    Archetype.DEFENDER: "Defender with high protection",
    Archetype.SPEEDSTER: "Speedster with high agility",
}


def multiplier(attacking_type: str, defending_type: str) -> float:
    """Damage multiplier of one attacking type against one defending type."""
    return TYPE_EFFECTIVENESS.get(attacking_type, {}).get(defending_type, 1.0)


def total_stats(creature: CreatureRecord) -> int:
    """Sum of hp, attack, defense and speed. Experience is not a battle stat."""
    return creature.hp + creature.attack + creature.defense + creature.speed


def tier(creature: CreatureRecord) -> str:
    """
    Coarse strength tier from total stats.

    > 900 S, > 750 A, > 600 B, > 450 C, otherwise D.
    """
    total = total_stats(creature)
    for threshold, label in TIER_THRESHOLDS:
        if total > threshold:
            return label
    return LOWEST_TIER


def _is_super_effective_against(attacker: CreatureRecord, defender: CreatureRecord) -> bool:
    return any(
        multiplier(attacking, defending) == SUPER_EFFECTIVE
        for attacking in attacker.types
        for defending in defender.types
    )


def type_effectiveness(creature: CreatureRecord, other: CreatureRecord) -> TypeEffectiveness:
    """
    Whether `creature` has a type advantage over `other`.

    Advantage when some type of `creature` is super effective against some
    type of `other` and not the reverse; disadvantage is the mirror.
    Matching pairs do not stack.
    """
    mine = _is_super_effective_against(creature, other)
    theirs = _is_super_effective_against(other, creature)
    if mine and not theirs:
        return TypeEffectiveness.ADVANTAGE
    if theirs and not mine:
        return TypeEffectiveness.DISADVANTAGE
    return TypeEffectiveness.NEUTRAL


def compatibility(creature: CreatureRecord, other: CreatureRecord) -> int:
    """
    Pairwise team compatibility score in [50, 100].

    - +10 per distinct type beyond the first across both creatures
    - +15 when one is a high attacker and the other a high defender
    - +10 when their speeds differ by more than 30% of the cap
    """
    score = COMPATIBILITY_BASE

    unique_types = set(creature.types) | set(other.types)
    score += (len(unique_types) - 1) * TYPE_DIVERSITY_BONUS

    attack_threshold = MAX_ATTACK * HIGH_STAT_RATIO
    defense_threshold = MAX_DEFENSE * HIGH_STAT_RATIO
    if (creature.attack > attack_threshold and other.defense > defense_threshold) or (
        creature.defense > defense_threshold and other.attack > attack_threshold
    ):
        score += COMPLEMENTARY_STATS_BONUS

    if abs(creature.speed - other.speed) > MAX_SPEED * SPEED_SPREAD_RATIO:
        score += SPEED_SPREAD_BONUS

    return min(score, COMPATIBILITY_MAX)


def strength_archetype(creature: CreatureRecord) -> Archetype:
    """
    The (weakly) largest of hp, attack, defense, speed.

    Ties go to the stat checked first, in that order.
    """
    hp, attack, defense, speed = creature.hp, creature.attack, creature.defense, creature.speed
    if hp >= max(attack, defense, speed):
        return Archetype.TANK
    if attack >= max(hp, defense, speed):
        return Archetype.ATTACKER
    if defense >= max(hp, attack, speed):
        return Archetype.DEFENDER
    return Archetype.SPEEDSTER
