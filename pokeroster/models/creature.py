"""
Catalog models.

INVARIANTS:
- CreatureRecord is immutable; a save replaces the whole record
- Battle stats are within [0, cap] (hp/attack/defense/speed cap 300, exp cap 1000)
- A creature has 1 or 2 types; order is attack-priority order
"""

import re
from dataclasses import dataclass

from pokeroster.models.failure import InvalidArgumentError

MAX_HP = 300
MAX_ATTACK = 300
MAX_DEFENSE = 300
MAX_SPEED = 300
MAX_EXP = 1000

# A stat is "high" when it exceeds this fraction of its cap
HIGH_STAT_RATIO = 0.7

STAT_CAPS: dict[str, int] = {
    "hp": MAX_HP,
    "attack": MAX_ATTACK,
    "defense": MAX_DEFENSE,
    "speed": MAX_SPEED,
    "exp": MAX_EXP,
}

DETAIL_URL_TEMPLATE = "https://pokeapi.co/api/v2/pokemon/{id}/"

_URL_ID_PATTERN = re.compile(r"/(\d+)/?$")


def detail_url(creature_id: int) -> str:
    """Build the catalog URL that encodes a creature id."""
    return DETAIL_URL_TEMPLATE.format(id=creature_id)


def creature_id_from_url(url: str) -> int | None:
    """Extract the trailing creature id from a catalog URL, if present."""
    match = _URL_ID_PATTERN.search(url)
    if match is None:
        return None
    return int(match.group(1))


@dataclass(frozen=True, slots=True)
class CatalogPageEntry:
    """
    A name listed on one page of the paginated catalog.

    Attributes:
        page: 0-based listing page
        name: Creature name (primary key in the catalog)
        url: Opaque external reference that encodes the creature id
    """

    page: int
    name: str
    url: str

    @property
    def creature_id(self) -> int | None:
        return creature_id_from_url(self.url)


@dataclass(frozen=True, slots=True)
class CreatureRecord:
    """
    Detailed catalog record for one creature.

    Attributes:
        id: Stable positive identity
        name: Unique, case-preserved name
        height: Height in decimetres
        weight: Weight in hectograms
        experience: Base experience from the source catalog
        types: Type names in attack-priority order (1-2 entries)
        hp, attack, defense, speed: Battle stats in [0, 300]
        exp: Experience stat in [0, 1000]
        is_favorite: User favorite flag
    """

    id: int
    name: str
    height: int
    weight: int
    experience: int
    types: tuple[str, ...]
    hp: int = 0
    attack: int = 0
    defense: int = 0
    speed: int = 0
    exp: int = 0
    is_favorite: bool = False

    def __post_init__(self) -> None:
        """Validate identity, types and stat ranges."""
        if self.id <= 0:
            raise InvalidArgumentError(f"Creature id must be positive, got {self.id}")
        if not self.name:
            raise InvalidArgumentError("Creature name cannot be empty")
        for attr in ("height", "weight", "experience"):
            if getattr(self, attr) < 0:
                raise InvalidArgumentError(f"'{self.name}' has negative {attr}")
        if not 1 <= len(self.types) <= 2:
            raise InvalidArgumentError(
                f"'{self.name}' must have 1 or 2 types, got {len(self.types)}"
            )
        for stat, cap in STAT_CAPS.items():
            value = getattr(self, stat)
            if not 0 <= value <= cap:
                raise InvalidArgumentError(f"'{self.name}' has {stat}={value} outside [0, {cap}]")

    @property
    def id_label(self) -> str:
        return f"#{self.id:03d}"

    @property
    def weight_label(self) -> str:
        return f"{self.weight / 10:.1f} KG"

    @property
    def height_label(self) -> str:
        return f"{self.height / 10:.1f} M"

    def stat_label(self, stat: str) -> str:
        """Format a stat against its cap, e.g. ' 45/300'."""
        if stat not in STAT_CAPS:
            raise InvalidArgumentError(f"Unknown stat: {stat}")
        return f" {getattr(self, stat)}/{STAT_CAPS[stat]}"
