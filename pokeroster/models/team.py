from dataclasses import dataclass, field
from datetime import datetime

from pokeroster.models.creature import CreatureRecord

MAX_TEAM_SIZE = 6


@dataclass(frozen=True, slots=True)
class Team:
    """
    A named roster.

    Attributes:
        id: Store-assigned id, never reused
        name: Display name (never blank)
        created_at: Creation time, set once
    """

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class TeamMember:
    """
    One creature's membership in a team.

    Identity is (team_id, creature_id). Position is the 0-based rank within
    the team; removals may leave gaps until the team is reordered.
    """

    team_id: int
    creature_id: int
    position: int
    added_at: datetime


@dataclass(frozen=True, slots=True)
class TeamWithMembers:
    """A team together with its member ids in display order."""

    team: Team
    member_ids: tuple[int, ...]


@dataclass(frozen=True)
class TeamSnapshot:
    """
    A team joined with the catalog details of its members.

    Members are in display order. Members whose catalog record is missing
    are not present.
    """

    name: str
    members: tuple[CreatureRecord, ...] = field(default_factory=tuple)
    max_size: int = MAX_TEAM_SIZE

    @property
    def member_ids(self) -> list[int]:
        return [member.id for member in self.members]

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.max_size
