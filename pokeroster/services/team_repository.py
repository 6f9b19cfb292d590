"""
Team repository.

Single entry point for team operations. Each mutating method runs as one
unit of work against the store, and checks its preconditions inside that
unit so a failed call leaves nothing behind.

INVARIANT: a team never has more than `max_team_size` members, including
under concurrent `add_member` calls (count and insert share a transaction).

INVARIANT: after `create_team` and `reorder`, positions are exactly
0..n-1. `remove_member` may leave gaps; display order is still defined by
sorting on (position, added_at).
"""

import logging
from collections.abc import AsyncGenerator, Sequence

from pokeroster.config import settings
from pokeroster.db import catalog_store, team_store
from pokeroster.db.database import Database
from pokeroster.models.creature import HIGH_STAT_RATIO, STAT_CAPS, CreatureRecord
from pokeroster.models.db import utcnow
from pokeroster.models.failure import InvalidArgumentError, KnownError, NotFoundError
from pokeroster.models.team import Team, TeamMember, TeamSnapshot, TeamWithMembers
from pokeroster.services.stat_engine import total_stats
from pokeroster.services.team_evaluator import TeamEvaluation, evaluate, missing_high_stats

logger = logging.getLogger(__name__)


def _require_positive(value: int, what: str) -> None:
    if value <= 0:
        raise InvalidArgumentError(f"{what} must be a positive integer, got {value}")


class TeamRepository:
    """Coordinates the catalog store and the team store."""

    def __init__(
        self,
        database: Database,
        max_team_size: int = settings.max_team_size,
        default_team_name: str = settings.default_team_name,
    ) -> None:
        self.database = database
        self.max_team_size = max_team_size
        self.default_team_name = default_team_name

    def normalize_name(self, name: str | None) -> str:
        """Strip a team name, falling back to the default when blank."""
        stripped = (name or "").strip()
        return stripped or self.default_team_name

    # --- Teams ---

    async def create_team(self, name: str | None, initial_creature_ids: Sequence[int] = ()) -> int:
        """
        Create a team with optional initial members at positions 0..n-1.

        Team and members are committed together or not at all.
        """
        ids = list(initial_creature_ids)
        for creature_id in ids:
            _require_positive(creature_id, "Pokemon id")
        if len(set(ids)) != len(ids):
            raise InvalidArgumentError("A Pokemon can only appear once in a team")
        if len(ids) > self.max_team_size:
            raise InvalidArgumentError(
                f"A team holds at most {self.max_team_size} Pokemon, got {len(ids)}"
            )

        async with self.database.transaction() as session:
            team = await team_store.create_team(session, self.normalize_name(name))
            added_at = utcnow()
            await team_store.add_members(
                session,
                [
                    TeamMember(
                        team_id=team.id,
                        creature_id=creature_id,
                        position=index,
                        added_at=added_at,
                    )
                    for index, creature_id in enumerate(ids)
                ],
            )

        logger.info("Created team %d (%s) with %d members", team.id, team.name, len(ids))
        return team.id

    async def rename_team(self, team_id: int, new_name: str | None) -> Team:
        """Rename a team. Raises NotFoundError if it does not exist."""
        _require_positive(team_id, "Team id")
        async with self.database.transaction() as session:
            return await team_store.rename_team(session, team_id, self.normalize_name(new_name))

    async def delete_team(self, team_id: int) -> bool:
        """
        Delete a team and its members.

        Idempotent: returns False when there was nothing to delete.
        """
        _require_positive(team_id, "Team id")
        async with self.database.transaction() as session:
            deleted = await team_store.delete_team(session, team_id)
        if deleted:
            logger.info("Deleted team %d", team_id)
        return deleted

    async def get_team(self, team_id: int) -> Team:
        _require_positive(team_id, "Team id")
        team = await self.database.run(lambda session: team_store.get_team(session, team_id))
        if team is None:
            raise NotFoundError(f"Team {team_id} not found")
        return team

    def list_teams(self) -> AsyncGenerator[list[Team], None]:
        """Stream of all teams, newest first."""
        return team_store.watch_teams(self.database)

    def team_stream(self, team_id: int) -> AsyncGenerator[Team | None, None]:
        """Stream of one team; emits None once it is deleted."""
        return team_store.watch_team(self.database, team_id)

    async def team_name_stream(self, team_id: int) -> AsyncGenerator[str | None, None]:
        """Stream of a team's current name, for a "selected team" header."""
        stream = self.team_stream(team_id)
        try:
            async for team in stream:
                yield team.name if team else None
        finally:
            await stream.aclose()

    def teams_with_members_stream(self) -> AsyncGenerator[list[TeamWithMembers], None]:
        return team_store.watch_teams_with_members(self.database)

    # --- Members ---

    async def add_member(self, team_id: int, creature_id: int) -> bool:
        """
        Append a Pokemon to a team.

        Returns False without changing anything when the team is full or
        the Pokemon is already a member. Raises NotFoundError for an
        unknown team.
        """
        _require_positive(team_id, "Team id")
        _require_positive(creature_id, "Pokemon id")

        async with self.database.transaction() as session:
            team = await team_store.get_team(session, team_id, for_update=True)
            if team is None:
                raise NotFoundError(f"Team {team_id} not found")

            if await team_store.member_exists(session, team_id, creature_id):
                logger.debug("Pokemon %d already in team %d", creature_id, team_id)
                return False

            count = await team_store.count_members(session, team_id)
            if count >= self.max_team_size:
                logger.warning(
                    "Team %d is full (%d/%d); Pokemon %d not added",
                    team_id,
                    count,
                    self.max_team_size,
                    creature_id,
                )
                return False

            await team_store.add_member(session, team_id, creature_id, position=count)
        return True

    async def remove_member(self, team_id: int, creature_id: int) -> None:
        """
        Remove a Pokemon from a team without renumbering the others.

        Raises NotFoundError for an unknown team or a non-member.
        """
        _require_positive(team_id, "Team id")
        _require_positive(creature_id, "Pokemon id")

        async with self.database.transaction() as session:
            if await team_store.get_team(session, team_id) is None:
                raise NotFoundError(f"Team {team_id} not found")
            if not await team_store.remove_member(session, team_id, creature_id):
                raise NotFoundError(f"Pokemon {creature_id} is not in team {team_id}")

    async def reorder(self, team_id: int, ordered_creature_ids: Sequence[int]) -> list[int]:
        """
        Set the member order to `ordered_creature_ids`, positions 0..n-1.

        The ids must be exactly the current members. `added_at` is kept.
        """
        _require_positive(team_id, "Team id")
        ordered = list(ordered_creature_ids)

        async with self.database.transaction() as session:
            if await team_store.get_team(session, team_id, for_update=True) is None:
                raise NotFoundError(f"Team {team_id} not found")

            current = await team_store.get_member_ids(session, team_id)
            if len(ordered) != len(current) or set(ordered) != set(current):
                raise InvalidArgumentError(
                    "Cannot reorder: Pokemon ids don't match current team members",
                    detail=f"current={sorted(current)} requested={ordered}",
                    suggestion="Reload the team and try again.",
                )

            await team_store.set_positions(session, team_id, ordered)
        return ordered

    def member_count_stream(self, team_id: int) -> AsyncGenerator[int, None]:
        return team_store.watch_member_count(self.database, team_id)

    def member_exists_stream(self, team_id: int, creature_id: int) -> AsyncGenerator[bool, None]:
        return team_store.watch_member_exists(self.database, team_id, creature_id)

    async def team_pokemon_stream(self, team_id: int) -> AsyncGenerator[list[CreatureRecord], None]:
        """
        Stream of a team's Pokemon in display order.

        Re-evaluated when membership changes. Detail edits alone do not
        trigger an emission.
        """
        ids_stream = team_store.watch_member_ids(self.database, team_id)
        try:
            async for member_ids in ids_stream:
                yield await self._load_members(member_ids)
        finally:
            await ids_stream.aclose()

    # --- Catalog ---

    async def set_favorite(self, creature_id: int, is_favorite: bool) -> CreatureRecord:
        _require_positive(creature_id, "Pokemon id")
        async with self.database.transaction() as session:
            return await catalog_store.set_favorite(session, creature_id, is_favorite)

    def favorites_stream(self) -> AsyncGenerator[list[CreatureRecord], None]:
        return catalog_store.watch_favorites(self.database)

    async def save_pokemon(self, record: CreatureRecord) -> bool:
        """
        Persist a Pokemon as both a listing entry and a detail record.

        Returns False instead of raising when the store rejects the write;
        the cause is only logged.
        """
        try:
            async with self.database.transaction() as session:
                await catalog_store.save_creature(session, record)
        except KnownError as e:
            logger.error("Error saving Pokemon %s: %s", record.name, e.detail or e.message)
            return False
        return True

    # --- Snapshots and evaluation ---

    async def _load_members(self, member_ids: Sequence[int]) -> list[CreatureRecord]:
        details = await self.database.run(
            lambda session: catalog_store.get_details_by_ids(session, member_ids)
        )
        by_id = {record.id: record for record in details}
        return [by_id[creature_id] for creature_id in member_ids if creature_id in by_id]

    async def build_team_snapshot(self, team_id: int) -> TeamSnapshot:
        """
        Join a team's ordered membership with catalog details.

        Members without a detail record are dropped from the snapshot.
        """
        _require_positive(team_id, "Team id")

        async with self.database.read() as session:
            team = await team_store.get_team(session, team_id)
            if team is None:
                raise NotFoundError(f"Team {team_id} not found")
            member_ids = await team_store.get_member_ids(session, team_id)
            details = await catalog_store.get_details_by_ids(session, member_ids)

        by_id = {record.id: record for record in details}
        missing = [creature_id for creature_id in member_ids if creature_id not in by_id]
        if missing:
            logger.warning(
                "Team %d snapshot dropped members without catalog details: %s", team_id, missing
            )

        return TeamSnapshot(
            name=team.name,
            members=tuple(by_id[creature_id] for creature_id in member_ids if creature_id in by_id),
            max_size=self.max_team_size,
        )

    async def evaluate_team(self, team_id: int) -> TeamEvaluation:
        """Compute team statistics from the latest snapshot."""
        return evaluate(await self.build_team_snapshot(team_id))

    async def recommend_additions(self, team_id: int, limit: int = 5) -> list[CreatureRecord]:
        """
        Suggest catalog Pokemon that cover the team's missing high stats.

        Empty when the team is full or already has every high stat.
        """
        snapshot = await self.build_team_snapshot(team_id)
        if snapshot.is_full or limit <= 0:
            return []

        missing = missing_high_stats(snapshot.members)
        if not missing:
            return []

        member_ids = set(snapshot.member_ids)
        candidates: dict[int, CreatureRecord] = {}
        async with self.database.read() as session:
            for stat in missing:
                # byMinimumStats is inclusive; "high" is strictly above the threshold
                minimum = int(STAT_CAPS[stat] * HIGH_STAT_RATIO) + 1
                for record in await catalog_store.get_details_by_min_stats(
                    session, **{stat: minimum}
                ):
                    if record.id not in member_ids:
                        candidates[record.id] = record

        ranked = sorted(candidates.values(), key=lambda record: (-total_stats(record), record.id))
        return ranked[:limit]
