"""
Tests for the team size invariant.

INVARIANT: a team never holds more than `max_team_size` members.

These tests verify:
1. Concurrent adds to a nearly full team admit exactly one newcomer
2. A burst of adds to an empty team stops at the cap
3. The same holds on a file-backed database with a real connection pool
"""

import asyncio

import pytest

from pokeroster.db import team_store
from pokeroster.db.database import Database
from pokeroster.services.team_repository import TeamRepository


async def _count(repository: TeamRepository, team_id: int) -> int:
    return await repository.database.run(lambda s: team_store.count_members(s, team_id))


class TestConcurrentAdds:
    async def test_last_slot_goes_to_exactly_one(self, repository: TeamRepository) -> None:
        team_id = await repository.create_team("Almost", [1, 2, 3, 4, 5])

        results = await asyncio.gather(
            repository.add_member(team_id, 10),
            repository.add_member(team_id, 11),
        )

        assert sorted(results) == [False, True]
        assert await _count(repository, team_id) == 6

    async def test_burst_stops_at_cap(self, repository: TeamRepository) -> None:
        team_id = await repository.create_team("Burst")

        results = await asyncio.gather(
            *(repository.add_member(team_id, creature_id) for creature_id in range(1, 13))
        )

        assert results.count(True) == 6
        assert await _count(repository, team_id) == 6

    async def test_positions_stay_dense_under_concurrency(
        self, repository: TeamRepository
    ) -> None:
        team_id = await repository.create_team("Dense")

        await asyncio.gather(*(repository.add_member(team_id, i) for i in range(1, 5)))

        members = await repository.database.run(
            lambda s: team_store.get_current_members(s, team_id)
        )
        assert sorted(m.position for m in members) == [0, 1, 2, 3]


class TestFileBackedDatabase:
    @pytest.fixture
    async def file_repository(self, tmp_path) -> TeamRepository:
        database = Database.from_url(f"sqlite+aiosqlite:///{tmp_path / 'roster.db'}")
        await database.init_db()
        yield TeamRepository(database, max_team_size=6)
        await database.dispose()

    async def test_last_slot_goes_to_exactly_one(self, file_repository: TeamRepository) -> None:
        team_id = await file_repository.create_team("Almost", [1, 2, 3, 4, 5])

        results = await asyncio.gather(
            *(file_repository.add_member(team_id, creature_id) for creature_id in (10, 11, 12))
        )

        assert results.count(True) == 1
        assert await _count(file_repository, team_id) == 6
