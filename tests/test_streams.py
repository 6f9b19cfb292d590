"""Tests for change notification and reactive queries."""

import asyncio

import pytest

from pokeroster.db import catalog_store, team_store
from pokeroster.db.database import Database
from pokeroster.db.streams import ChangeNotifier
from pokeroster.services.team_repository import TeamRepository


async def _not_signalled(wait) -> bool:
    try:
        await asyncio.wait_for(wait(), timeout=0.05)
    except TimeoutError:
        return True
    return False


class TestChangeNotifier:
    async def test_publish_wakes_matching_subscription(self) -> None:
        notifier = ChangeNotifier()
        subscription = notifier.subscribe({"team"})

        notifier.publish({"team", "team_member"})

        await asyncio.wait_for(subscription.wait(), timeout=1)

    async def test_publish_ignores_other_tables(self) -> None:
        notifier = ChangeNotifier()
        subscription = notifier.subscribe({"team"})

        notifier.publish({"catalog_detail"})

        assert await _not_signalled(subscription.wait)

    async def test_signals_coalesce(self) -> None:
        notifier = ChangeNotifier()
        subscription = notifier.subscribe({"team"})

        notifier.publish({"team"})
        notifier.publish({"team"})

        await asyncio.wait_for(subscription.wait(), timeout=1)
        assert await _not_signalled(subscription.wait)

    def test_close_unsubscribes(self) -> None:
        notifier = ChangeNotifier()
        subscription = notifier.subscribe({"team"})

        subscription.close()
        subscription.close()

        assert notifier.subscriber_count == 0


class TestCommitNotification:
    async def test_commit_publishes_touched_tables(self, database: Database) -> None:
        teams = database.notifier.subscribe({"team"})
        details = database.notifier.subscribe({"catalog_detail"})

        async with database.transaction() as session:
            await team_store.create_team(session, "Fresh")

        await asyncio.wait_for(teams.wait(), timeout=1)
        assert await _not_signalled(details.wait)

    async def test_bulk_delete_is_tracked(self, database: Database) -> None:
        async with database.transaction() as session:
            team = await team_store.create_team(session, "T")
            await team_store.add_member(session, team.id, 1, 0)
        members = database.notifier.subscribe({"team_member"})

        async with database.transaction() as session:
            await team_store.clear_members(session, team.id)

        await asyncio.wait_for(members.wait(), timeout=1)

    async def test_rollback_publishes_nothing(self, database: Database) -> None:
        teams = database.notifier.subscribe({"team"})

        with pytest.raises(RuntimeError):
            async with database.transaction() as session:
                await team_store.create_team(session, "Never")
                raise RuntimeError("abort")

        assert await _not_signalled(teams.wait)
        assert await database.run(team_store.list_teams) == []


class TestWatch:
    async def test_emits_immediately_then_after_commit(
        self, repository: TeamRepository
    ) -> None:
        stream = repository.list_teams()
        try:
            assert await anext(stream) == []

            team_id = await repository.create_team("Live")

            teams = await asyncio.wait_for(anext(stream), timeout=1)
            assert [t.id for t in teams] == [team_id]
        finally:
            await stream.aclose()

    async def test_aclose_detaches(self, repository: TeamRepository) -> None:
        notifier = repository.database.notifier
        stream = repository.list_teams()
        await anext(stream)
        assert notifier.subscriber_count == 1

        await stream.aclose()

        assert notifier.subscriber_count == 0
        await repository.create_team("After close")

    async def test_several_commits_collapse_into_latest_state(
        self, repository: TeamRepository
    ) -> None:
        team_id = await repository.create_team("T")
        stream = repository.member_count_stream(team_id)
        try:
            assert await anext(stream) == 0

            await repository.add_member(team_id, 1)
            await repository.add_member(team_id, 4)

            assert await asyncio.wait_for(anext(stream), timeout=1) == 2
        finally:
            await stream.aclose()

    async def test_team_stream_emits_none_after_delete(self, repository: TeamRepository) -> None:
        team_id = await repository.create_team("Short-lived")
        stream = repository.team_stream(team_id)
        try:
            first = await anext(stream)
            assert first is not None and first.name == "Short-lived"

            await repository.delete_team(team_id)

            assert await asyncio.wait_for(anext(stream), timeout=1) is None
        finally:
            await stream.aclose()

    async def test_team_name_stream_follows_renames(self, repository: TeamRepository) -> None:
        team_id = await repository.create_team("Before")
        stream = repository.team_name_stream(team_id)
        try:
            assert await anext(stream) == "Before"

            await repository.rename_team(team_id, "After")

            assert await asyncio.wait_for(anext(stream), timeout=1) == "After"
        finally:
            await stream.aclose()
        assert repository.database.notifier.subscriber_count == 0

    async def test_member_exists_stream(self, repository: TeamRepository) -> None:
        team_id = await repository.create_team("T")
        stream = repository.member_exists_stream(team_id, 25)
        try:
            assert await anext(stream) is False

            await repository.add_member(team_id, 25)

            assert await asyncio.wait_for(anext(stream), timeout=1) is True
        finally:
            await stream.aclose()

    async def test_teams_with_members_stream(self, repository: TeamRepository) -> None:
        team_id = await repository.create_team("T", [4])
        stream = repository.teams_with_members_stream()
        try:
            first = await anext(stream)
            assert [(t.team.id, t.member_ids) for t in first] == [(team_id, (4,))]

            await repository.add_member(team_id, 1)

            second = await asyncio.wait_for(anext(stream), timeout=1)
            assert second[0].member_ids == (4, 1)
        finally:
            await stream.aclose()


class TestCatalogStreams:
    async def test_team_pokemon_stream(self, repository: TeamRepository, saved_starters) -> None:
        bulbasaur, charmander, _ = saved_starters
        team_id = await repository.create_team("Starters", [1])
        stream = repository.team_pokemon_stream(team_id)
        try:
            assert await anext(stream) == [bulbasaur]

            await repository.add_member(team_id, 4)

            assert await asyncio.wait_for(anext(stream), timeout=1) == [bulbasaur, charmander]
        finally:
            await stream.aclose()

    async def test_favorites_stream(self, repository: TeamRepository, saved_starters) -> None:
        stream = repository.favorites_stream()
        try:
            assert await anext(stream) == []

            await repository.set_favorite(7, True)

            favorites = await asyncio.wait_for(anext(stream), timeout=1)
            assert [f.name for f in favorites] == ["squirtle"]
        finally:
            await stream.aclose()

    async def test_detail_stream_by_id(self, database: Database, bulbasaur) -> None:
        stream = catalog_store.watch_detail_by_id(database, 1)
        try:
            assert await anext(stream) is None

            async with database.transaction() as session:
                await catalog_store.upsert_detail(session, bulbasaur)

            assert await asyncio.wait_for(anext(stream), timeout=1) == bulbasaur
        finally:
            await stream.aclose()

    async def test_entries_stream(self, database: Database, squirtle) -> None:
        stream = catalog_store.watch_entries_up_to(database, 0)
        try:
            assert await anext(stream) == []

            async with database.transaction() as session:
                await catalog_store.save_creature(session, squirtle)

            entries = await asyncio.wait_for(anext(stream), timeout=1)
            assert [e.name for e in entries] == ["squirtle"]
        finally:
            await stream.aclose()
