"""Tests for the catalog import job."""

import httpx
import pytest
import respx

from pokeroster.db import catalog_store
from pokeroster.db.database import Database
from pokeroster.jobs import import_catalog
from pokeroster.jobs.import_catalog import (
    FetchError,
    fetch_detail,
    fetch_listing_page,
    import_page,
    run_import,
)

API = "https://pokeapi.co/api/v2"


def _detail(creature_id: int, name: str, type_name: str = "normal", hp: int = 50) -> dict:
    return {
        "id": creature_id,
        "name": name,
        "height": 10,
        "weight": 100,
        "base_experience": 60,
        "types": [{"slot": 1, "type": {"name": type_name}}],
        "stats": [
            {"base_stat": hp, "stat": {"name": "hp"}},
            {"base_stat": 55, "stat": {"name": "attack"}},
            {"base_stat": 40, "stat": {"name": "defense"}},
            {"base_stat": 90, "stat": {"name": "speed"}},
        ],
    }


@pytest.fixture
def listing() -> dict:
    return {
        "results": [
            {"name": "pikachu", "url": f"{API}/pokemon/25/"},
            {"name": "raichu", "url": f"{API}/pokemon/26/"},
        ]
    }


@pytest.fixture(autouse=True)
def no_rate_limit(monkeypatch) -> None:
    monkeypatch.setattr(import_catalog, "_RATE_LIMIT_DELAY", 0)


def _mock_api(listing: dict) -> None:
    respx.get(f"{API}/pokemon").mock(return_value=httpx.Response(200, json=listing))
    respx.get(f"{API}/pokemon/pikachu").mock(
        return_value=httpx.Response(200, json=_detail(25, "pikachu", "electric", hp=35))
    )
    respx.get(f"{API}/pokemon/raichu").mock(
        return_value=httpx.Response(200, json=_detail(26, "raichu", "electric", hp=60))
    )


class TestFetch:
    @respx.mock
    async def test_fetch_listing_page_uses_offset(self, listing: dict) -> None:
        route = respx.get(f"{API}/pokemon").mock(return_value=httpx.Response(200, json=listing))

        async with httpx.AsyncClient() as client:
            entries = await fetch_listing_page(client, page=2, page_size=20)

        assert [e.name for e in entries] == ["pikachu", "raichu"]
        assert all(e.page == 2 for e in entries)
        request = route.calls.last.request
        assert request.url.params["offset"] == "40"
        assert request.url.params["limit"] == "20"

    @respx.mock
    async def test_fetch_listing_http_error(self) -> None:
        respx.get(f"{API}/pokemon").mock(return_value=httpx.Response(500))

        async with httpx.AsyncClient() as client:
            with pytest.raises(FetchError, match="HTTP 500"):
                await fetch_listing_page(client, page=0)

    @respx.mock
    async def test_fetch_detail_network_error(self) -> None:
        respx.get(f"{API}/pokemon/pikachu").mock(side_effect=httpx.ConnectError("boom"))

        async with httpx.AsyncClient() as client:
            with pytest.raises(FetchError, match="pikachu"):
                await fetch_detail(client, "pikachu")


class TestImportPage:
    @respx.mock
    async def test_stores_entries_and_details(self, database: Database, listing: dict) -> None:
        _mock_api(listing)

        async with httpx.AsyncClient() as client:
            stored = await import_page(database, 0, client)

        assert stored == 2
        entries = await database.run(lambda s: catalog_store.get_page_entries(s, 0))
        assert [e.name for e in entries] == ["pikachu", "raichu"]
        raichu = await database.run(lambda s: catalog_store.get_detail_by_id(s, 26))
        assert raichu is not None
        assert raichu.types == ("electric",)
        assert raichu.hp == 60

    @respx.mock
    async def test_reimport_keeps_favorites(self, database: Database, listing: dict) -> None:
        _mock_api(listing)
        async with httpx.AsyncClient() as client:
            await import_page(database, 0, client)
        async with database.transaction() as session:
            await catalog_store.set_favorite(session, 25, True)

        async with httpx.AsyncClient() as client:
            await import_page(database, 0, client)

        pikachu = await database.run(lambda s: catalog_store.get_detail_by_id(s, 25))
        assert pikachu is not None and pikachu.is_favorite is True

    @respx.mock
    async def test_failed_detail_stores_nothing(self, database: Database, listing: dict) -> None:
        respx.get(f"{API}/pokemon").mock(return_value=httpx.Response(200, json=listing))
        respx.get(f"{API}/pokemon/pikachu").mock(
            return_value=httpx.Response(200, json=_detail(25, "pikachu"))
        )
        respx.get(f"{API}/pokemon/raichu").mock(return_value=httpx.Response(404))

        async with httpx.AsyncClient() as client:
            with pytest.raises(FetchError):
                await import_page(database, 0, client)

        assert await database.run(lambda s: catalog_store.get_entries_up_to(s, 0)) == []

    @respx.mock
    async def test_malformed_detail_is_skipped(
        self, database: Database, listing: dict, caplog
    ) -> None:
        respx.get(f"{API}/pokemon").mock(return_value=httpx.Response(200, json=listing))
        respx.get(f"{API}/pokemon/pikachu").mock(
            return_value=httpx.Response(200, json=_detail(25, "pikachu", "electric"))
        )
        broken = {**_detail(26, "raichu"), "types": [{"slot": 1}]}
        respx.get(f"{API}/pokemon/raichu").mock(return_value=httpx.Response(200, json=broken))

        async with httpx.AsyncClient() as client:
            stored = await import_page(database, 0, client)

        assert stored == 1
        assert await database.run(lambda s: catalog_store.get_detail_by_id(s, 25)) is not None
        assert await database.run(lambda s: catalog_store.get_detail_by_id(s, 26)) is None
        assert "Skipping detail for raichu" in caplog.text


class TestRunImport:
    @respx.mock
    async def test_counts_per_page(self, database: Database, listing: dict) -> None:
        _mock_api(listing)

        results = await run_import(pages=2, db=database)

        # Both pages return the same listing; the second replaces the first
        assert results == {0: 2, 1: 2}
        assert await database.run(lambda s: catalog_store.get_page_entries(s, 0)) == []
        assert len(await database.run(lambda s: catalog_store.get_page_entries(s, 1))) == 2

    @respx.mock
    async def test_failed_page_is_logged_and_skipped(self, database: Database, caplog) -> None:
        respx.get(f"{API}/pokemon").mock(return_value=httpx.Response(503))

        results = await run_import(pages=1, db=database)

        assert results == {0: 0}
        assert "Fetch error on page 0" in caplog.text
