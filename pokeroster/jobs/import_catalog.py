"""
Catalog import job.

Fetches listing pages and creature details from PokeAPI and writes them to
the catalog store. Can be run as a standalone script or called from a
scheduler.
"""

import argparse
import asyncio
import logging
from dataclasses import replace

import httpx

from pokeroster.config import settings
from pokeroster.db import catalog_store
from pokeroster.db.database import Database, database
from pokeroster.models.creature import CatalogPageEntry, CreatureRecord
from pokeroster.models.failure import KnownError
from pokeroster.parsers.pokeapi import parse_detail, parse_listing

logger = logging.getLogger(__name__)

USER_AGENT = "PokeRoster/1.0"

# Be polite to the public API between detail requests
_RATE_LIMIT_DELAY = 0.05


class FetchError(Exception):
    """Raised when fetching catalog data fails."""

    pass


async def fetch_listing_page(
    client: httpx.AsyncClient, page: int, page_size: int = settings.import_page_size
) -> list[CatalogPageEntry]:
    """
    Fetch one page of the creature listing.

    Raises:
        FetchError: If the request fails
    """
    url = f"{settings.pokeapi_url}/pokemon"
    params = {"offset": page * page_size, "limit": page_size}
    try:
        response = await client.get(url, params=params)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise FetchError(f"Failed to fetch page {page}: HTTP {e.response.status_code}") from e
    except httpx.RequestError as e:
        raise FetchError(f"Failed to fetch page {page}: {e}") from e
    return parse_listing(response.json(), page)


async def fetch_detail(client: httpx.AsyncClient, name: str) -> dict:
    """
    Fetch the raw detail payload for one creature.

    Raises:
        FetchError: If the request fails
    """
    url = f"{settings.pokeapi_url}/pokemon/{name}"
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise FetchError(f"Failed to fetch {name}: HTTP {e.response.status_code}") from e
    except httpx.RequestError as e:
        raise FetchError(f"Failed to fetch {name}: {e}") from e
    return response.json()


def parse_payloads(payloads: list[dict]) -> list[CreatureRecord]:
    """
    Parse detail payloads, skipping the ones that do not describe a valid creature.

    A skipped payload is logged; the rest of the page still imports.
    """
    records: list[CreatureRecord] = []
    for payload in payloads:
        try:
            records.append(parse_detail(payload))
        except (KnownError, ValueError, TypeError) as e:
            logger.warning("Skipping detail for %s: %s", payload.get("name", "?"), e)
    return records


async def store_page(
    db: Database, entries: list[CatalogPageEntry], records: list[CreatureRecord]
) -> list[CreatureRecord]:
    """
    Write a page and its details in one transaction.

    Favorite flags already stored are kept.
    """
    stored: list[CreatureRecord] = []
    async with db.transaction() as session:
        await catalog_store.upsert_page(session, entries)
        for record in records:
            existing = await catalog_store.get_detail_by_id(session, record.id)
            if existing is not None and existing.is_favorite:
                record = replace(record, is_favorite=True)
            stored.append(await catalog_store.upsert_detail(session, record))
    return stored


async def import_page(db: Database, page: int, client: httpx.AsyncClient) -> int:
    """
    Import one listing page and the details of every name on it.

    Returns:
        Number of creatures stored
    """
    logger.info("Fetching catalog page %d...", page)
    entries = await fetch_listing_page(client, page)

    payloads = []
    for entry in entries:
        payloads.append(await fetch_detail(client, entry.name))
        await asyncio.sleep(_RATE_LIMIT_DELAY)

    records = await store_page(db, entries, parse_payloads(payloads))
    logger.info("Stored %d Pokemon from page %d", len(records), page)
    return len(records)


async def run_import(pages: int = 1, db: Database = database) -> dict[int, int]:
    """
    Import pages 0..pages-1.

    Pages that fail are logged and skipped.

    Returns:
        Dict mapping page number to number of creatures stored
    """
    results: dict[int, int] = {}

    async with httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        timeout=30.0,
    ) as client:
        for page in range(pages):
            try:
                results[page] = await import_page(db, page, client)
            except FetchError as e:
                logger.error("Fetch error on page %d: %s", page, e)
                results[page] = 0
            except KnownError as e:
                logger.error("Could not store page %d: %s", page, e.message)
                results[page] = 0

    total = sum(results.values())
    logger.info("Catalog import complete. Total Pokemon stored: %d", total)
    return results


def main() -> None:
    """CLI entry point for running the catalog import."""
    parser = argparse.ArgumentParser(description="Import the PokeAPI catalog")
    parser.add_argument("--pages", type=int, default=1, help="Number of listing pages to import")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    async def _run() -> None:
        await database.init_db()
        await run_import(pages=args.pages)

    asyncio.run(_run())


if __name__ == "__main__":
    main()
