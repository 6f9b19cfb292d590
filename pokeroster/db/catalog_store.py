"""
Catalog store.

Owns the `catalog_page` and `catalog_detail` relations. All writes replace on
conflict: importing a name or a creature id twice keeps the last version.
Functions take an open session; the caller decides the unit of work.
"""

from collections.abc import AsyncGenerator, Sequence

from sqlalchemy import String, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pokeroster.db.database import Database
from pokeroster.models.creature import CatalogPageEntry, CreatureRecord, detail_url
from pokeroster.models.db import CatalogDetailDB, CatalogPageDB
from pokeroster.models.failure import NotFoundError

PAGE_TABLES = frozenset({CatalogPageDB.__tablename__})
DETAIL_TABLES = frozenset({CatalogDetailDB.__tablename__})


def _entry_order(entry: CatalogPageEntry) -> tuple[int, int, str]:
    return (entry.page, entry.creature_id or 0, entry.name)


def page_to_model(row: CatalogPageDB) -> CatalogPageEntry:
    """Convert a database page row to a domain model."""
    return CatalogPageEntry(page=row.page, name=row.name, url=row.url)


def detail_to_model(row: CatalogDetailDB) -> CreatureRecord:
    """Convert a database detail row to a domain model."""
    return CreatureRecord(
        id=row.id,
        name=row.name,
        height=row.height,
        weight=row.weight,
        experience=row.experience,
        types=tuple(row.types),
        hp=row.hp,
        attack=row.attack,
        defense=row.defense,
        speed=row.speed,
        exp=row.exp,
        is_favorite=row.is_favorite,
    )


def _sorted_entries(rows: Sequence[CatalogPageDB]) -> list[CatalogPageEntry]:
    return sorted((page_to_model(row) for row in rows), key=_entry_order)


# --- Page Operations ---


async def upsert_page(session: AsyncSession, entries: Sequence[CatalogPageEntry]) -> int:
    """
    Insert or replace page entries by name.

    Returns the number of entries written.
    """
    for entry in entries:
        await session.merge(CatalogPageDB(name=entry.name, page=entry.page, url=entry.url))
    await session.flush()
    return len(entries)


async def get_page_entries(session: AsyncSession, page: int) -> list[CatalogPageEntry]:
    """Get the entries listed on one page."""
    result = await session.execute(select(CatalogPageDB).where(CatalogPageDB.page == page))
    return _sorted_entries(result.scalars().all())


async def get_entries_up_to(session: AsyncSession, page: int) -> list[CatalogPageEntry]:
    """Get every entry on pages 0..page inclusive."""
    result = await session.execute(select(CatalogPageDB).where(CatalogPageDB.page <= page))
    return _sorted_entries(result.scalars().all())


async def get_entry_by_name(session: AsyncSession, name: str) -> CatalogPageEntry | None:
    row = await session.get(CatalogPageDB, name)
    return page_to_model(row) if row else None


async def get_entry_by_id(session: AsyncSession, creature_id: int) -> CatalogPageEntry | None:
    """Find the page entry whose URL encodes `creature_id`."""
    result = await session.execute(
        select(CatalogPageDB).where(CatalogPageDB.url.like(f"%/{creature_id}/"))
    )
    row = result.scalars().first()
    return page_to_model(row) if row else None


async def search_entries(session: AsyncSession, query: str) -> list[CatalogPageEntry]:
    """Case-insensitive substring search over listed names."""
    result = await session.execute(
        select(CatalogPageDB).where(
            func.lower(CatalogPageDB.name).contains(query.lower(), autoescape=True)
        )
    )
    return _sorted_entries(result.scalars().all())


# --- Detail Operations ---


async def upsert_detail(session: AsyncSession, record: CreatureRecord) -> CreatureRecord:
    """Insert or fully replace the detail record for `record.id`."""
    await session.merge(
        CatalogDetailDB(
            id=record.id,
            name=record.name,
            height=record.height,
            weight=record.weight,
            experience=record.experience,
            types=list(record.types),
            hp=record.hp,
            attack=record.attack,
            defense=record.defense,
            speed=record.speed,
            exp=record.exp,
            is_favorite=record.is_favorite,
        )
    )
    await session.flush()
    return record


async def get_detail_by_name(session: AsyncSession, name: str) -> CreatureRecord | None:
    result = await session.execute(select(CatalogDetailDB).where(CatalogDetailDB.name == name))
    row = result.scalar_one_or_none()
    return detail_to_model(row) if row else None


async def get_detail_by_id(session: AsyncSession, creature_id: int) -> CreatureRecord | None:
    row = await session.get(CatalogDetailDB, creature_id)
    return detail_to_model(row) if row else None


async def get_details_by_ids(
    session: AsyncSession, creature_ids: Sequence[int]
) -> list[CreatureRecord]:
    """
    Get detail records for the given ids.

    Order is unspecified and unknown ids are omitted: the result can be
    shorter than `creature_ids`.
    """
    if not creature_ids:
        return []
    result = await session.execute(
        select(CatalogDetailDB).where(CatalogDetailDB.id.in_(list(creature_ids)))
    )
    return [detail_to_model(row) for row in result.scalars().all()]


async def set_favorite(
    session: AsyncSession, creature_id: int, is_favorite: bool
) -> CreatureRecord:
    """
    Update only the favorite flag of a creature.

    Raises NotFoundError if the creature has no detail record.
    """
    row = await session.get(CatalogDetailDB, creature_id)
    if row is None:
        raise NotFoundError(f"Pokemon {creature_id} not found in the catalog")
    row.is_favorite = is_favorite
    await session.flush()
    return detail_to_model(row)


async def get_favorites(session: AsyncSession) -> list[CreatureRecord]:
    result = await session.execute(
        select(CatalogDetailDB)
        .where(CatalogDetailDB.is_favorite.is_(True))
        .order_by(CatalogDetailDB.id)
    )
    return [detail_to_model(row) for row in result.scalars().all()]


async def search_details(session: AsyncSession, name_pattern: str) -> list[CreatureRecord]:
    """Case-insensitive substring search over creature names."""
    result = await session.execute(
        select(CatalogDetailDB)
        .where(func.lower(CatalogDetailDB.name).contains(name_pattern.lower(), autoescape=True))
        .order_by(CatalogDetailDB.id)
    )
    return [detail_to_model(row) for row in result.scalars().all()]


async def get_details_by_type(session: AsyncSession, type_name: str) -> list[CreatureRecord]:
    """Get creatures that have `type_name` among their types."""
    result = await session.execute(
        select(CatalogDetailDB)
        .where(cast(CatalogDetailDB.types, String).contains(f'"{type_name}"', autoescape=True))
        .order_by(CatalogDetailDB.id)
    )
    return [detail_to_model(row) for row in result.scalars().all()]


async def get_details_by_min_stats(
    session: AsyncSession,
    hp: int = 0,
    attack: int = 0,
    defense: int = 0,
    speed: int = 0,
) -> list[CreatureRecord]:
    """Get creatures meeting every inclusive lower bound."""
    result = await session.execute(
        select(CatalogDetailDB)
        .where(
            CatalogDetailDB.hp >= hp,
            CatalogDetailDB.attack >= attack,
            CatalogDetailDB.defense >= defense,
            CatalogDetailDB.speed >= speed,
        )
        .order_by(CatalogDetailDB.id)
    )
    return [detail_to_model(row) for row in result.scalars().all()]


async def save_creature(session: AsyncSession, record: CreatureRecord) -> CreatureRecord:
    """
    Save a creature as both a listing entry and a detail record.

    The synthesized entry is placed on page 0 with a URL derived from the id.
    """
    entry = CatalogPageEntry(page=0, name=record.name, url=detail_url(record.id))
    await upsert_page(session, [entry])
    return await upsert_detail(session, record)


# --- Reactive Queries ---


def watch_entries_up_to(
    database: Database, page: int
) -> AsyncGenerator[list[CatalogPageEntry], None]:
    return database.watch(PAGE_TABLES, lambda session: get_entries_up_to(session, page))


def watch_detail_by_id(
    database: Database, creature_id: int
) -> AsyncGenerator[CreatureRecord | None, None]:
    return database.watch(DETAIL_TABLES, lambda session: get_detail_by_id(session, creature_id))


def watch_detail_by_name(
    database: Database, name: str
) -> AsyncGenerator[CreatureRecord | None, None]:
    return database.watch(DETAIL_TABLES, lambda session: get_detail_by_name(session, name))


def watch_details_by_ids(
    database: Database, creature_ids: Sequence[int]
) -> AsyncGenerator[list[CreatureRecord], None]:
    ids = list(creature_ids)
    return database.watch(DETAIL_TABLES, lambda session: get_details_by_ids(session, ids))


def watch_favorites(database: Database) -> AsyncGenerator[list[CreatureRecord], None]:
    return database.watch(DETAIL_TABLES, get_favorites)
