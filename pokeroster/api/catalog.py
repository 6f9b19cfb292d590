"""
Catalog API endpoints.

Import collaborators write listing pages and detail records here; the
presentation layer reads, searches and toggles favorites.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from pokeroster.api.dependencies import get_team_repository
from pokeroster.db import catalog_store
from pokeroster.db.database import Database, get_database
from pokeroster.models.creature import (
    MAX_ATTACK,
    MAX_DEFENSE,
    MAX_EXP,
    MAX_HP,
    MAX_SPEED,
    CatalogPageEntry,
    CreatureRecord,
)
from pokeroster.models.failure import NotFoundError, StoreFailureError
from pokeroster.services.stat_engine import strength_archetype, tier, total_stats
from pokeroster.services.team_repository import TeamRepository

router = APIRouter(prefix="/catalog", tags=["catalog"])


class PageEntryModel(BaseModel):
    """A name listed on a catalog page."""

    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class PageEntryResponse(PageEntryModel):
    page: int
    id: int | None = None


class PageResponse(BaseModel):
    """Entries for one or more catalog pages."""

    entries: list[PageEntryResponse]
    count: int


class PokemonModel(BaseModel):
    """Full detail record for one Pokemon."""

    id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1)
    height: int = Field(default=0, ge=0)
    weight: int = Field(default=0, ge=0)
    experience: int = Field(default=0, ge=0)
    types: list[str] = Field(..., min_length=1, max_length=2)
    hp: int = Field(default=0, ge=0, le=MAX_HP)
    attack: int = Field(default=0, ge=0, le=MAX_ATTACK)
    defense: int = Field(default=0, ge=0, le=MAX_DEFENSE)
    speed: int = Field(default=0, ge=0, le=MAX_SPEED)
    exp: int = Field(default=0, ge=0, le=MAX_EXP)
    is_favorite: bool = False

    def to_record(self) -> CreatureRecord:
        return CreatureRecord(
            id=self.id,
            name=self.name,
            height=self.height,
            weight=self.weight,
            experience=self.experience,
            types=tuple(self.types),
            hp=self.hp,
            attack=self.attack,
            defense=self.defense,
            speed=self.speed,
            exp=self.exp,
            is_favorite=self.is_favorite,
        )


class PokemonResponse(PokemonModel):
    """Detail record plus derived stats."""

    total_stats: int
    tier: str
    archetype: str


class PokemonListResponse(BaseModel):
    pokemon: list[PokemonResponse]
    count: int


class FavoriteRequest(BaseModel):
    is_favorite: bool


def to_response(record: CreatureRecord) -> PokemonResponse:
    """Build the API view of a record."""
    return PokemonResponse(
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
        total_stats=total_stats(record),
        tier=tier(record),
        archetype=strength_archetype(record).value,
    )


def _list_response(records: list[CreatureRecord]) -> PokemonListResponse:
    return PokemonListResponse(pokemon=[to_response(r) for r in records], count=len(records))


def _page_response(entries: list[CatalogPageEntry]) -> PageResponse:
    return PageResponse(
        entries=[
            PageEntryResponse(page=e.page, name=e.name, url=e.url, id=e.creature_id)
            for e in entries
        ],
        count=len(entries),
    )


@router.put("/pages/{page}", response_model=PageResponse)
async def upsert_page(
    page: int,
    entries: list[PageEntryModel],
    database: Annotated[Database, Depends(get_database)],
) -> PageResponse:
    """Store a listing page. Names already listed are replaced."""
    models = [CatalogPageEntry(page=page, name=e.name, url=e.url) for e in entries]
    async with database.transaction() as session:
        await catalog_store.upsert_page(session, models)
    return _page_response(models)


@router.get("/pages/{page}", response_model=PageResponse)
async def get_page(
    page: int,
    database: Annotated[Database, Depends(get_database)],
) -> PageResponse:
    """Get the entries listed on one page."""
    entries = await database.run(lambda session: catalog_store.get_page_entries(session, page))
    return _page_response(entries)


@router.get("/pages", response_model=PageResponse)
async def get_pages(
    database: Annotated[Database, Depends(get_database)],
    up_to: Annotated[int, Query(ge=0)] = 0,
) -> PageResponse:
    """Get every entry on pages 0..up_to."""
    entries = await database.run(lambda session: catalog_store.get_entries_up_to(session, up_to))
    return _page_response(entries)


@router.put("/pokemon", response_model=PokemonResponse, status_code=status.HTTP_201_CREATED)
async def save_pokemon(
    request: PokemonModel,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> PokemonResponse:
    """Save a Pokemon as both a listing entry and a detail record."""
    record = request.to_record()
    if not await repository.save_pokemon(record):
        raise StoreFailureError(f"Pokemon '{record.name}' could not be saved")
    return to_response(record)


@router.get("/pokemon/{creature_id}", response_model=PokemonResponse)
async def get_pokemon(
    creature_id: int,
    database: Annotated[Database, Depends(get_database)],
) -> PokemonResponse:
    """Get one Pokemon by id. Returns 404 if not in the catalog."""
    record = await database.run(
        lambda session: catalog_store.get_detail_by_id(session, creature_id)
    )
    if record is None:
        raise NotFoundError(f"Pokemon {creature_id} not found in the catalog")
    return to_response(record)


@router.get("/pokemon/by-name/{name}", response_model=PokemonResponse)
async def get_pokemon_by_name(
    name: str,
    database: Annotated[Database, Depends(get_database)],
) -> PokemonResponse:
    record = await database.run(lambda session: catalog_store.get_detail_by_name(session, name))
    if record is None:
        raise NotFoundError(f"Pokemon '{name}' not found in the catalog")
    return to_response(record)


@router.put("/pokemon/{creature_id}/favorite", response_model=PokemonResponse)
async def set_favorite(
    creature_id: int,
    request: FavoriteRequest,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> PokemonResponse:
    """Mark or unmark a Pokemon as favorite."""
    record = await repository.set_favorite(creature_id, request.is_favorite)
    return to_response(record)


@router.get("/favorites", response_model=PokemonListResponse)
async def get_favorites(
    database: Annotated[Database, Depends(get_database)],
) -> PokemonListResponse:
    return _list_response(await database.run(catalog_store.get_favorites))


@router.get("/search", response_model=PokemonListResponse)
async def search(
    database: Annotated[Database, Depends(get_database)],
    q: Annotated[str, Query(min_length=1)],
) -> PokemonListResponse:
    """Case-insensitive name search."""
    return _list_response(
        await database.run(lambda session: catalog_store.search_details(session, q))
    )


@router.get("/by-stats", response_model=PokemonListResponse)
async def by_minimum_stats(
    database: Annotated[Database, Depends(get_database)],
    hp: Annotated[int, Query(ge=0)] = 0,
    attack: Annotated[int, Query(ge=0)] = 0,
    defense: Annotated[int, Query(ge=0)] = 0,
    speed: Annotated[int, Query(ge=0)] = 0,
) -> PokemonListResponse:
    """Pokemon meeting every minimum stat (inclusive)."""
    records = await database.run(
        lambda session: catalog_store.get_details_by_min_stats(
            session, hp=hp, attack=attack, defense=defense, speed=speed
        )
    )
    return _list_response(records)


@router.get("/by-type/{type_name}", response_model=PokemonListResponse)
async def by_type(
    type_name: str,
    database: Annotated[Database, Depends(get_database)],
) -> PokemonListResponse:
    records = await database.run(
        lambda session: catalog_store.get_details_by_type(session, type_name.lower())
    )
    return _list_response(records)
