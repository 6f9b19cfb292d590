import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from pokeroster.db.database import Database
from pokeroster.models.creature import CreatureRecord
from pokeroster.services.team_repository import TeamRepository


def _creature(
    creature_id: int,
    name: str,
    types: tuple[str, ...] = ("normal",),
    hp: int = 50,
    attack: int = 50,
    defense: int = 50,
    speed: int = 50,
    **kwargs,
) -> CreatureRecord:
    """Build a catalog record with sensible defaults for the fields a test ignores."""
    return CreatureRecord(
        id=creature_id,
        name=name,
        height=kwargs.pop("height", 7),
        weight=kwargs.pop("weight", 69),
        experience=kwargs.pop("experience", 64),
        types=types,
        hp=hp,
        attack=attack,
        defense=defense,
        speed=speed,
        **kwargs,
    )


@pytest.fixture
def make_creature():
    """Factory for catalog records."""
    return _creature


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine shared by every session of a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest.fixture
async def database(async_engine) -> Database:
    """Provide a Database with all tables created."""
    db = Database(async_engine)
    await db.init_db()
    yield db
    await db.drop_db()


@pytest.fixture
def repository(database: Database) -> TeamRepository:
    return TeamRepository(database, max_team_size=6, default_team_name="New Team")


@pytest.fixture
def bulbasaur() -> CreatureRecord:
    """Grass/poison attacker."""
    return _creature(
        1, "bulbasaur", ("grass", "poison"), hp=45, attack=49, defense=49, speed=45
    )


@pytest.fixture
def charmander() -> CreatureRecord:
    """Fire speedster."""
    return _creature(4, "charmander", ("fire",), hp=39, attack=52, defense=43, speed=65)


@pytest.fixture
def squirtle() -> CreatureRecord:
    """Water defender."""
    return _creature(7, "squirtle", ("water",), hp=44, attack=48, defense=65, speed=43)


@pytest.fixture
def snorlax() -> CreatureRecord:
    """Normal tank with high HP."""
    return _creature(143, "snorlax", ("normal",), hp=260, attack=110, defense=65, speed=30)


@pytest.fixture
def starters(bulbasaur, charmander, squirtle) -> list[CreatureRecord]:
    return [bulbasaur, charmander, squirtle]


@pytest.fixture
async def saved_starters(repository: TeamRepository, starters) -> list[CreatureRecord]:
    """Save the starter records to the catalog."""
    for record in starters:
        assert await repository.save_pokemon(record)
    return starters
