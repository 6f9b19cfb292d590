"""
Team store.

Owns the `team` and `team_member` relations. Members are ordered by
(position, added_at). Deleting a team deletes its members in the same
unit of work.
"""

from collections.abc import AsyncGenerator, Sequence
from datetime import datetime

from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pokeroster.db.database import Database
from pokeroster.models.db import TeamDB, TeamMemberDB, utcnow
from pokeroster.models.failure import NotFoundError
from pokeroster.models.team import Team, TeamMember, TeamWithMembers

TEAM_TABLES = frozenset({TeamDB.__tablename__})
MEMBER_TABLES = frozenset({TeamMemberDB.__tablename__})
ALL_TABLES = TEAM_TABLES | MEMBER_TABLES

_MEMBER_ORDER = (TeamMemberDB.position.asc(), TeamMemberDB.added_at.asc(), TeamMemberDB.creature_id)


def team_to_model(row: TeamDB) -> Team:
    """Convert a database team to a domain model."""
    return Team(id=row.id, name=row.name, created_at=row.created_at)


def member_to_model(row: TeamMemberDB) -> TeamMember:
    """Convert a database membership row to a domain model."""
    return TeamMember(
        team_id=row.team_id,
        creature_id=row.creature_id,
        position=row.position,
        added_at=row.added_at,
    )


# --- Team Operations ---


async def create_team(session: AsyncSession, name: str) -> Team:
    """Create an empty team. The id is assigned by the store."""
    row = TeamDB(name=name, created_at=utcnow())
    session.add(row)
    await session.flush()
    return team_to_model(row)


async def get_team(session: AsyncSession, team_id: int, for_update: bool = False) -> Team | None:
    """
    Get a team by id.

    With `for_update` the row is locked until the transaction ends on
    databases that support row locks.
    """
    stmt = select(TeamDB).where(TeamDB.id == team_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    row = result.scalar_one_or_none()
    return team_to_model(row) if row else None


async def list_teams(session: AsyncSession) -> list[Team]:
    """Get all teams, newest first."""
    result = await session.execute(
        select(TeamDB).order_by(TeamDB.created_at.desc(), TeamDB.id.desc())
    )
    return [team_to_model(row) for row in result.scalars().all()]


async def rename_team(session: AsyncSession, team_id: int, new_name: str) -> Team:
    """
    Rename a team.

    Raises NotFoundError if the team does not exist.
    """
    row = await session.get(TeamDB, team_id)
    if row is None:
        raise NotFoundError(f"Team {team_id} not found")
    row.name = new_name
    await session.flush()
    return team_to_model(row)


async def delete_team(session: AsyncSession, team_id: int) -> bool:
    """
    Delete a team and all of its members.

    Returns True if deleted, False if not found.
    """
    await clear_members(session, team_id)
    result = await session.execute(delete(TeamDB).where(TeamDB.id == team_id))
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount) > 0  # type: ignore[attr-defined]


# --- Member Operations ---


async def add_member(
    session: AsyncSession,
    team_id: int,
    creature_id: int,
    position: int,
    added_at: datetime | None = None,
) -> TeamMember:
    """Insert one membership row."""
    row = TeamMemberDB(
        team_id=team_id,
        creature_id=creature_id,
        position=position,
        added_at=added_at or utcnow(),
    )
    session.add(row)
    await session.flush()
    return member_to_model(row)


async def add_members(session: AsyncSession, members: Sequence[TeamMember]) -> int:
    """
    Insert several membership rows in one flush.

    Either every row is written or, on error, the enclosing transaction
    rolls back and none are.
    """
    session.add_all(
        TeamMemberDB(
            team_id=member.team_id,
            creature_id=member.creature_id,
            position=member.position,
            added_at=member.added_at,
        )
        for member in members
    )
    await session.flush()
    return len(members)


async def remove_member(session: AsyncSession, team_id: int, creature_id: int) -> bool:
    """
    Delete one membership row. Other positions are left as they are.

    Returns True if a row was deleted.
    """
    result = await session.execute(
        delete(TeamMemberDB).where(
            TeamMemberDB.team_id == team_id,
            TeamMemberDB.creature_id == creature_id,
        )
    )
    return int(result.rowcount) > 0  # type: ignore[attr-defined]


async def clear_members(session: AsyncSession, team_id: int) -> int:
    """
    Delete every member of a team.

    Returns the number of deleted rows.
    """
    result = await session.execute(delete(TeamMemberDB).where(TeamMemberDB.team_id == team_id))
    return int(result.rowcount)  # type: ignore[attr-defined]


async def get_current_members(session: AsyncSession, team_id: int) -> list[TeamMember]:
    """Get membership rows in display order."""
    result = await session.execute(
        select(TeamMemberDB).where(TeamMemberDB.team_id == team_id).order_by(*_MEMBER_ORDER)
    )
    return [member_to_model(row) for row in result.scalars().all()]


async def set_positions(session: AsyncSession, team_id: int, ordered_ids: Sequence[int]) -> None:
    """Rewrite member positions to match the index in `ordered_ids`."""
    result = await session.execute(select(TeamMemberDB).where(TeamMemberDB.team_id == team_id))
    rows = {row.creature_id: row for row in result.scalars().all()}
    for index, creature_id in enumerate(ordered_ids):
        rows[creature_id].position = index
    await session.flush()


async def get_member_ids(session: AsyncSession, team_id: int) -> list[int]:
    """Get member creature ids ordered by (position, added_at)."""
    result = await session.execute(
        select(TeamMemberDB.creature_id)
        .where(TeamMemberDB.team_id == team_id)
        .order_by(*_MEMBER_ORDER)
    )
    return list(result.scalars().all())


async def count_members(session: AsyncSession, team_id: int) -> int:
    result = await session.execute(
        select(func.count()).select_from(TeamMemberDB).where(TeamMemberDB.team_id == team_id)
    )
    return int(result.scalar_one())


async def member_exists(session: AsyncSession, team_id: int, creature_id: int) -> bool:
    result = await session.execute(
        select(
            exists().where(
                TeamMemberDB.team_id == team_id,
                TeamMemberDB.creature_id == creature_id,
            )
        )
    )
    return bool(result.scalar())


async def list_teams_with_members(session: AsyncSession) -> list[TeamWithMembers]:
    """Get every team with its ordered member ids, newest team first."""
    teams = await list_teams(session)
    result = await session.execute(select(TeamMemberDB).order_by(*_MEMBER_ORDER))
    members: dict[int, list[int]] = {}
    for row in result.scalars().all():
        members.setdefault(row.team_id, []).append(row.creature_id)
    return [
        TeamWithMembers(team=team, member_ids=tuple(members.get(team.id, [])))
        for team in teams
    ]


# --- Reactive Queries ---


def watch_teams(database: Database) -> AsyncGenerator[list[Team], None]:
    return database.watch(TEAM_TABLES, list_teams)


def watch_team(database: Database, team_id: int) -> AsyncGenerator[Team | None, None]:
    return database.watch(TEAM_TABLES, lambda session: get_team(session, team_id))


def watch_member_ids(database: Database, team_id: int) -> AsyncGenerator[list[int], None]:
    return database.watch(MEMBER_TABLES, lambda session: get_member_ids(session, team_id))


def watch_member_count(database: Database, team_id: int) -> AsyncGenerator[int, None]:
    return database.watch(MEMBER_TABLES, lambda session: count_members(session, team_id))


def watch_member_exists(
    database: Database, team_id: int, creature_id: int
) -> AsyncGenerator[bool, None]:
    return database.watch(
        MEMBER_TABLES, lambda session: member_exists(session, team_id, creature_id)
    )


def watch_teams_with_members(database: Database) -> AsyncGenerator[list[TeamWithMembers], None]:
    return database.watch(ALL_TABLES, list_teams_with_members)
