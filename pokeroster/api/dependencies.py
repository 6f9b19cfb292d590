from typing import Annotated

from fastapi import Depends

from pokeroster.db.database import Database, get_database
from pokeroster.services.team_repository import TeamRepository


def get_team_repository(
    database: Annotated[Database, Depends(get_database)],
) -> TeamRepository:
    """Dependency that provides a repository bound to the app database."""
    return TeamRepository(database)
