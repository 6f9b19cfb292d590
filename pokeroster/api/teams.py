"""
Team API endpoints.

Create, rename and delete teams, manage membership and order, and read
snapshots, evaluations and recommendations.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from pokeroster.api.catalog import PokemonResponse, to_response
from pokeroster.api.dependencies import get_team_repository
from pokeroster.db import team_store
from pokeroster.db.database import Database, get_database
from pokeroster.models.team import Team
from pokeroster.services.team_repository import TeamRepository

router = APIRouter(prefix="/teams", tags=["teams"])


class TeamModel(BaseModel):
    id: int
    name: str
    created_at: datetime


class TeamListResponse(BaseModel):
    teams: list[TeamModel]
    count: int


class CreateTeamRequest(BaseModel):
    """Request body for creating a team. A blank name gets the default."""

    name: str | None = None
    creature_ids: list[int] = Field(default_factory=list)


class RenameTeamRequest(BaseModel):
    name: str | None = None


class AddMemberRequest(BaseModel):
    creature_id: int = Field(..., gt=0)


class AddMemberResponse(BaseModel):
    """Whether the Pokemon was added, and the membership afterwards."""

    added: bool
    member_ids: list[int]


class ReorderRequest(BaseModel):
    creature_ids: list[int]


class MemberIdsResponse(BaseModel):
    member_ids: list[int]


class SnapshotResponse(BaseModel):
    name: str
    members: list[PokemonResponse]
    max_size: int
    is_full: bool


class EvaluationResponse(BaseModel):
    """Derived statistics for a team."""

    team_name: str
    member_count: int
    average_strength: int
    type_coverage: int
    synergy: float
    is_balanced: bool
    suggestions: list[str]
    tiers: dict[int, str]
    archetypes: dict[int, str]


class RecommendationResponse(BaseModel):
    pokemon: list[PokemonResponse]
    count: int


def _team_model(team: Team) -> TeamModel:
    return TeamModel(id=team.id, name=team.name, created_at=team.created_at)


async def _member_ids(database: Database, team_id: int) -> list[int]:
    return await database.run(lambda session: team_store.get_member_ids(session, team_id))


@router.get("/", response_model=TeamListResponse)
async def list_teams(
    database: Annotated[Database, Depends(get_database)],
) -> TeamListResponse:
    """List all teams, newest first."""
    teams = await database.run(team_store.list_teams)
    return TeamListResponse(teams=[_team_model(t) for t in teams], count=len(teams))


@router.post("/", response_model=TeamModel, status_code=status.HTTP_201_CREATED)
async def create_team(
    request: CreateTeamRequest,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> TeamModel:
    """Create a team with optional initial members, in the given order."""
    team_id = await repository.create_team(request.name, request.creature_ids)
    return _team_model(await repository.get_team(team_id))


@router.get("/{team_id}", response_model=TeamModel)
async def get_team(
    team_id: int,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> TeamModel:
    return _team_model(await repository.get_team(team_id))


@router.patch("/{team_id}", response_model=TeamModel)
async def rename_team(
    team_id: int,
    request: RenameTeamRequest,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> TeamModel:
    return _team_model(await repository.rename_team(team_id, request.name))


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(
    team_id: int,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> None:
    """Delete a team and its members. Deleting a missing team is a no-op."""
    await repository.delete_team(team_id)


@router.post("/{team_id}/members", response_model=AddMemberResponse)
async def add_member(
    team_id: int,
    request: AddMemberRequest,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> AddMemberResponse:
    """
    Append a Pokemon to a team.

    `added` is false when the team is full or already has this Pokemon.
    """
    added = await repository.add_member(team_id, request.creature_id)
    return AddMemberResponse(
        added=added, member_ids=await _member_ids(repository.database, team_id)
    )


@router.delete("/{team_id}/members/{creature_id}", response_model=MemberIdsResponse)
async def remove_member(
    team_id: int,
    creature_id: int,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> MemberIdsResponse:
    await repository.remove_member(team_id, creature_id)
    return MemberIdsResponse(member_ids=await _member_ids(repository.database, team_id))


@router.put("/{team_id}/order", response_model=MemberIdsResponse)
async def reorder(
    team_id: int,
    request: ReorderRequest,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> MemberIdsResponse:
    """Set the member order. The ids must be exactly the current members."""
    return MemberIdsResponse(member_ids=await repository.reorder(team_id, request.creature_ids))


@router.get("/{team_id}/snapshot", response_model=SnapshotResponse)
async def get_snapshot(
    team_id: int,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> SnapshotResponse:
    snapshot = await repository.build_team_snapshot(team_id)
    return SnapshotResponse(
        name=snapshot.name,
        members=[to_response(member) for member in snapshot.members],
        max_size=snapshot.max_size,
        is_full=snapshot.is_full,
    )


@router.get("/{team_id}/evaluation", response_model=EvaluationResponse)
async def get_evaluation(
    team_id: int,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
) -> EvaluationResponse:
    evaluation = await repository.evaluate_team(team_id)
    return EvaluationResponse(
        team_name=evaluation.team_name,
        member_count=evaluation.member_count,
        average_strength=evaluation.average_strength,
        type_coverage=evaluation.type_coverage,
        synergy=evaluation.synergy,
        is_balanced=evaluation.is_balanced,
        suggestions=evaluation.suggestions,
        tiers=evaluation.tiers,
        archetypes={k: v.value for k, v in evaluation.archetypes.items()},
    )


@router.get("/{team_id}/recommendations", response_model=RecommendationResponse)
async def get_recommendations(
    team_id: int,
    repository: Annotated[TeamRepository, Depends(get_team_repository)],
    limit: Annotated[int, Query(ge=1, le=20)] = 5,
) -> RecommendationResponse:
    """Catalog Pokemon that would cover the team's missing high stats."""
    records = await repository.recommend_additions(team_id, limit=limit)
    return RecommendationResponse(pokemon=[to_response(r) for r in records], count=len(records))
