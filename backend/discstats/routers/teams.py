from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import (
    ProblemDetail,
    PlayerNotFound,
    TeamAlreadyExists,
    TeamNotFound,
    http_problem,
)
from ..models import Player, Team, TeamPlayer
from ..schemas import PlayerOut, TeamCreate, TeamOut

router = APIRouter(
    prefix="/teams",
    tags=["teams"],
    responses={404: {"model": ProblemDetail}, 409: {"model": ProblemDetail}},
)


async def _roster(session: AsyncSession, team_id: int) -> list[PlayerOut]:
    rows = (
        await session.execute(
            select(Player)
            .join(TeamPlayer, TeamPlayer.player_id == Player.id)
            .where(TeamPlayer.team_id == team_id)
            .order_by(Player.number, Player.name)
        )
    ).scalars().all()
    return [
        PlayerOut(id=p.id, name=p.name, number=p.number, gender=p.gender, teamIds=[team_id])
        for p in rows
    ]


async def _get_team(session: AsyncSession, team_id: int) -> Team:
    team = await session.get(Team, team_id)
    if team is None:
        raise TeamNotFound(team_id)
    return team


# POST /api/v0/teams
@router.post("", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
async def create_team(
    body: TeamCreate,
    session: AsyncSession = Depends(get_session),
) -> TeamOut:
    exists = (
        await session.execute(
            select(Team.id).where(func.lower(Team.name) == body.name.lower())
        )
    ).scalar_one_or_none()
    if exists is not None:
        raise TeamAlreadyExists(body.name)
    team = Team(name=body.name)
    session.add(team)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise TeamAlreadyExists(body.name)
    return TeamOut(id=team.id, name=team.name)


@router.get("", response_model=list[TeamOut])
async def list_teams(session: AsyncSession = Depends(get_session)) -> list[TeamOut]:
    rows = (await session.execute(select(Team).order_by(Team.name))).scalars().all()
    return [TeamOut(id=t.id, name=t.name) for t in rows]


@router.get("/{team_id}", response_model=TeamOut)
async def get_team(
    team_id: int, session: AsyncSession = Depends(get_session)
) -> TeamOut:
    team = await _get_team(session, team_id)
    return TeamOut(id=team.id, name=team.name, players=await _roster(session, team.id))


# POST /api/v0/teams/{team_id}/players/{player_id}
@router.post("/{team_id}/players/{player_id}", response_model=TeamOut)
async def add_roster_player(
    team_id: int,
    player_id: int,
    session: AsyncSession = Depends(get_session),
) -> TeamOut:
    team = await _get_team(session, team_id)
    if await session.get(Player, player_id) is None:
        raise PlayerNotFound(player_id)
    member = (
        await session.execute(
            select(TeamPlayer).where(
                TeamPlayer.team_id == team_id, TeamPlayer.player_id == player_id
            )
        )
    ).scalar_one_or_none()
    if member is None:
        session.add(TeamPlayer(team_id=team_id, player_id=player_id))
        await session.commit()
    return TeamOut(id=team.id, name=team.name, players=await _roster(session, team.id))


@router.delete("/{team_id}/players/{player_id}", status_code=204)
async def remove_roster_player(
    team_id: int,
    player_id: int,
    session: AsyncSession = Depends(get_session),
):
    await _get_team(session, team_id)
    member = (
        await session.execute(
            select(TeamPlayer).where(
                TeamPlayer.team_id == team_id, TeamPlayer.player_id == player_id
            )
        )
    ).scalar_one_or_none()
    if member is None:
        raise http_problem(
            status_code=404,
            detail="player is not on this roster",
            code="roster_member_not_found",
        )
    await session.delete(member)
    await session.commit()
    return Response(status_code=204)
