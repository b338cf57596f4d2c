from collections import defaultdict

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import ProblemDetail, PlayerNotFound, TeamNotFound
from ..models import Player, Team, TeamPlayer
from ..schemas import PlayerCreate, PlayerOut

router = APIRouter(
    prefix="/players",
    tags=["players"],
    responses={400: {"model": ProblemDetail}, 404: {"model": ProblemDetail}},
)


async def _team_ids(session: AsyncSession, player_ids: list[int]) -> dict[int, list[int]]:
    memberships: dict[int, list[int]] = defaultdict(list)
    if not player_ids:
        return memberships
    rows = (
        await session.execute(
            select(TeamPlayer.player_id, TeamPlayer.team_id)
            .where(TeamPlayer.player_id.in_(player_ids))
            .order_by(TeamPlayer.team_id)
        )
    ).all()
    for player_id, team_id in rows:
        memberships[player_id].append(team_id)
    return memberships


def _to_player_out(p: Player, team_ids: list[int]) -> PlayerOut:
    return PlayerOut(
        id=p.id, name=p.name, number=p.number, gender=p.gender, teamIds=team_ids
    )


# POST /api/v0/players
@router.post("", response_model=PlayerOut, status_code=status.HTTP_201_CREATED)
async def create_player(
    body: PlayerCreate,
    session: AsyncSession = Depends(get_session),
) -> PlayerOut:
    if body.teamId is not None and await session.get(Team, body.teamId) is None:
        raise TeamNotFound(body.teamId)
    p = Player(name=body.name, number=body.number, gender=body.gender)
    session.add(p)
    await session.flush()
    team_ids: list[int] = []
    if body.teamId is not None:
        session.add(TeamPlayer(team_id=body.teamId, player_id=p.id))
        team_ids.append(body.teamId)
    await session.commit()
    return _to_player_out(p, team_ids)


@router.get("", response_model=list[PlayerOut])
async def list_players(
    q: str = "",
    team_id: int | None = Query(None, alias="teamId"),
    session: AsyncSession = Depends(get_session),
) -> list[PlayerOut]:
    stmt = select(Player)
    if team_id is not None:
        stmt = stmt.join(TeamPlayer, TeamPlayer.player_id == Player.id).where(
            TeamPlayer.team_id == team_id
        )
    if q:
        stmt = stmt.where(Player.name.ilike(f"%{q}%"))
    rows = (await session.execute(stmt.order_by(Player.name))).scalars().all()
    memberships = await _team_ids(session, [p.id for p in rows])
    return [_to_player_out(p, memberships.get(p.id, [])) for p in rows]


@router.get("/{player_id}", response_model=PlayerOut)
async def get_player(
    player_id: int, session: AsyncSession = Depends(get_session)
) -> PlayerOut:
    p = await session.get(Player, player_id)
    if p is None:
        raise PlayerNotFound(player_id)
    memberships = await _team_ids(session, [p.id])
    return _to_player_out(p, memberships.get(p.id, []))
