# backend/discstats/routers/games.py
import datetime as dt
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import GameNotFound, ProblemDetail, TeamNotFound
from ..models import Game, Point, Team
from ..schemas import GameCreate, GameOut, PointSummaryOut, ScoreOut
from ..scoring import score
from ..services.points import score_rows

logger = logging.getLogger(__name__)

# Resource-only prefix; versioning is added in main.py
router = APIRouter(
    prefix="/games",
    tags=["games"],
    responses={404: {"model": ProblemDetail}},
)


async def _to_game_out(session: AsyncSession, game: Game) -> GameOut:
    points = (
        await session.execute(
            select(Point).where(Point.game_id == game.id).order_by(Point.point_number)
        )
    ).scalars().all()
    rows = score_rows({p.point_number: p for p in points})
    running = score.game_score(rows)
    next_point = 1
    while score.ending_score(rows.get(next_point)) is not None:
        next_point += 1
    return GameOut(
        id=game.id,
        name=game.name,
        date=game.date,
        teamId=game.team_id,
        teamName=game.team_name,
        opponentName=game.opponent_name,
        teamSize=game.team_size,
        genderRule=game.gender_rule,
        startingPuller=game.starting_puller,
        score=ScoreOut(our=running["our"], opponent=running["opponent"]),
        nextPointNumber=next_point,
        points=[
            PointSummaryOut(
                pointNumber=p.point_number,
                startingOLine=p.starting_o_line,
                genderRatio=p.gender_ratio,
                ourScoreAfter=p.our_score_after,
                opponentScoreAfter=p.opponent_score_after,
                scoredBy=p.scored_by,
            )
            for p in points
        ],
    )


# POST /api/v0/games
@router.post("", response_model=GameOut, status_code=status.HTTP_201_CREATED)
async def create_game(
    body: GameCreate,
    session: AsyncSession = Depends(get_session),
) -> GameOut:
    if body.teamId is not None and await session.get(Team, body.teamId) is None:
        raise TeamNotFound(body.teamId)
    game = Game(
        name=body.name,
        date=body.date or dt.date.today(),
        team_id=body.teamId,
        team_name=body.teamName,
        opponent_name=body.opponentName,
        team_size=body.teamSize,
        gender_rule=body.genderRule,
        starting_puller=body.startingPuller,
    )
    session.add(game)
    await session.commit()
    logger.info(
        "Created game %s: %s vs %s (%sv%s, rule=%s)",
        game.id,
        game.team_name,
        game.opponent_name,
        game.team_size,
        game.team_size,
        game.gender_rule,
    )
    return await _to_game_out(session, game)


@router.get("", response_model=list[GameOut])
async def list_games(session: AsyncSession = Depends(get_session)) -> list[GameOut]:
    rows = (
        await session.execute(select(Game).order_by(Game.date.desc(), Game.id.desc()))
    ).scalars().all()
    return [await _to_game_out(session, g) for g in rows]


@router.get("/{game_id}", response_model=GameOut)
async def get_game(
    game_id: int, session: AsyncSession = Depends(get_session)
) -> GameOut:
    game = await session.get(Game, game_id)
    if game is None:
        raise GameNotFound(game_id)
    return await _to_game_out(session, game)
