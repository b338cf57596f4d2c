# backend/discstats/routers/points.py
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import ProblemDetail
from ..schemas import (
    EventIn,
    LineupIn,
    LineupResultOut,
    PointStateOut,
    RatioCycleOut,
    UndoOut,
)
from ..services.points import PointOrchestrator

router = APIRouter(
    prefix="/games/{game_id}/points",
    tags=["points"],
    responses={
        400: {"model": ProblemDetail},
        404: {"model": ProblemDetail},
        409: {"model": ProblemDetail},
        503: {"model": ProblemDetail},
    },
)


def _orchestrator(
    game_id: int,
    point_number: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> PointOrchestrator:
    return PointOrchestrator(session, game_id, point_number)


# GET /api/v0/games/{game_id}/points/{point_number}
@router.get("/{point_number}", response_model=PointStateOut)
async def load_point(orchestrator: PointOrchestrator = Depends(_orchestrator)):
    return await orchestrator.load_point()


# PUT /api/v0/games/{game_id}/points/{point_number}/lineup
@router.put("/{point_number}/lineup", response_model=LineupResultOut)
async def save_lineup(
    body: LineupIn, orchestrator: PointOrchestrator = Depends(_orchestrator)
):
    return await orchestrator.save_lineup(body)


# POST /api/v0/games/{game_id}/points/{point_number}/events
@router.post("/{point_number}/events", response_model=PointStateOut)
async def record_event(
    body: EventIn, orchestrator: PointOrchestrator = Depends(_orchestrator)
):
    return await orchestrator.record_event(body)


# POST /api/v0/games/{game_id}/points/{point_number}/undo
@router.post("/{point_number}/undo", response_model=UndoOut)
async def undo(orchestrator: PointOrchestrator = Depends(_orchestrator)):
    return await orchestrator.undo()


# GET /api/v0/games/{game_id}/points/{point_number}/ratio/next?current=4m3f
@router.get("/{point_number}/ratio/next", response_model=RatioCycleOut)
async def next_ratio(
    current: str = Query(..., description="Ratio shown on screen, e.g. '4m3f'"),
    orchestrator: PointOrchestrator = Depends(_orchestrator),
):
    return await orchestrator.cycle_target_ratio(current)
