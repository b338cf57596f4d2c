"""Point orchestration: the single entry point for point-screen actions.

``PointOrchestrator`` turns user intents (save a line, record an event,
undo) into validated event-log mutations and returns the re-derived point
state. Derived state is always rebuilt by replaying the stored log.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import DerivedStateCache, point_state_cache
from ..exceptions import (
    DomainException,
    EmptyLog,
    GameNotFound,
    IllegalEvent,
    InvalidLineup,
    InvalidRatio,
    NoActivePoint,
    NotOnField,
    StoreUnavailable,
)
from ..models import Game, Player, Point, PointEvent, TeamPlayer
from ..schemas import (
    EventIn,
    EventOut,
    LineupEntry,
    LineupIn,
    LineupResultOut,
    PointStateOut,
    RatioCycleOut,
    ScoreOut,
    UndoOut,
    ViolationOut,
)
from ..scoring import point_state, ratio, score
from ..scoring.point_state import (
    CONVERTIBLE_KINDS,
    HOLDER_THROWS,
    EventKind,
    IllegalTransition,
    Phase,
)
from .event_log import EventLog, event_to_dict
from .validation import (
    ValidationError,
    Violation,
    lineup_ratio,
    resolve_lineup,
    validate_lineup,
)

logger = logging.getLogger(__name__)

# game id -> [lock, number of requests holding or waiting for it]
_game_locks: dict[int, list] = {}


@asynccontextmanager
async def game_lock(game_id: int):
    """Per-game lock: actions on one game run one at a time, in arrival order.

    The entry is dropped once no request holds or waits for it.
    """

    entry = _game_locks.setdefault(game_id, [asyncio.Lock(), 0])
    entry[1] += 1
    try:
        async with entry[0]:
            yield
    finally:
        entry[1] -= 1
        if entry[1] == 0 and _game_locks.get(game_id) is entry:
            del _game_locks[game_id]


def score_rows(points: Dict[int, Point]) -> Dict[int, Dict[str, Any]]:
    return {
        number: {
            "ourScoreAfter": p.our_score_after,
            "opponentScoreAfter": p.opponent_score_after,
            "scoredBy": p.scored_by,
        }
        for number, p in points.items()
    }


def _score_out(value: Optional[tuple[int, int]]) -> Optional[ScoreOut]:
    if value is None:
        return None
    return ScoreOut(our=value[0], opponent=value[1])


def _violation_out(violation: Violation) -> ViolationOut:
    return ViolationOut(
        code=violation.code,
        detail=violation.describe(),
        actual=str(violation.actual),
        expected=str(violation.expected),
    )


def _parse_ratio(value: str) -> Dict[str, int]:
    try:
        return ratio.parse_ratio(value)
    except ValueError as exc:
        raise InvalidRatio(str(exc))


class PointOrchestrator:
    def __init__(
        self,
        session: AsyncSession,
        game_id: int,
        point_number: int,
        *,
        cache: DerivedStateCache = point_state_cache,
    ) -> None:
        self.session = session
        self.game_id = game_id
        self.point_number = point_number
        self.cache = cache
        self.log = EventLog(session, cache)

    # ------------------------------------------------------------------
    # loading
    # ------------------------------------------------------------------
    async def _game(self) -> Game:
        game = await self.session.get(Game, self.game_id)
        if game is None:
            raise GameNotFound(self.game_id)
        return game

    async def _points(self) -> Dict[int, Point]:
        rows = (
            await self.session.execute(
                select(Point)
                .where(Point.game_id == self.game_id)
                .order_by(Point.point_number)
            )
        ).scalars().all()
        return {p.point_number: p for p in rows}

    def _required_ratio(self, game: Game, points: Dict[int, Point]) -> Optional[Dict[str, int]]:
        point1 = points.get(1)
        point1_ratio = None
        if self.point_number > 1 and point1 is not None and point1.gender_ratio:
            point1_ratio = ratio.parse_ratio(point1.gender_ratio)
        return ratio.required_ratio(
            game.gender_rule, game.team_size, self.point_number, point1_ratio
        )

    def _starting_o_line(self, game: Game, points: Dict[int, Point]) -> bool:
        point = points.get(self.point_number)
        if point is not None:
            return point.starting_o_line
        return score.starting_o_line(
            score_rows(points), self.point_number, game.starting_puller
        )

    async def _replay(self, point: Optional[Point], starting_o_line: bool) -> Dict:
        events: list[dict[str, Any]] = []
        if point is not None:
            events = [event_to_dict(row) for row in await self.log.list_ordered(point.id)]
        config = {
            "hasLineup": point is not None and point.lineup is not None,
            "startingOLine": starting_o_line,
        }
        return point_state.replay(events, config)

    async def _derive(self) -> PointStateOut:
        game = await self._game()
        points = await self._points()
        point = points.get(self.point_number)
        rows = score_rows(points)

        starting_o_line = self._starting_o_line(game, points)
        state = point_state.summary(await self._replay(point, starting_o_line))

        start = score.starting_score(rows, self.point_number)
        ending = score.ending_score(rows.get(self.point_number))

        locked = ratio.ratio_locked(game.gender_rule, self.point_number)
        required = self._required_ratio(game, points)
        if required is not None and not locked and point is not None and point.target_ratio:
            required = ratio.parse_ratio(point.target_ratio)

        lineup = (point.lineup if point is not None else None) or []
        violations: list[Violation] = []
        if point is not None and point.lineup is not None:
            violations = validate_lineup(lineup, game.team_size, required)

        valid = []
        if game.gender_rule != "none":
            valid = [ratio.format_ratio(s) for s in ratio.valid_splits(game.team_size)]

        return PointStateOut(
            gameId=game.id,
            pointNumber=self.point_number,
            pointId=point.id if point is not None else None,
            phase=state["phase"],
            possessionSide=state["possessionSide"],
            holderId=state["holderId"],
            startingOLine=starting_o_line,
            startingScore=_score_out(start),
            endingScore=_score_out(ending),
            currentScore=_score_out(score.current_score(start, ending)),
            lineup=[LineupEntry(**entry) for entry in lineup],
            genderRatio=point.gender_ratio if point is not None else None,
            requiredRatio=ratio.format_ratio(required) if required else None,
            ratioLocked=locked,
            validRatios=valid,
            lineValidation=[_violation_out(v) for v in violations],
            events=[EventOut(**ev) for ev in state["events"]],
        )

    @staticmethod
    def _resequence(points: Dict[int, Point]) -> None:
        """Rewrite stored ending scores after a point is finalized or reopened.

        Later points keep their scoring side but move with the new start.
        """

        for number, ending in score.sequence_endings(score_rows(points)).items():
            point = points[number]
            point.our_score_after, point.opponent_score_after = ending or (None, None)

    async def _fresh_state(self) -> PointStateOut:
        derived = await self._derive()
        await self.cache.set((self.game_id, self.point_number), derived)
        return derived.model_copy(deep=True)

    async def load_point(self) -> PointStateOut:
        async with game_lock(self.game_id):
            cached = await self.cache.get((self.game_id, self.point_number))
            if cached is not None:
                return cached.model_copy(deep=True)
            return await self._fresh_state()

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------
    @asynccontextmanager
    async def _transaction(self):
        try:
            yield
            await self.session.commit()
        except DomainException:
            await self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception(
                "Failed to store point %s of game %s", self.point_number, self.game_id
            )
            raise StoreUnavailable() from exc
        finally:
            await self.cache.invalidate_game(self.game_id)

    async def _roster_genders(self, game: Game, player_ids: list[int]) -> Dict[int, str]:
        stmt = select(Player.id, Player.gender).where(Player.id.in_(player_ids))
        if game.team_id is not None:
            stmt = stmt.join(TeamPlayer, TeamPlayer.player_id == Player.id).where(
                TeamPlayer.team_id == game.team_id
            )
        return {pid: gender for pid, gender in (await self.session.execute(stmt)).all()}

    async def save_lineup(self, body: LineupIn) -> LineupResultOut:
        async with game_lock(self.game_id):
            async with self._transaction():
                game = await self._game()
                entries = [entry.model_dump() for entry in body.players]
                genders = await self._roster_genders(
                    game, [e["playerId"] for e in entries]
                )
                try:
                    lineup = resolve_lineup(
                        entries,
                        genders,
                        team_size=game.team_size,
                        require_roles=game.gender_rule != "none",
                    )
                except ValidationError as exc:
                    raise InvalidLineup(exc.detail)

                points = await self._points()
                point = points.get(self.point_number)
                if point is not None and point.lineup is not None:
                    holder = (await self._replay(point, point.starting_o_line))["holder"]
                    if holder is not None and holder not in {e["playerId"] for e in lineup}:
                        raise InvalidLineup(
                            f"player '{holder}' has the disc and must stay on the line"
                        )

                locked = ratio.ratio_locked(game.gender_rule, self.point_number)
                required = self._required_ratio(game, points)
                if required is not None and not locked and body.targetRatio:
                    required = _parse_ratio(body.targetRatio)
                    if required not in ratio.valid_splits(game.team_size):
                        raise InvalidRatio(
                            f"{body.targetRatio} is not a valid split for {game.team_size} players"
                        )

                violations = validate_lineup(lineup, game.team_size, required)
                result = [_violation_out(v) for v in violations]
                if violations and not body.override:
                    return LineupResultOut(
                        saved=False, violations=result, state=await self._derive()
                    )

                if point is None:
                    point = Point(
                        game_id=game.id,
                        point_number=self.point_number,
                        starting_o_line=self._starting_o_line(game, points),
                    )
                    self.session.add(point)
                    await self.session.flush()
                    logger.info(
                        "Opened point %s of game %s", self.point_number, game.id
                    )

                if body.startingOLine is not None and body.startingOLine != point.starting_o_line:
                    has_events = (
                        await self.session.execute(
                            select(func.count())
                            .select_from(PointEvent)
                            .where(PointEvent.point_id == point.id)
                        )
                    ).scalar()
                    if has_events:
                        raise InvalidLineup(
                            "the starting line cannot change once events are recorded"
                        )
                    point.starting_o_line = body.startingOLine

                point.lineup = lineup
                point.gender_ratio = ratio.format_ratio(lineup_ratio(lineup))
                point.target_ratio = ratio.format_ratio(required) if required else None
                if violations:
                    logger.info(
                        "Saved line for point %s of game %s despite %s",
                        self.point_number,
                        game.id,
                        ", ".join(v.code for v in violations),
                    )

            return LineupResultOut(
                saved=True, violations=result, state=await self._fresh_state()
            )

    @staticmethod
    def _player_refs(kind: EventKind, body: EventIn, holder: Optional[int]) -> Dict[str, Optional[int]]:
        selected = body.playerId
        thrower, receiver, defender = body.throwerId, body.receiverId, body.defenderId

        if kind in (EventKind.PICKUP, EventKind.PULL, EventKind.PULL_OB):
            thrower = thrower if thrower is not None else selected
        elif kind == EventKind.PASS:
            receiver = receiver if receiver is not None else selected
        elif kind in CONVERTIBLE_KINDS:
            receiver = receiver if receiver is not None else selected
        elif kind in (EventKind.D, EventKind.INTERCEPTION, EventKind.CALLAHAN):
            defender = defender if defender is not None else selected

        if kind in HOLDER_THROWS:
            if thrower is None:
                thrower = holder if holder is not None else selected
            elif holder is not None and thrower != holder:
                raise IllegalEvent(f"player '{thrower}' does not have the disc")

        return {"throwerId": thrower, "receiverId": receiver, "defenderId": defender}

    async def record_event(self, body: EventIn) -> PointStateOut:
        async with game_lock(self.game_id):
            async with self._transaction():
                game = await self._game()
                points = await self._points()
                point = points.get(self.point_number)
                if point is None or point.lineup is None:
                    raise NoActivePoint(game.id, self.point_number)

                state = await self._replay(point, point.starting_o_line)
                was_complete = state["phase"] == Phase.POINT_COMPLETE
                kind = EventKind(body.kind)
                refs = self._player_refs(kind, body, state["holder"])

                on_field = {entry["playerId"] for entry in point.lineup}
                for player_id in refs.values():
                    if player_id is not None and player_id not in on_field:
                        raise NotOnField(player_id)

                try:
                    if kind in CONVERTIBLE_KINDS and not was_complete:
                        state = point_state.convert_trailing_pass(
                            state, kind.value, refs["receiverId"]
                        )
                        await self.log.convert_last(point.id, kind.value)
                    else:
                        state = point_state.apply({"kind": kind, **refs}, state)
                        await self.log.append(point.id, {"kind": kind, **refs})
                except IllegalTransition as exc:
                    raise IllegalEvent(str(exc))

                if state["phase"] == Phase.POINT_COMPLETE and not was_complete:
                    point.scored_by = state["scoredBy"]
                    self._resequence(points)
                    logger.info(
                        "Point %s of game %s finalized %s-%s (%s scored)",
                        self.point_number,
                        game.id,
                        point.our_score_after,
                        point.opponent_score_after,
                        point.scored_by,
                    )

            return await self._fresh_state()

    async def undo(self) -> UndoOut:
        async with game_lock(self.game_id):
            async with self._transaction():
                points = await self._points()
                point = points.get(self.point_number)
                try:
                    if point is None:
                        raise EmptyLog(self.point_number)
                    retracted = await self.log.retract_last(point.id)
                except EmptyLog as exc:
                    logger.info("Undo ignored: %s", exc.detail)
                    return UndoOut(
                        undone=False,
                        notice="Nothing to undo: no events recorded yet.",
                        state=await self._derive(),
                    )

                state = await self._replay(point, point.starting_o_line)
                if state["phase"] != Phase.POINT_COMPLETE and point.scored_by is not None:
                    point.scored_by = None
                    self._resequence(points)
                    logger.info(
                        "Point %s of game %s reopened by undo", self.point_number, self.game_id
                    )

            return UndoOut(
                undone=True,
                retracted=EventOut(**retracted),
                state=await self._fresh_state(),
            )

    async def cycle_target_ratio(self, current: str) -> RatioCycleOut:
        game = await self._game()
        parsed = _parse_ratio(current)
        locked = ratio.ratio_locked(game.gender_rule, self.point_number)
        nxt = ratio.cycle_target_ratio(parsed, game.team_size, locked)
        return RatioCycleOut(
            current=ratio.format_ratio(parsed),
            next=ratio.format_ratio(nxt),
            locked=locked,
        )
