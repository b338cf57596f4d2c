"""Append-only per-point event log backed by the ``point_event`` table."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import DerivedStateCache, point_state_cache
from ..exceptions import EmptyLog
from ..models import Point, PointEvent
from ..scoring.point_state import CONVERTIBLE_KINDS, EventKind, IllegalTransition


def event_to_dict(row: PointEvent) -> dict[str, Any]:
    return {
        "id": row.id,
        "kind": row.kind,
        "throwerId": row.thrower_id,
        "receiverId": row.receiver_id,
        "defenderId": row.defender_id,
        "convertedFrom": row.converted_from,
    }


class EventLog:
    """Ordered event storage for points.

    Changes are flushed, not committed; the caller owns the transaction.
    Every mutation drops the cached derived state of the owning game.
    """

    def __init__(
        self, session: AsyncSession, cache: DerivedStateCache = point_state_cache
    ) -> None:
        self.session = session
        self.cache = cache

    async def _invalidate(self, point_id: int) -> None:
        game_id = (
            await self.session.execute(select(Point.game_id).where(Point.id == point_id))
        ).scalar_one_or_none()
        if game_id is not None:
            await self.cache.invalidate_game(game_id)

    async def list_ordered(self, point_id: int) -> Sequence[PointEvent]:
        return (
            await self.session.execute(
                select(PointEvent)
                .where(PointEvent.point_id == point_id)
                .order_by(PointEvent.sequence_order)
            )
        ).scalars().all()

    async def _last(self, point_id: int) -> PointEvent | None:
        return (
            await self.session.execute(
                select(PointEvent)
                .where(PointEvent.point_id == point_id)
                .order_by(PointEvent.sequence_order.desc())
                .limit(1)
            )
        ).scalar_one_or_none()

    async def append(self, point_id: int, event: Mapping[str, Any]) -> int:
        next_order = (
            await self.session.execute(
                select(func.coalesce(func.max(PointEvent.sequence_order), 0)).where(
                    PointEvent.point_id == point_id
                )
            )
        ).scalar_one() + 1
        kind = event["kind"]
        row = PointEvent(
            point_id=point_id,
            kind=kind.value if isinstance(kind, EventKind) else kind,
            thrower_id=event.get("throwerId"),
            receiver_id=event.get("receiverId"),
            defender_id=event.get("defenderId"),
            sequence_order=next_order,
        )
        self.session.add(row)
        await self.session.flush()
        await self._invalidate(point_id)
        return row.id

    async def convert_last(self, point_id: int, kind: str) -> PointEvent:
        """Change the trailing ``pass`` into ``drop`` or ``goal`` in place."""

        if EventKind(kind) not in CONVERTIBLE_KINDS:
            raise IllegalTransition(f"'{kind}' does not replace a pass")
        last = await self._last(point_id)
        if last is None or last.kind != EventKind.PASS.value:
            raise IllegalTransition(f"'{kind}' must follow a pass")
        last.kind = EventKind(kind).value
        last.converted_from = EventKind.PASS.value
        await self.session.flush()
        await self._invalidate(point_id)
        return last

    async def retract_last(self, point_id: int) -> dict[str, Any]:
        """Undo the most recent change to the log and return the retracted event.

        A converted event goes back to being the pass it was; any other
        event is deleted.
        """

        last = await self._last(point_id)
        if last is None:
            raise EmptyLog(point_id)
        retracted = event_to_dict(last)
        if last.converted_from:
            last.kind = last.converted_from
            last.converted_from = None
        else:
            await self.session.delete(last)
        await self.session.flush()
        await self._invalidate(point_id)
        return retracted
