from __future__ import annotations

from asyncio import Lock
import time
from typing import Any


class DerivedStateCache:
    """In-memory cache of derived point state, grouped by game.

    A point's starting score and line depend on the points before it, so
    entries are only ever dropped a whole game at a time.
    """

    def __init__(self, ttl_seconds: float = 300.0) -> None:
        self._ttl = ttl_seconds
        self._lock = Lock()
        self._games: dict[int, dict[int, tuple[Any, float]]] = {}

    async def get(self, key: tuple[int, int]) -> Any | None:
        game_id, point_number = key
        async with self._lock:
            points = self._games.get(game_id, {})
            entry = points.get(point_number)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= time.monotonic():
                del points[point_number]
                return None
            return value

    async def set(self, key: tuple[int, int], value: Any) -> None:
        if self._ttl <= 0:
            return
        game_id, point_number = key
        async with self._lock:
            points = self._games.setdefault(game_id, {})
            points[point_number] = (value, time.monotonic() + self._ttl)

    async def invalidate_game(self, game_id: int) -> None:
        async with self._lock:
            self._games.pop(game_id, None)

    async def clear(self) -> None:
        async with self._lock:
            self._games.clear()


point_state_cache = DerivedStateCache(ttl_seconds=300.0)
