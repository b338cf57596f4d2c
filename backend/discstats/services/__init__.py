"""Internal application services (lineup rules, event log, point orchestration)."""

from .validation import (
    RatioMismatch,
    ValidationError,
    Violation,
    WrongSize,
    lineup_ratio,
    resolve_lineup,
    validate_lineup,
)
from .event_log import EventLog, event_to_dict
from .points import PointOrchestrator, game_lock

__all__ = [
    "ValidationError",
    "WrongSize",
    "RatioMismatch",
    "Violation",
    "resolve_lineup",
    "lineup_ratio",
    "validate_lineup",
    "EventLog",
    "event_to_dict",
    "PointOrchestrator",
    "game_lock",
]
