"""Pure engines behind point tracking: state machine, ratio policy, scores."""

from . import point_state, ratio, score

__all__ = [
    "point_state",
    "ratio",
    "score",
]
