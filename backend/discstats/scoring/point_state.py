"""Point state machine.

Derives the live phase, possession and disc holder of a single point by
replaying its ordered event log. ``init_state``/``apply``/``summary`` follow
the same shape as the other scoring engines: the state is a plain dict that
``apply`` advances one event at a time, and ``replay`` folds a whole log.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class Phase(str, Enum):
    AWAITING_LINE = "awaiting_line"
    AWAITING_PULL = "awaiting_pull"
    AWAITING_PICKUP = "awaiting_pickup"
    OFFENSE = "offense"
    DEFENSE = "defense"
    POINT_COMPLETE = "point_complete"


class EventKind(str, Enum):
    PULL = "pull"
    PULL_OB = "pull_ob"
    PICKUP = "pickup"
    PASS = "pass"
    THROWAWAY = "throwaway"
    DROP = "drop"
    STALL = "stall"
    D = "d"
    INTERCEPTION = "interception"
    GOAL = "goal"
    CALLAHAN = "callahan"
    OPPONENT_TURNOVER = "opponent_turnover"
    OPPONENT_GOAL = "opponent_goal"


class IllegalTransition(ValueError):
    """Raised when an event cannot be applied in the current phase."""


PLAYER_FIELDS = ("throwerId", "receiverId", "defenderId")

# (phase, kind) -> (next phase, event field that becomes the holder)
TRANSITIONS: Dict[Tuple[Phase, EventKind], Tuple[Phase, Optional[str]]] = {
    (Phase.AWAITING_PULL, EventKind.PULL): (Phase.DEFENSE, None),
    (Phase.AWAITING_PULL, EventKind.PULL_OB): (Phase.AWAITING_PICKUP, None),
    (Phase.AWAITING_PICKUP, EventKind.PICKUP): (Phase.OFFENSE, "throwerId"),
    (Phase.OFFENSE, EventKind.PASS): (Phase.OFFENSE, "receiverId"),
    (Phase.OFFENSE, EventKind.THROWAWAY): (Phase.DEFENSE, None),
    (Phase.OFFENSE, EventKind.STALL): (Phase.DEFENSE, None),
    (Phase.OFFENSE, EventKind.DROP): (Phase.DEFENSE, None),
    (Phase.OFFENSE, EventKind.GOAL): (Phase.POINT_COMPLETE, None),
    (Phase.DEFENSE, EventKind.D): (Phase.AWAITING_PICKUP, None),
    (Phase.DEFENSE, EventKind.INTERCEPTION): (Phase.OFFENSE, "defenderId"),
    (Phase.DEFENSE, EventKind.CALLAHAN): (Phase.POINT_COMPLETE, None),
    (Phase.DEFENSE, EventKind.OPPONENT_TURNOVER): (Phase.AWAITING_PICKUP, None),
    (Phase.DEFENSE, EventKind.OPPONENT_GOAL): (Phase.POINT_COMPLETE, None),
}

REQUIRED_PLAYERS: Dict[EventKind, Tuple[str, ...]] = {
    EventKind.PICKUP: ("throwerId",),
    EventKind.PASS: ("receiverId",),
    EventKind.INTERCEPTION: ("defenderId",),
    EventKind.CALLAHAN: ("defenderId",),
}

SCORING_SIDES: Dict[EventKind, str] = {
    EventKind.GOAL: "our",
    EventKind.CALLAHAN: "our",
    EventKind.OPPONENT_GOAL: "opponent",
}

# Kinds recorded by converting the trailing pass instead of appending.
CONVERTIBLE_KINDS = frozenset({EventKind.DROP, EventKind.GOAL})

# Kinds whose thrower is the player holding the disc.
HOLDER_THROWS = frozenset({EventKind.PASS, EventKind.THROWAWAY, EventKind.STALL})


def initial_phase(has_lineup: bool, starting_o_line: bool) -> Phase:
    if not has_lineup:
        return Phase.AWAITING_LINE
    return Phase.AWAITING_PICKUP if starting_o_line else Phase.AWAITING_PULL


def possession_side(phase: Phase) -> Optional[str]:
    if phase in (Phase.OFFENSE, Phase.AWAITING_PICKUP):
        return "our"
    if phase in (Phase.DEFENSE, Phase.AWAITING_PULL):
        return "opponent"
    return None


def init_state(config: Dict) -> Dict:
    """Initialise the point state.

    ``config`` carries ``hasLineup`` and ``startingOLine``; together they pick
    the phase the point opens in.
    """

    cfg = {
        "hasLineup": bool(config.get("hasLineup", True)),
        "startingOLine": bool(config.get("startingOLine", False)),
    }
    return {
        "config": cfg,
        "phase": initial_phase(cfg["hasLineup"], cfg["startingOLine"]),
        "holder": None,
        "scoredBy": None,
        "events": [],
    }


def _normalize(event: Dict[str, Any]) -> Dict[str, Any]:
    try:
        kind = EventKind(event.get("kind"))
    except ValueError:
        raise IllegalTransition(f"unknown event kind {event.get('kind')!r}")
    normalized = {"kind": kind}
    for field in PLAYER_FIELDS:
        normalized[field] = event.get(field)
    for field in ("id", "convertedFrom"):
        if event.get(field) is not None:
            normalized[field] = event[field]
    return normalized


def apply(event: Dict[str, Any], state: Dict) -> Dict:
    ev = _normalize(event)
    kind = ev["kind"]
    phase = state["phase"]

    # A finished point keeps later events in its history but never reopens.
    if phase == Phase.POINT_COMPLETE:
        state["events"].append(ev)
        return state
    if phase == Phase.AWAITING_LINE:
        raise IllegalTransition("a line must be selected before recording events")

    target = TRANSITIONS.get((phase, kind))
    if target is None:
        raise IllegalTransition(
            f"'{kind.value}' is not allowed during {phase.value}"
        )
    for field in REQUIRED_PLAYERS.get(kind, ()):
        if ev[field] is None:
            raise IllegalTransition(f"'{kind.value}' requires {field}")
    if kind == EventKind.PASS and ev["throwerId"] == ev["receiverId"]:
        raise IllegalTransition("a player cannot pass to themselves")

    next_phase, holder_field = target
    state["phase"] = next_phase
    state["holder"] = ev[holder_field] if holder_field else None
    if next_phase == Phase.POINT_COMPLETE:
        state["scoredBy"] = SCORING_SIDES[kind]
    state["events"].append(ev)
    return state


def replay(events: Iterable[Dict[str, Any]], config: Dict) -> Dict:
    state = init_state(config)
    for ev in events:
        state = apply(ev, state)
    return state


def convert_trailing_pass(
    state: Dict, kind: str, player_id: Optional[int] = None
) -> Dict:
    """Turn the trailing ``pass`` into a ``drop`` or ``goal``.

    A catch is only confirmed by the next action, so the pass already in the
    log changes kind rather than gaining a follow-up event. The state is
    rebuilt from the log without the pass and the converted event applied.
    """

    try:
        target = EventKind(kind)
    except ValueError:
        raise IllegalTransition(f"unknown event kind {kind!r}")
    if target not in CONVERTIBLE_KINDS:
        raise IllegalTransition(f"'{target.value}' does not replace a pass")

    events = state["events"]
    if state["phase"] != Phase.OFFENSE or not events or events[-1]["kind"] != EventKind.PASS:
        raise IllegalTransition(f"'{target.value}' must follow a pass")

    trailing = events[-1]
    if player_id is not None and player_id != trailing["receiverId"]:
        raise IllegalTransition(
            f"'{target.value}' must be credited to the pass receiver"
        )

    converted = {**trailing, "kind": target, "convertedFrom": EventKind.PASS.value}
    rebuilt = replay(events[:-1], state["config"])
    return apply(converted, rebuilt)


def summary(state: Dict) -> Dict:
    phase = state["phase"]
    return {
        "phase": phase.value,
        "possessionSide": possession_side(phase),
        "holderId": state["holder"],
        "scoredBy": state["scoredBy"],
        "events": [
            {**ev, "kind": ev["kind"].value} for ev in state["events"]
        ],
    }
