"""Score sequencing across the points of a game.

``points`` arguments map a point number to a mapping with the stored
``ourScoreAfter``/``opponentScoreAfter`` values (``None`` while open) and
the ``scoredBy`` side taken from the point's scoring event.
"""

from typing import Dict, Mapping, Optional, Tuple

Score = Tuple[int, int]


def ending_score(point: Optional[Mapping]) -> Optional[Score]:
    if not point:
        return None
    ours = point.get("ourScoreAfter")
    theirs = point.get("opponentScoreAfter")
    if ours is None or theirs is None:
        return None
    return (int(ours), int(theirs))


def starting_score(points: Mapping[int, Mapping], point_number: int) -> Score:
    """Score at the start of ``point_number``.

    The nearest earlier finalized point supplies it, so an open previous
    point carries its own starting score forward.
    """

    for number in range(point_number - 1, 0, -1):
        ending = ending_score(points.get(number))
        if ending is not None:
            return ending
    return (0, 0)


def finalize(start: Score, scored_by: str) -> Score:
    if scored_by == "our":
        return (start[0] + 1, start[1])
    if scored_by == "opponent":
        return (start[0], start[1] + 1)
    raise ValueError(f"invalid scoring side {scored_by!r}")


def scored_by(points: Mapping[int, Mapping], point_number: int) -> Optional[str]:
    """Side credited by the scoring event of ``point_number``, if finalized."""

    point = points.get(point_number)
    if not point:
        return None
    return point.get("scoredBy")


def sequence_endings(points: Mapping[int, Mapping]) -> Dict[int, Optional[Score]]:
    """Recompute every point's ending score from the sides that scored.

    Points are walked in order; each finalized point ends one goal above
    the nearest earlier finalized point, open points end with ``None``.
    """

    endings: Dict[int, Optional[Score]] = {}
    current: Score = (0, 0)
    for number in sorted(points):
        side = scored_by(points, number)
        if side is None:
            endings[number] = None
            continue
        current = finalize(current, side)
        endings[number] = current
    return endings


def starting_o_line(
    points: Mapping[int, Mapping], point_number: int, starting_puller: str
) -> bool:
    """Whether our side receives the pull of ``point_number``.

    The side that scored the previous point pulls. Point 1, or a point whose
    predecessor is not finalized, follows the game's starting puller.
    """

    if point_number > 1:
        scorer = scored_by(points, point_number - 1)
        if scorer is not None:
            return scorer == "opponent"
    return starting_puller == "opponent"


def current_score(start: Score, ending: Optional[Score]) -> Score:
    return ending if ending is not None else start


def game_score(points: Mapping[int, Mapping]) -> Dict[str, int]:
    """Running score after the latest finalized point."""

    if not points:
        return {"our": 0, "opponent": 0}
    ours, theirs = starting_score(points, max(points) + 1)
    return {"our": ours, "opponent": theirs}
