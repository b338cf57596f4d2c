"""Gender-ratio policy for mixed-division lines.

Ratios are plain ``{"male": int, "female": int}`` dictionaries and travel
over the wire as ``"<m>m<f>f"`` strings (``"4m3f"``).
"""

from __future__ import annotations

import math
import re
from typing import Dict, List, Optional

GENDER_RULES = ("none", "offense", "endzone", "abba")
MIN_TEAM_SIZE = 4
MAX_TEAM_SIZE = 7

_RATIO_RE = re.compile(r"^\s*(\d+)\s*m\s*(\d+)\s*f\s*$", re.IGNORECASE)


def _check_team_size(team_size: int) -> None:
    if not MIN_TEAM_SIZE <= team_size <= MAX_TEAM_SIZE:
        raise ValueError(
            f"team size must be between {MIN_TEAM_SIZE} and {MAX_TEAM_SIZE}"
        )


def parse_ratio(value: str) -> Dict[str, int]:
    match = _RATIO_RE.match(value or "") if isinstance(value, str) else None
    if not match:
        raise ValueError(f"invalid gender ratio {value!r}; expected e.g. '4m3f'")
    return {"male": int(match.group(1)), "female": int(match.group(2))}


def format_ratio(ratio: Dict[str, int]) -> str:
    return f"{ratio['male']}m{ratio['female']}f"


def default_ratio(team_size: int) -> Dict[str, int]:
    _check_team_size(team_size)
    male = math.ceil(team_size / 2)
    return {"male": male, "female": team_size - male}


def mirror(ratio: Dict[str, int]) -> Dict[str, int]:
    return {"male": ratio["female"], "female": ratio["male"]}


def valid_splits(team_size: int) -> List[Dict[str, int]]:
    """Return the splits a coach may target for ``team_size``.

    Odd sizes allow one extra player of either gender (7 -> 4m3f, 3m4f).
    Even sizes allow the even split plus one extra either way
    (4 -> 3m1f, 2m2f, 1m3f).
    """

    _check_team_size(team_size)
    half = team_size // 2
    if team_size % 2:
        males = [half + 1, half]
    else:
        males = [half + 1, half, half - 1]
    return [{"male": m, "female": team_size - m} for m in males]


def ratio_locked(rule: str, point_number: int) -> bool:
    return point_number > 1 and rule == "abba"


def _base_ratio(team_size: int, point1_ratio: Optional[Dict[str, int]]) -> Dict[str, int]:
    if not point1_ratio:
        return default_ratio(team_size)
    if point1_ratio in valid_splits(team_size):
        return dict(point1_ratio)
    # Point 1 was saved short-handed; keep its majority.
    base = default_ratio(team_size)
    if point1_ratio["female"] > point1_ratio["male"]:
        return mirror(base)
    return base


def required_ratio(
    rule: str,
    team_size: int,
    point_number: int,
    point1_ratio: Optional[Dict[str, int]] = None,
) -> Optional[Dict[str, int]]:
    """Return the ratio point ``point_number`` must field, or ``None``.

    ``abba`` repeats point 1's ratio (A) for point 2 and then alternates in
    pairs: A, A, B, B, A, A, B, B, ... where B mirrors A. ``offense`` and
    ``endzone`` keep point 1's ratio (or the default split) for every point.
    """

    if rule not in GENDER_RULES:
        raise ValueError(f"unknown gender rule {rule!r}")
    if point_number < 1:
        raise ValueError("point number must be >= 1")
    _check_team_size(team_size)
    if rule == "none":
        return None

    base = _base_ratio(team_size, point1_ratio)
    if rule in ("offense", "endzone") or point_number == 1:
        return base

    pair = (point_number - 1) // 2
    return mirror(base) if pair % 2 else base


def cycle_target_ratio(
    current: Dict[str, int], team_size: int, locked: bool
) -> Dict[str, int]:
    """Step to the next valid split for ``team_size``; a no-op when locked."""

    if locked:
        return dict(current)
    splits = valid_splits(team_size)
    try:
        index = splits.index(current)
    except ValueError:
        return splits[0]
    return splits[(index + 1) % len(splits)]
