from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..scoring.ratio import format_ratio

ROLES = ("male", "female")
GENDERS = ("male", "female", "other")


class ValidationError(Exception):
    """Raised when a submitted lineup breaks a hard rule."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


@dataclass(frozen=True)
class WrongSize:
    actual: int
    expected: int
    code = "wrong_size"

    def describe(self) -> str:
        return f"Line has {self.actual} player(s); {self.expected} required."


@dataclass(frozen=True)
class RatioMismatch:
    actual: str
    expected: str
    code = "ratio_mismatch"

    def describe(self) -> str:
        return f"Line is {self.actual}; this point requires {self.expected}."


Violation = Union[WrongSize, RatioMismatch]


def resolve_lineup(
    entries: Sequence[Mapping[str, Any]],
    genders: Mapping[int, str],
    *,
    team_size: int,
    require_roles: bool = True,
) -> List[Dict[str, Any]]:
    """Check hard lineup rules and return ``[{playerId, role}]``.

    Rules:
    - At least one and no more than ``team_size`` players
    - Each player at most once
    - Every player must be known (``genders`` maps player id -> gender)
    - ``male``/``female`` players always take their own role
    - ``other`` players must state the role they take this point, unless
      ``require_roles`` is off (games without a gender rule)
    """

    if not entries:
        raise ValidationError("Line must include at least one player.")
    if len(entries) > team_size:
        raise ValidationError(
            f"Line has {len(entries)} players; at most {team_size} may play."
        )

    seen: set[int] = set()
    resolved: List[Dict[str, Any]] = []
    for i, entry in enumerate(entries, start=1):
        player_id = entry.get("playerId")
        if isinstance(player_id, bool) or not isinstance(player_id, int):
            raise ValidationError(f"Line entry #{i} must reference a player id.")
        if player_id in seen:
            raise ValidationError(f"Player {player_id} appears more than once.")
        seen.add(player_id)

        gender = genders.get(player_id)
        if gender is None:
            raise ValidationError(f"Player {player_id} is not on this roster.")

        role = entry.get("role")
        if role is not None and role not in ROLES:
            raise ValidationError(f"Line entry #{i} role must be male or female.")
        if gender in ROLES:
            if role is not None and role != gender:
                raise ValidationError(
                    f"Player {player_id} is {gender} and cannot play the {role} role."
                )
            role = gender
        elif role is None and require_roles:
            raise ValidationError(
                f"Player {player_id} must be assigned a male or female role."
            )
        resolved.append({"playerId": player_id, "role": role})

    return resolved


def lineup_ratio(lineup: Sequence[Mapping[str, Any]]) -> Dict[str, int]:
    male = sum(1 for entry in lineup if entry.get("role") == "male")
    female = sum(1 for entry in lineup if entry.get("role") == "female")
    return {"male": male, "female": female}


def validate_lineup(
    lineup: Sequence[Mapping[str, Any]],
    required_size: int,
    required_ratio: Optional[Dict[str, int]],
) -> List[Violation]:
    """Return advisory violations; an empty list means the line is legal."""

    violations: List[Violation] = []
    if len(lineup) != required_size:
        violations.append(WrongSize(actual=len(lineup), expected=required_size))
    if required_ratio is not None:
        actual = lineup_ratio(lineup)
        if actual != required_ratio:
            violations.append(
                RatioMismatch(
                    actual=format_ratio(actual),
                    expected=format_ratio(required_ratio),
                )
            )
    return violations
