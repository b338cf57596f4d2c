from typing import List, Literal, Optional
import datetime as dt
from pydantic import BaseModel, Field, field_validator, ConfigDict

GenderRule = Literal["none", "offense", "endzone", "abba"]
Gender = Literal["male", "female", "other"]
Role = Literal["male", "female"]
Side = Literal["our", "opponent"]
EventKindIn = Literal[
    "pull",
    "pull_ob",
    "pickup",
    "pass",
    "throwaway",
    "drop",
    "stall",
    "d",
    "interception",
    "goal",
    "callahan",
    "opponent_turnover",
    "opponent_goal",
]


def _trimmed_name(value: str, field: str = "name") -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{field} must not be empty")
    return trimmed


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _trimmed_name(value)


class PlayerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    number: Optional[int] = Field(default=None, ge=-9999, le=9999)
    gender: Gender = "other"
    teamId: Optional[int] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _trimmed_name(value)


class PlayerOut(BaseModel):
    id: int
    name: str
    number: Optional[int] = None
    gender: Gender
    teamIds: List[int] = Field(default_factory=list)


class TeamOut(BaseModel):
    id: int
    name: str
    players: List[PlayerOut] = Field(default_factory=list)


class GameCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    date: Optional[dt.date] = None
    teamId: Optional[int] = None
    teamName: str = Field(..., min_length=1, max_length=100)
    opponentName: str = Field(..., min_length=1, max_length=100)
    teamSize: int = Field(default=7, ge=4, le=7)
    genderRule: GenderRule = "none"
    startingPuller: Side = "our"

    model_config = ConfigDict(extra="forbid")

    @field_validator("teamName", "opponentName", mode="before")
    @classmethod
    def _validate_side_names(cls, value: str, info) -> str:
        return _trimmed_name(value, info.field_name)


class ScoreOut(BaseModel):
    our: int
    opponent: int


class PointSummaryOut(BaseModel):
    pointNumber: int
    startingOLine: bool
    genderRatio: Optional[str] = None
    ourScoreAfter: Optional[int] = None
    opponentScoreAfter: Optional[int] = None
    scoredBy: Optional[Side] = None


class GameOut(BaseModel):
    id: int
    name: Optional[str] = None
    date: dt.date
    teamId: Optional[int] = None
    teamName: str
    opponentName: str
    teamSize: int
    genderRule: GenderRule
    startingPuller: Side
    score: ScoreOut
    nextPointNumber: int
    points: List[PointSummaryOut] = Field(default_factory=list)


class LineupEntry(BaseModel):
    playerId: int
    role: Optional[Role] = None


class LineupIn(BaseModel):
    """A line for one point.

    ``override`` saves the line even when it breaks the size or ratio
    requirement. ``targetRatio`` is the split the coach is aiming for when
    the ratio is not locked. ``startingOLine`` may only be set before the
    point has events.
    """

    players: List[LineupEntry]
    override: bool = False
    targetRatio: Optional[str] = None
    startingOLine: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class EventIn(BaseModel):
    """A user action on the point screen.

    ``playerId`` is the player tapped on screen; it fills the thrower,
    receiver or defender slot depending on ``kind``. Explicit slots win.
    """

    kind: EventKindIn
    playerId: Optional[int] = None
    throwerId: Optional[int] = None
    receiverId: Optional[int] = None
    defenderId: Optional[int] = None

    model_config = ConfigDict(extra="forbid")


class EventOut(BaseModel):
    id: int
    kind: str
    throwerId: Optional[int] = None
    receiverId: Optional[int] = None
    defenderId: Optional[int] = None
    convertedFrom: Optional[str] = None


class ViolationOut(BaseModel):
    code: Literal["wrong_size", "ratio_mismatch"]
    detail: str
    actual: str
    expected: str


class PointStateOut(BaseModel):
    """Everything the point screen renders, derived from the event log."""

    gameId: int
    pointNumber: int
    pointId: Optional[int] = None
    phase: str
    possessionSide: Optional[Side] = None
    holderId: Optional[int] = None
    startingOLine: bool
    startingScore: ScoreOut
    endingScore: Optional[ScoreOut] = None
    currentScore: ScoreOut
    lineup: List[LineupEntry] = Field(default_factory=list)
    genderRatio: Optional[str] = None
    requiredRatio: Optional[str] = None
    ratioLocked: bool = False
    validRatios: List[str] = Field(default_factory=list)
    lineValidation: List[ViolationOut] = Field(default_factory=list)
    events: List[EventOut] = Field(default_factory=list)


class LineupResultOut(BaseModel):
    saved: bool
    violations: List[ViolationOut] = Field(default_factory=list)
    state: PointStateOut


class UndoOut(BaseModel):
    undone: bool
    notice: Optional[str] = None
    retracted: Optional[EventOut] = None
    state: PointStateOut


class RatioCycleOut(BaseModel):
    current: str
    next: str
    locked: bool
