from fastapi import HTTPException
from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class TeamAlreadyExists(DomainException):
    def __init__(self, name: str) -> None:
        super().__init__(
            status_code=409,
            title="Team exists",
            detail=f"team name '{name}' already exists",
            code="team_exists",
        )


class TeamNotFound(DomainException):
    def __init__(self, team_id: int) -> None:
        super().__init__(
            status_code=404,
            title="Team not found",
            detail=f"team '{team_id}' not found",
            code="team_not_found",
        )


class PlayerNotFound(DomainException):
    def __init__(self, player_id: int) -> None:
        super().__init__(
            status_code=404,
            title="Player not found",
            detail=f"player '{player_id}' not found",
            code="player_not_found",
        )


class GameNotFound(DomainException):
    def __init__(self, game_id: int) -> None:
        super().__init__(
            status_code=404,
            title="Game not found",
            detail=f"game '{game_id}' not found",
            code="game_not_found",
        )


class NoActivePoint(DomainException):
    """Raised when an event is recorded before the point has a lineup."""

    def __init__(self, game_id: int, point_number: int) -> None:
        super().__init__(
            status_code=409,
            title="No active point",
            detail=(
                f"point {point_number} of game '{game_id}' has no lineup; "
                "select a line before recording events"
            ),
            code="no_active_point",
        )


class NotOnField(DomainException):
    def __init__(self, player_id: int) -> None:
        super().__init__(
            status_code=409,
            title="Player not on field",
            detail=f"player '{player_id}' is not in the current lineup",
            code="player_not_on_field",
        )


class IllegalEvent(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=409,
            title="Illegal event",
            detail=detail,
            code="illegal_event",
        )


class EmptyLog(DomainException):
    def __init__(self, point_id: int) -> None:
        super().__init__(
            status_code=409,
            title="Nothing to undo",
            detail=f"point '{point_id}' has no recorded events",
            code="empty_log",
        )


class InvalidLineup(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=400,
            title="Invalid lineup",
            detail=detail,
            code="invalid_lineup",
        )


class InvalidRatio(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=400,
            title="Invalid gender ratio",
            detail=detail,
            code="invalid_ratio",
        )


class StoreUnavailable(DomainException):
    def __init__(self, detail: str = "the score store could not save the change") -> None:
        super().__init__(
            status_code=503,
            title="Store unavailable",
            detail=detail,
            code="store_unavailable",
        )


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc
