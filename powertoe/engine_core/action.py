"""
Action Results - Outcome values returned by every engine operation.

Expected domain failures (wrong turn, occupied cell, missing power...)
are never raised. They come back as a failed result carrying an
ErrorCode and a human-readable message, and leave state untouched.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .match import Match


class ErrorCode(str, Enum):
    """Structured failure kinds."""
    NOT_FOUND = "NOT_FOUND"
    MATCH_FULL = "MATCH_FULL"
    MATCH_FINISHED = "MATCH_FINISHED"
    MATCH_NOT_ACTIVE = "MATCH_NOT_ACTIVE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    INVALID_POSITION = "INVALID_POSITION"
    CELL_UNAVAILABLE = "CELL_UNAVAILABLE"
    POWER_NOT_HELD = "POWER_NOT_HELD"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"


class CellEffect(Enum):
    """Tagged outcome of the cell a move landed on."""
    NONE = "none"
    SKIP_TURN = "skip_turn"
    POWER_GAINED = "power_gained"
    FAKE_CELL = "fake_cell"
    DOUBLE_POINTS = "double_points"
    REVERSE_ORDER = "reverse_order"


@dataclass
class ActionResult:
    """
    Result of a join, power use, leave or restart.

    `payload` carries operation-specific data (the joined Player, whether
    a leave dropped the match). `match` is a snapshot taken under the
    same lock as the change, set by the registry on success.
    """
    success: bool
    message: str = ""
    error_code: ErrorCode | None = None
    payload: Any | None = None
    match: Match | None = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def failure(cls, error_code: ErrorCode, message: str) -> ActionResult:
        return cls(success=False, message=message, error_code=error_code)

    @classmethod
    def ok(
        cls,
        message: str = "",
        payload: Any | None = None,
        match: Match | None = None,
    ) -> ActionResult:
        return cls(success=True, message=message, payload=payload, match=match)


@dataclass
class MoveResult:
    """Result of placing a mark. `effect` and `match` are set only on success."""
    success: bool
    message: str
    effect: CellEffect | None = None
    error_code: ErrorCode | None = None
    match: Match | None = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def failure(cls, error_code: ErrorCode, message: str) -> MoveResult:
        return cls(success=False, message=message, error_code=error_code)
