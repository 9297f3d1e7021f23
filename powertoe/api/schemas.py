"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between clients and the engine.
Special cell types are hidden until the cell is revealed.

Error Codes:
- NOT_FOUND: Match does not exist
- MATCH_FULL: Four players already seated
- MATCH_FINISHED: Join or move after the match ended
- MATCH_NOT_ACTIVE: Move before a second player joined
- NOT_YOUR_TURN: Move by a player who is not on turn
- INVALID_POSITION: Position outside 0-8
- CELL_UNAVAILABLE: Cell occupied or blocked
- POWER_NOT_HELD: Player does not hold the requested power
- PLAYER_NOT_FOUND: Player is not seated in the match
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from ..engine_core.action import ErrorCode


# =============================================================================
# Enums
# =============================================================================

class MatchStatusValue(str, Enum):
    """Match status values."""
    WAITING = "waiting"
    ACTIVE = "active"
    PAUSED = "paused"
    FINISHED = "finished"


class PowerName(str, Enum):
    """Power keys accepted by the power endpoint."""
    EXTRA_TURN = "extra_turn"
    REMOVE_OPPONENT_PIECE = "remove_opponent_piece"
    SWAP_PIECES = "swap_pieces"
    REVEAL_TRAPS = "reveal_traps"
    BLOCK_CELL = "block_cell"
    TRIPLE_PLAY = "triple_play"


class MessageType(str, Enum):
    """Kinds of messages pushed to match subscribers."""
    GAME_UPDATE = "GAME_UPDATE"
    PLAYER_JOINED = "PLAYER_JOINED"
    PLAYER_LEFT = "PLAYER_LEFT"
    MOVE_MADE = "MOVE_MADE"
    GAME_OVER = "GAME_OVER"
    ERROR = "ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CellInfo(BaseModel):
    """One board cell as players see it."""
    position: int = Field(ge=0, le=8)
    mark: Optional[str] = None
    cell_type: Optional[str] = Field(None, description="Null until the cell is revealed")
    revealed: bool = False
    blocked: bool = False
    blocked_turns: int = 0


class PowerInfo(BaseModel):
    """A held power."""
    power: PowerName
    display_name: str
    description: str


class PlayerInfo(BaseModel):
    """Player information for display."""
    player_id: str
    display_name: str
    symbol: str
    score: int = 0
    is_active: bool = False
    powers: list[PowerInfo] = Field(default_factory=list)


class MatchResponse(BaseModel):
    """Full snapshot of a match."""
    match_id: str
    status: MatchStatusValue
    players: list[PlayerInfo] = Field(default_factory=list)
    board: list[CellInfo] = Field(default_factory=list)
    current_player_id: Optional[str] = None
    winner_symbol: Optional[str] = None
    turn_count: int = 0
    created_at: float
    updated_at: float
    event_log: list[str] = Field(default_factory=list)


class MatchListResponse(BaseModel):
    """All live matches."""
    matches: list[MatchResponse] = Field(default_factory=list)
    count: int = 0


# =============================================================================
# Request Models
# =============================================================================

class JoinRequest(BaseModel):
    """Join a match by id."""
    display_name: str = Field(min_length=1, max_length=40)


class MoveRequest(BaseModel):
    """Place a mark."""
    player_id: str
    position: int = Field(description="Cell index 0-8")


class PowerRequest(BaseModel):
    """Spend a held power."""
    player_id: str
    power: PowerName
    target_position: Optional[int] = Field(
        None, description="Target cell for remove_opponent_piece and block_cell"
    )


# =============================================================================
# Response Models
# =============================================================================

class JoinResponse(BaseModel):
    """Seat assigned to a joining player."""
    player: PlayerInfo
    match: MatchResponse


class MoveResponse(BaseModel):
    """Outcome of a move."""
    success: bool
    message: str
    effect: Optional[str] = Field(None, description="Cell effect triggered by the move")
    match: MatchResponse


class PowerResponse(BaseModel):
    """Outcome of a power use."""
    success: bool
    message: str
    match: MatchResponse


class LeaveResponse(BaseModel):
    """Outcome of a player leaving."""
    success: bool
    match_id: str
    match_removed: bool = False
    match: Optional[MatchResponse] = Field(None, description="Null when the match was removed")


class MatchEvent(BaseModel):
    """Message broadcast to WebSocket subscribers of a match."""
    type: MessageType
    message: str = ""
    player_id: Optional[str] = None
    match: Optional[MatchResponse] = None


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: ErrorCode


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "powertoe"
    version: str
