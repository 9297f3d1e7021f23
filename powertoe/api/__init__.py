"""
API Module - Transport front for the engine.

Exposes the match registry via REST and WebSocket:
1. Create and list matches
2. Join a match by id
3. Submit moves and power uses
4. Receive every state change over a WebSocket

All state is in-memory. No user accounts.
"""

from .schemas import (
    # Requests
    JoinRequest,
    MoveRequest,
    PowerRequest,
    # Responses
    MatchResponse,
    MatchListResponse,
    JoinResponse,
    MoveResponse,
    PowerResponse,
    LeaveResponse,
    ErrorResponse,
    HealthResponse,
    MatchEvent,
    # Shared
    CellInfo,
    PlayerInfo,
    PowerInfo,
    MessageType,
)
from .service import APIService

__all__ = [
    # Requests
    "JoinRequest",
    "MoveRequest",
    "PowerRequest",
    # Responses
    "MatchResponse",
    "MatchListResponse",
    "JoinResponse",
    "MoveResponse",
    "PowerResponse",
    "LeaveResponse",
    "ErrorResponse",
    "HealthResponse",
    "MatchEvent",
    # Shared
    "CellInfo",
    "PlayerInfo",
    "PowerInfo",
    "MessageType",
    # Service
    "APIService",
]
