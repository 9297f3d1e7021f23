"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to registry calls
2. Converts Match snapshots into response schemas (always the snapshot
   the registry took with the change, never a second lookup)
3. Turns failed results into ErrorResponse

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .schemas import (
    CellInfo,
    ErrorResponse,
    JoinRequest,
    JoinResponse,
    LeaveResponse,
    MatchResponse,
    MoveRequest,
    MoveResponse,
    PlayerInfo,
    PowerInfo,
    PowerName,
    PowerRequest,
    PowerResponse,
)
from ..engine_core.action import ErrorCode
from ..engine_core.match import Match
from ..engine_core.state import Cell, Player, PowerType
from ..session import MatchRegistry


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        match = service.create_match()
        joined = service.join_match(match.match_id, JoinRequest(display_name="Alice"))
        moved = service.make_move(match.match_id, MoveRequest(player_id=..., position=4))
    """
    registry: MatchRegistry = field(default_factory=MatchRegistry)

    def create_match(self) -> MatchResponse:
        return match_to_response(self.registry.create_match())

    def get_match(self, match_id: str) -> MatchResponse | ErrorResponse:
        match = self.registry.get_match(match_id)
        if match is None:
            return _not_found(match_id)
        return match_to_response(match)

    def list_matches(self) -> list[MatchResponse]:
        return [match_to_response(m) for m in self.registry.list_matches()]

    def join_match(self, match_id: str, request: JoinRequest) -> JoinResponse | ErrorResponse:
        result = self.registry.join_match(match_id, request.display_name)
        if not result.success:
            return ErrorResponse(error=result.message, error_code=result.error_code)
        return JoinResponse(
            player=player_to_info(result.payload),
            match=match_to_response(result.match),
        )

    def make_move(self, match_id: str, request: MoveRequest) -> MoveResponse | ErrorResponse:
        result = self.registry.make_move(match_id, request.player_id, request.position)
        if not result.success:
            return ErrorResponse(error=result.message, error_code=result.error_code)
        return MoveResponse(
            success=True,
            message=result.message,
            effect=result.effect.value if result.effect else None,
            match=match_to_response(result.match),
        )

    def use_power(self, match_id: str, request: PowerRequest) -> PowerResponse | ErrorResponse:
        power = PowerType.from_key(request.power.value)
        result = self.registry.use_power(match_id, request.player_id, power, request.target_position)
        if not result.success:
            return ErrorResponse(error=result.message, error_code=result.error_code)
        return PowerResponse(
            success=True,
            message=result.message,
            match=match_to_response(result.match),
        )

    def restart_match(self, match_id: str) -> MatchResponse | ErrorResponse:
        match = self.registry.restart_match(match_id)
        if match is None:
            return _not_found(match_id)
        return match_to_response(match)

    def leave_match(self, match_id: str, player_id: str) -> LeaveResponse | ErrorResponse:
        result = self.registry.remove_player(match_id, player_id)
        if not result.success:
            return ErrorResponse(error=result.message, error_code=result.error_code)
        return LeaveResponse(
            success=True,
            match_id=match_id,
            match_removed=result.payload,
            match=None if result.payload else match_to_response(result.match),
        )


# =============================================================================
# Conversion Helpers
# =============================================================================

def match_to_response(match: Match) -> MatchResponse:
    current = match.current_player
    return MatchResponse(
        match_id=match.match_id,
        status=match.status.value,
        players=[player_to_info(p) for p in match.players],
        board=[cell_to_info(c) for c in match.board],
        current_player_id=current.player_id if current else None,
        winner_symbol=match.winner_symbol,
        turn_count=match.turn_count,
        created_at=match.created_at,
        updated_at=match.updated_at,
        event_log=list(match.event_log),
    )


def player_to_info(player: Player) -> PlayerInfo:
    return PlayerInfo(
        player_id=player.player_id,
        display_name=player.display_name,
        symbol=player.symbol,
        score=player.score,
        is_active=player.is_active,
        powers=[
            PowerInfo(
                power=PowerName(power.key),
                display_name=power.display_name,
                description=power.description,
            )
            for power in player.powers
        ],
    )


def cell_to_info(cell: Cell) -> CellInfo:
    public_type = cell.public_type
    return CellInfo(
        position=cell.position,
        mark=cell.mark,
        cell_type=public_type.value if public_type else None,
        revealed=cell.revealed,
        blocked=cell.blocked,
        blocked_turns=cell.blocked_turns,
    )


def _not_found(match_id: str) -> ErrorResponse:
    return ErrorResponse(error=f"Match {match_id} not found", error_code=ErrorCode.NOT_FOUND)
