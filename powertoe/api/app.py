"""
FastAPI Application - REST and WebSocket front for the match registry.

Endpoints:
    POST   /api/v1/matches                         Create a match
    GET    /api/v1/matches                         List matches
    GET    /api/v1/matches/{id}                    Get a match
    POST   /api/v1/matches/{id}/join               Join a match
    POST   /api/v1/matches/{id}/move               Place a mark
    POST   /api/v1/matches/{id}/power              Use a power
    POST   /api/v1/matches/{id}/restart            Restart a match
    DELETE /api/v1/matches/{id}/players/{pid}      Leave a match
    WS     /api/v1/matches/{id}/ws                 Real-time updates

Every state-changing call is followed by a MatchEvent broadcast to the
match's WebSocket subscribers. The engine itself never does I/O.
"""

from typing import Union
import json
import logging
import os
import random

# Environment configuration
POWERTOE_ENV = os.getenv("POWERTOE_ENV", "development")
POWERTOE_SEED = os.getenv("POWERTOE_SEED")
POWERTOE_LOG_LEVEL = os.getenv("POWERTOE_LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

API_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def create_app(service=None, seed: int | None = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        seed: Optional seed for board randomization (falls back to POWERTOE_SEED)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, WebSocket, WebSocketDisconnect
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        ErrorResponse,
        HealthResponse,
        JoinRequest,
        JoinResponse,
        LeaveResponse,
        MatchEvent,
        MatchListResponse,
        MatchResponse,
        MatchStatusValue,
        MessageType,
        MoveRequest,
        MoveResponse,
        PowerRequest,
        PowerResponse,
    )
    from ..engine_core.action import ErrorCode
    from ..session import MatchRegistry

    logging.getLogger("powertoe").setLevel(POWERTOE_LOG_LEVEL.upper())

    if seed is None and POWERTOE_SEED:
        seed = int(POWERTOE_SEED)

    app = FastAPI(
        title="PowerToe API",
        description="""
Multiplayer tic-tac-toe with hidden special cells and collectible powers.

## Flow

1. `POST /matches` creates a match, `POST /matches/{id}/join` seats players
2. The second player to join starts the match
3. Players alternate `POST /move`; special cells fire when first played
4. Powers gained from power-up cells are spent with `POST /power`
5. Subscribe to `WS /matches/{id}/ws` for every update
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService(
        registry=MatchRegistry(rng=random.Random(seed) if seed is not None else None)
    )
    app.state.service = api_service

    # WebSocket connections per match id
    ws_connections: dict[str, list[WebSocket]] = {}

    # =========================================================================
    # Helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Map an ErrorResponse to its HTTP status."""
        status_code = 404 if error.error_code == ErrorCode.NOT_FOUND else 400
        return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))

    async def broadcast_to_match(match_id: str, event: MatchEvent):
        """Send an event to every WebSocket subscribed to a match."""
        connections = ws_connections.get(match_id)
        if not connections:
            return
        message = event.model_dump(mode="json")
        dead_connections = []
        # The list can change while a send is awaited
        for ws in list(connections):
            try:
                await ws.send_json(message)
            except Exception:
                dead_connections.append(ws)
        for ws in dead_connections:
            if ws in connections:
                connections.remove(ws)
        if dead_connections:
            logger.debug("Dropped %d dead connections for %s", len(dead_connections), match_id)

    app.state.ws_connections = ws_connections
    app.state.broadcast = broadcast_to_match

    async def broadcast_error(match_id: str, error: ErrorResponse, player_id: str | None = None):
        await broadcast_to_match(match_id, MatchEvent(
            type=MessageType.ERROR,
            message=error.error,
            player_id=player_id,
        ))

    # =========================================================================
    # Match Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/matches",
        response_model=MatchResponse,
        tags=["Matches"],
        summary="Create a match",
    )
    async def create_match() -> MatchResponse:
        """Create an empty match with a freshly randomized board."""
        return api_service.create_match()

    @app.get(
        "/api/v1/matches",
        response_model=MatchListResponse,
        tags=["Matches"],
        summary="List matches",
    )
    async def list_matches() -> MatchListResponse:
        matches = api_service.list_matches()
        return MatchListResponse(matches=matches, count=len(matches))

    @app.get(
        "/api/v1/matches/{match_id}",
        response_model=MatchResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Get a match",
    )
    async def get_match(match_id: str) -> Union[MatchResponse, JSONResponse]:
        response = api_service.get_match(match_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.post(
        "/api/v1/matches/{match_id}/join",
        response_model=JoinResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Join a match",
    )
    async def join_match(match_id: str, request: JoinRequest) -> Union[JoinResponse, JSONResponse]:
        """Seat a new player. The second player to join starts the match."""
        response = api_service.join_match(match_id, request)
        if isinstance(response, ErrorResponse):
            await broadcast_error(match_id, response)
            return make_error_response(response)

        await broadcast_to_match(match_id, MatchEvent(
            type=MessageType.PLAYER_JOINED,
            message=f"{response.player.display_name} joined the match",
            player_id=response.player.player_id,
            match=response.match,
        ))
        return response

    @app.post(
        "/api/v1/matches/{match_id}/restart",
        response_model=MatchResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Restart a match",
    )
    async def restart_match(match_id: str) -> Union[MatchResponse, JSONResponse]:
        """New board under the same id. Players and scores carry over."""
        response = api_service.restart_match(match_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)

        await broadcast_to_match(match_id, MatchEvent(
            type=MessageType.GAME_UPDATE,
            message="The match has been restarted",
            match=response,
        ))
        return response

    @app.delete(
        "/api/v1/matches/{match_id}/players/{player_id}",
        response_model=LeaveResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Leave a match",
    )
    async def leave_match(match_id: str, player_id: str) -> Union[LeaveResponse, JSONResponse]:
        response = api_service.leave_match(match_id, player_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)

        await broadcast_to_match(match_id, MatchEvent(
            type=MessageType.PLAYER_LEFT,
            message="A player left the match",
            player_id=player_id,
            match=response.match,
        ))
        return response

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/matches/{match_id}/move",
        response_model=MoveResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Place a mark",
    )
    async def make_move(match_id: str, request: MoveRequest) -> Union[MoveResponse, JSONResponse]:
        """
        Place the caller's mark.

        The response carries the effect of the cell played on.
        """
        response = api_service.make_move(match_id, request)
        if isinstance(response, ErrorResponse):
            await broadcast_error(match_id, response, request.player_id)
            return make_error_response(response)

        await broadcast_to_match(match_id, MatchEvent(
            type=MessageType.MOVE_MADE,
            message=response.message,
            player_id=request.player_id,
            match=response.match,
        ))
        if response.match.status == MatchStatusValue.FINISHED:
            await broadcast_to_match(match_id, MatchEvent(
                type=MessageType.GAME_OVER,
                message="Match over",
                match=response.match,
            ))
        return response

    @app.post(
        "/api/v1/matches/{match_id}/power",
        response_model=PowerResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Use a power",
    )
    async def use_power(match_id: str, request: PowerRequest) -> Union[PowerResponse, JSONResponse]:
        """Spend a held power. The turn does not advance."""
        response = api_service.use_power(match_id, request)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)

        await broadcast_to_match(match_id, MatchEvent(
            type=MessageType.GAME_UPDATE,
            message=response.message,
            player_id=request.player_id,
            match=response.match,
        ))
        return response

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/matches/{match_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, match_id: str):
        """
        WebSocket for real-time updates.

        Messages from server: MatchEvent JSON.
        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()
        ws_connections.setdefault(match_id, []).append(websocket)
        logger.debug("Subscriber joined %s (%d total)", match_id, len(ws_connections[match_id]))

        try:
            response = api_service.get_match(match_id)
            if isinstance(response, MatchResponse):
                await websocket.send_json(MatchEvent(
                    type=MessageType.GAME_UPDATE,
                    match=response,
                ).model_dump(mode="json"))

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                    if message.get("type") == "ping":
                        await websocket.send_json({"type": "pong"})
                except (json.JSONDecodeError, AttributeError):
                    await websocket.send_json(MatchEvent(
                        type=MessageType.ERROR,
                        message="Invalid JSON",
                    ).model_dump(mode="json"))

        except WebSocketDisconnect:
            logger.debug("Subscriber left %s", match_id)
        finally:
            connections = ws_connections.get(match_id, [])
            if websocket in connections:
                connections.remove(websocket)
            if not connections:
                ws_connections.pop(match_id, None)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(version=API_VERSION)

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "PowerToe API",
            "version": API_VERSION,
            "env": POWERTOE_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn powertoe.api.app:app
app = create_app()
