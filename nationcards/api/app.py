"""
FastAPI Application - REST API for game clients.

Endpoints:
    POST   /api/v1/games                          Create a game
    GET    /api/v1/games                          List active games
    GET    /api/v1/games/{id}                     Get game state
    DELETE /api/v1/games/{id}                     End a game
    POST   /api/v1/games/{id}/actions             Submit an action
    GET    /api/v1/games/{id}/legal-actions       Legal actions for the acting player
    POST   /api/v1/games/{id}/bots                Run bot turns
    GET    /api/v1/games/{id}/recommendation      MCTS recommendation
    GET    /api/v1/games/{id}/training-records    Training-record export
    POST   /api/v1/model/weights                  Load value-network weights
    WS     /api/v1/games/{id}/ws                  WebSocket for state updates

Search runs off the event loop in the thread pool, so one long bot turn
does not stall other connections.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Any, Optional, Union
import json
import logging
import os

from fastapi import FastAPI, Body, Query, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .service import APIService
from .schemas import (
    # Request models
    CreateGameRequest,
    SubmitActionRequest,
    RunBotsRequest,
    # Response models
    ActionResponse,
    BotRunResponse,
    EndGameResponse,
    ErrorResponse,
    GameListResponse,
    GameResponse,
    HealthResponse,
    LegalActionsResponse,
    RecommendationResponse,
    TrainingRecordsResponse,
    WeightsResponse,
    # Enums
    ErrorCode,
)
from ..bots.neural import ValueEvaluator

logger = logging.getLogger(__name__)

# Environment configuration
NATIONCARDS_ENV = os.getenv("NATIONCARDS_ENV", "development")
NATIONCARDS_WEIGHTS_PATH = os.getenv("NATIONCARDS_WEIGHTS_PATH", None)
NATIONCARDS_MCTS_ITERATIONS = int(os.getenv("NATIONCARDS_MCTS_ITERATIONS", "50"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

VERSION = "1.0.0"


def create_default_service() -> APIService:
    """Service configured from the environment."""
    evaluator = ValueEvaluator()
    if NATIONCARDS_WEIGHTS_PATH:
        if evaluator.load_weights_file(NATIONCARDS_WEIGHTS_PATH):
            logger.info("Value network loaded from %s", NATIONCARDS_WEIGHTS_PATH)
        else:
            logger.warning("Starting with the heuristic evaluator")
    return APIService(evaluator=evaluator, mcts_iterations=NATIONCARDS_MCTS_ITERATIONS)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Nation Cards Engine API",
        description="""
Turn-based card game engine with MCTS bots.

## Actions

`POST /api/v1/games/{id}/actions` takes a tagged action (`type` is one of
`end_turn`, `play_card`, `attack`, `buy_card`, `sell_card`, `bank`,
`repel`, `take_damage`). An action the rules reject is answered with
`applied=false`, the reason, and the unchanged game.

## Error Codes

| Code | Description |
|------|-------------|
| `GAME_NOT_FOUND` | Game does not exist or has ended |
| `ILLEGAL_ACTION` | Action names a player who is not seated |
| `INVALID_WEIGHTS` | Weights document failed validation |
| `VALIDATION_ERROR` | Request parameters are invalid |
| `INTERNAL_ERROR` | Unexpected server failure |
        """,
        version=VERSION,
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

    api_service = service or create_default_service()

    # WebSocket connections
    ws_connections: dict[str, list[WebSocket]] = {}
    app.state.ws_connections = ws_connections

    def drop_connection(game_id: str, websocket: WebSocket) -> None:
        connections = ws_connections.get(game_id)
        if connections is None:
            return
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            del ws_connections[game_id]

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_to_json(response: ErrorResponse) -> JSONResponse:
        status_code = {
            ErrorCode.GAME_NOT_FOUND: 404,
            ErrorCode.VALIDATION_ERROR: 422,
            ErrorCode.INTERNAL_ERROR: 500,
        }.get(response.error_code, 400)
        return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))

    async def broadcast_to_session(game_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a game."""
        if game_id in ws_connections:
            dead_connections = []
            for ws in list(ws_connections[game_id]):
                try:
                    await ws.send_json(message)
                except (WebSocketDisconnect, RuntimeError):
                    dead_connections.append(ws)
            for ws in dead_connections:
                drop_connection(game_id, ws)

    async def broadcast_state(game: GameResponse):
        await broadcast_to_session(game.game_id, {
            "type": "game_over" if game.winner_id else "state_update",
            "payload": game.model_dump(mode="json"),
        })

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            status_code=422,
            details={"errors": json.loads(json.dumps(exc.errors(), default=str))},
        )

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameResponse,
        responses={422: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Create a new game",
    )
    async def create_game(body: CreateGameRequest) -> Union[GameResponse, JSONResponse]:
        """
        Create a new game from seats and settings.

        Bot seats (`is_human=false`) are driven by MCTS bots. With
        `run_bots=true` they play until a human has to act.
        """
        try:
            game = await run_in_threadpool(api_service.create_game, body)
        except ValueError as e:
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(e), status_code=422)
        return game

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List active games",
    )
    async def list_games() -> GameListResponse:
        """List all active game IDs."""
        games = api_service.list_games()
        return GameListResponse(games=games, count=len(games))

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get game state",
    )
    async def get_game(game_id: str) -> Union[GameResponse, JSONResponse]:
        """Full state snapshot plus whose move it is."""
        response = api_service.get_game(game_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.delete(
        "/api/v1/games/{game_id}",
        response_model=EndGameResponse,
        tags=["Games"],
        summary="End a game",
    )
    async def end_game(
        game_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndGameResponse:
        """End a game and release its memory."""
        success = api_service.end_game(game_id, reason)
        ws_connections.pop(game_id, None)
        return EndGameResponse(success=success, game_id=game_id)

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/actions",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Player not seated"},
            404: {"model": ErrorResponse, "description": "Game not found"},
        },
        tags=["Game Loop"],
        summary="Submit an action",
    )
    async def submit_action(
        game_id: str,
        body: SubmitActionRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        """
        Submit an action for the player entitled to act.

        **Request Body:**
        ```json
        {
            "action": {"type": "attack", "player_id": "p1",
                       "card_ids": ["wpn_iron_sword#..."], "target_id": "p2"},
            "run_bots": true
        }
        ```
        """
        response = await run_in_threadpool(api_service.submit_action, game_id, body)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        if response.applied:
            await broadcast_state(response.game)
        return response

    @app.get(
        "/api/v1/games/{game_id}/legal-actions",
        response_model=LegalActionsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="List legal actions",
    )
    async def get_legal_actions(game_id: str) -> Union[LegalActionsResponse, JSONResponse]:
        """Every action the engine would accept from the acting player."""
        response = api_service.get_legal_actions(game_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.post(
        "/api/v1/games/{game_id}/bots",
        response_model=BotRunResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Run bot turns",
    )
    async def run_bots(
        game_id: str,
        body: Annotated[Optional[RunBotsRequest], Body()] = None,
    ) -> Union[BotRunResponse, JSONResponse]:
        """Let bots act until a human must act or the game ends."""
        max_steps = body.max_steps if body else RunBotsRequest().max_steps
        response = await run_in_threadpool(api_service.run_bots, game_id, max_steps)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        await broadcast_state(response.game)
        return response

    @app.get(
        "/api/v1/games/{game_id}/recommendation",
        response_model=RecommendationResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="MCTS recommendation for the acting player",
    )
    async def get_recommendation(
        game_id: str,
        iterations: Annotated[Optional[int], Query(ge=1, le=5000)] = None,
    ) -> Union[RecommendationResponse, JSONResponse]:
        """Search from the current state; the game itself is not changed."""
        response = await run_in_threadpool(api_service.recommend, game_id, iterations)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.get(
        "/api/v1/games/{game_id}/training-records",
        response_model=TrainingRecordsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Export training records",
    )
    async def get_training_records(game_id: str) -> Union[TrainingRecordsResponse, JSONResponse]:
        """One record per searched bot decision so far."""
        response = api_service.get_training_records(game_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    # =========================================================================
    # Model Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/model/weights",
        response_model=WeightsResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid weights"}},
        tags=["Model"],
        summary="Load value-network weights",
    )
    async def load_weights(
        document: Annotated[dict[str, Any], Body(description="Weights document")],
    ) -> Union[WeightsResponse, JSONResponse]:
        """
        Replace the value network used by bots and recommendations.

        A rejected document leaves the current model (or the heuristic) in place.
        """
        response = api_service.load_weights(document)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/games/{game_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, game_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: Game state changed
        - game_over: A winner was declared
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        try:
            # Send initial state; only known games receive broadcasts
            response = api_service.get_game(game_id)
            if isinstance(response, ErrorResponse):
                await websocket.send_json({
                    "type": "error",
                    "payload": response.model_dump(mode="json"),
                })
            else:
                ws_connections.setdefault(game_id, []).append(websocket)
                await websocket.send_json({
                    "type": "state_update",
                    "payload": response.model_dump(mode="json"),
                })

            # Listen for messages
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                    if message.get("type") == "ping":
                        await websocket.send_json({"type": "pong"})
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })

        except WebSocketDisconnect:
            logger.debug("WebSocket for %s disconnected", game_id)
        finally:
            drop_connection(game_id, websocket)

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
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="nationcards-engine",
            version=VERSION,
            model_loaded=api_service.evaluator.has_weights,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Nation Cards Engine API",
            "version": VERSION,
            "environment": NATIONCARDS_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


app = create_app()
