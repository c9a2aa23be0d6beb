"""
API Module - HTTP interface for game clients.

Exposes the engine via a REST API plus a WebSocket feed.
A client:
1. Creates a game from seats and settings
2. Submits actions for its human seats
3. Lets bots answer, or asks MCTS for a recommendation
4. Receives state updates over the WebSocket

All state is session-scoped and held in memory.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    SubmitActionRequest,
    RunBotsRequest,
    ActionRequest,
    # Responses
    GameResponse,
    ActionResponse,
    BotRunResponse,
    LegalActionsResponse,
    RecommendationResponse,
    TrainingRecordsResponse,
    WeightsResponse,
    ErrorResponse,
    # Shared
    ActionInfo,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateGameRequest",
    "SubmitActionRequest",
    "RunBotsRequest",
    "ActionRequest",
    # Responses
    "GameResponse",
    "ActionResponse",
    "BotRunResponse",
    "LegalActionsResponse",
    "RecommendationResponse",
    "TrainingRecordsResponse",
    "WeightsResponse",
    "ErrorResponse",
    # Shared
    "ActionInfo",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
