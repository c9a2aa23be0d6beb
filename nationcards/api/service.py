"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages game sessions and their loops
3. Runs bot turns and MCTS recommendations
4. Formats responses

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import logging
import random

from .schemas import (
    # Requests
    CreateGameRequest,
    SubmitActionRequest,
    # Responses
    ActionInfo,
    ActionResponse,
    BotRunResponse,
    ErrorResponse,
    GameResponse,
    LegalActionsResponse,
    RecommendationResponse,
    TrainingRecordsResponse,
    WeightsResponse,
    # Enums
    ErrorCode,
    GameStatus,
)
from ..engine_core.setup import PlayerSeat
from ..engine_core.action_generator import legal_actions
from ..bots.neural import ValueEvaluator
from ..bots.mcts import run_mcts, DEFAULT_ITERATIONS
from ..bots.training import records_to_document
from ..session import SessionManager, GameSession, GameLoop

logger = logging.getLogger(__name__)


def game_not_found(game_id: str) -> ErrorResponse:
    return ErrorResponse(
        error=f"Game {game_id} not found",
        error_code=ErrorCode.GAME_NOT_FOUND,
    )


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        game = service.create_game(request)
        response = service.submit_action(game.game_id, action_request)
        hint = service.recommend(game.game_id)
    """
    evaluator: ValueEvaluator = field(default_factory=ValueEvaluator)
    mcts_iterations: int = DEFAULT_ITERATIONS
    session_manager: SessionManager = None  # type: ignore
    rng: random.Random = field(default_factory=random.Random)

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    def __post_init__(self):
        if self.session_manager is None:
            self.session_manager = SessionManager(evaluator=self.evaluator)

    def _loop(self, game_id: str) -> GameLoop | None:
        session = self.session_manager.get_session(game_id)
        if session is None:
            self._game_loops.pop(game_id, None)
            return None
        loop = self._game_loops.get(game_id)
        if loop is None:
            loop = GameLoop(session)
            self._game_loops[game_id] = loop
        return loop

    # =========================================================================
    # Games
    # =========================================================================

    def create_game(self, request: CreateGameRequest) -> GameResponse:
        """
        Create a new game and, if asked, let bot seats play up to the
        first human decision.

        Raises ValueError for a table the rules cannot seat.
        """
        settings = request.settings.to_settings()
        player_ids = [seat.player_id for seat in request.seats]
        if len(set(player_ids)) != len(player_ids):
            raise ValueError("Player ids must be unique")
        if len(request.seats) > settings.max_players:
            raise ValueError(
                f"{len(request.seats)} seats exceed max_players={settings.max_players}"
            )

        seats = [
            PlayerSeat(
                player_id=seat.player_id,
                name=seat.name,
                nation=seat.nation.to_nation(),
                is_human=seat.is_human,
                bot_difficulty=seat.bot_difficulty.value if seat.bot_difficulty else None,
            )
            for seat in request.seats
        ]
        session = self.session_manager.create_session(seats, settings, seed=request.seed)
        loop = GameLoop(session)
        self._game_loops[session.session_id] = loop
        if request.run_bots:
            loop.run_bots()
        return self._game_response(session)

    def get_game(self, game_id: str) -> GameResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if session is None:
            return game_not_found(game_id)
        return self._game_response(session)

    def list_games(self) -> list[str]:
        """List active game ids."""
        return self.session_manager.list_active_sessions()

    def end_game(self, game_id: str, reason: str = "user_ended") -> bool:
        self._game_loops.pop(game_id, None)
        return self.session_manager.end_session(game_id, reason) is not None

    # =========================================================================
    # Actions
    # =========================================================================

    def submit_action(
        self,
        game_id: str,
        request: SubmitActionRequest,
    ) -> ActionResponse | ErrorResponse:
        """
        Apply a client action.

        A rule rejection is reported with applied=false and the
        unchanged game, not as an error.
        """
        loop = self._loop(game_id)
        if loop is None:
            return game_not_found(game_id)
        if loop.session.game_state.get_player(request.action.player_id) is None:
            return ErrorResponse(
                error=f"Player {request.action.player_id} is not seated in game {game_id}",
                error_code=ErrorCode.ILLEGAL_ACTION,
            )

        # The action and the bot replies form one step for other requests
        with loop.session.lock:
            result = loop.apply(request.action.to_action())
            if not result.success:
                return ActionResponse(
                    applied=False,
                    reason=result.error,
                    reason_code=result.error_code,
                    game=self._game_response(loop.session),
                )

            bot_actions: list[str] = []
            forced: list[str] = []
            changes = list(result.state_changes)
            if request.run_bots:
                bots = loop.run_bots()
                bot_actions, forced = bots.bot_actions, bots.forced_actions
                changes.extend(bots.state_changes)

        return ActionResponse(
            applied=True,
            bot_actions=bot_actions,
            forced_actions=forced,
            state_changes=changes,
            game=self._game_response(loop.session),
        )

    def get_legal_actions(self, game_id: str) -> LegalActionsResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if session is None:
            return game_not_found(game_id)
        state = session.game_state
        actions = legal_actions(state)
        return LegalActionsResponse(
            game_id=game_id,
            player_id=state.acting_player.player_id if not state.is_over else None,
            actions=[ActionInfo.from_action(a) for a in actions],
            count=len(actions),
        )

    def run_bots(self, game_id: str, max_steps: int = 500) -> BotRunResponse | ErrorResponse:
        loop = self._loop(game_id)
        if loop is None:
            return game_not_found(game_id)
        result = loop.run_bots(max_steps=max_steps)
        if not result.success:
            return ErrorResponse(
                error=result.error or "Bot turn failed",
                error_code=ErrorCode.INTERNAL_ERROR,
                details={"engine_code": result.error_code},
            )
        return BotRunResponse(
            bot_actions=result.bot_actions,
            forced_actions=result.forced_actions,
            state_changes=result.state_changes,
            game=self._game_response(loop.session),
        )

    # =========================================================================
    # Search and models
    # =========================================================================

    def recommend(
        self,
        game_id: str,
        iterations: int | None = None,
    ) -> RecommendationResponse | ErrorResponse:
        """MCTS recommendation for whoever is entitled to act."""
        session = self.session_manager.get_session(game_id)
        if session is None:
            return game_not_found(game_id)

        result = run_mcts(
            session.game_state,
            iterations=iterations or self.mcts_iterations,
            evaluator=self.evaluator,
            rng=self.rng,
        )
        return RecommendationResponse(
            game_id=game_id,
            player_id=result.player_id,
            action=ActionInfo.from_action(result.best_action) if result.best_action else None,
            policy=result.policy,
            value=result.value,
            iterations=result.iterations,
        )

    def get_training_records(self, game_id: str) -> TrainingRecordsResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if session is None:
            return game_not_found(game_id)
        records = records_to_document(session.training_records)
        return TrainingRecordsResponse(game_id=game_id, count=len(records), records=records)

    def load_weights(self, document: Any) -> WeightsResponse | ErrorResponse:
        """Load a weights document; a bad one leaves the current model in place."""
        if not self.evaluator.load_weights(document):
            return ErrorResponse(
                error="Weights document rejected",
                error_code=ErrorCode.INVALID_WEIGHTS,
                details={
                    "reason": self.evaluator.last_error,
                    "model_loaded": self.evaluator.has_weights,
                },
            )
        return WeightsResponse(loaded=True, hidden_size=self.evaluator.weights.hidden_size)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _game_response(self, session: GameSession) -> GameResponse:
        state = session.game_state
        acting = None
        if state.players and not state.is_over:
            acting = state.acting_player.player_id
        return GameResponse(
            game_id=session.session_id,
            status=GameStatus.GAME_OVER if state.is_over else GameStatus.ACTIVE,
            turn=state.turn,
            phase=state.phase.value,
            acting_player_id=acting,
            is_bot_turn=session.is_bot_turn(),
            winner_id=state.winner_id,
            state=state.to_dict(),
        )
