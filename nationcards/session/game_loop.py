"""
Game Loop - Applies human actions and drives bot seats.

The loop:
1. A human action arrives and is applied through the reducer
2. While a bot is entitled to act, its bot searches and plays
3. If a bot has no action, or its action is rejected, the loop forces
   the default transition (take damage in DEFENSE, else end turn)
4. Each searched bot decision is kept as a training record
5. Stop when a human must act or the game is over
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging

from ..engine_core.state import TurnPhase
from ..engine_core.action import Action, ActionResult
from ..engine_core.action_generator import legal_actions
from ..engine_core.reducer import Reducer, try_next_turn
from ..engine_core.effect_resolver import try_resolve_attack
from ..bots.training import TrainingRecord
from .manager import GameSession, SessionStatus

logger = logging.getLogger(__name__)

DEFAULT_MAX_BOT_STEPS = 500


class LoopState(Enum):
    """State of the game loop."""
    WAITING_HUMAN_ACTION = "waiting_human_action"
    RUNNING_BOTS = "running_bots"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """
    Result of applying an action or running bot turns.
    """
    success: bool
    loop_state: LoopState

    # Bot actions taken, as labels
    bot_actions: list[str] = field(default_factory=list)

    # Default transitions the loop had to force
    forced_actions: list[str] = field(default_factory=list)

    # Engine log lines produced
    state_changes: list[str] = field(default_factory=list)

    error: str | None = None
    error_code: str | None = None

    # Game over info
    winner: str | None = None


class GameLoop:
    """
    The game loop driver for one session.

    Usage:
        loop = GameLoop(session)

        result = loop.apply(Action.play_card("p1", card_id))
        if not result.success:
            show_error(result.error)

        loop.run_bots()
    """

    def __init__(self, session: GameSession):
        self.session = session
        self.reducer = Reducer(rng=session.rng)
        self.state = self._current_loop_state()

    def _current_loop_state(self) -> LoopState:
        if self.session.game_state.is_over:
            return LoopState.GAME_OVER
        if self.session.is_bot_turn():
            return LoopState.RUNNING_BOTS
        return LoopState.WAITING_HUMAN_ACTION

    def _result(self, success: bool = True, **kwargs) -> TurnResult:
        self.state = self._current_loop_state()
        return TurnResult(
            success=success,
            loop_state=self.state,
            winner=self.session.game_state.winner_id,
            **kwargs,
        )

    def _commit(self, result: ActionResult) -> None:
        self.session.game_state = result.new_state
        self.session.touch()
        if self.session.game_state.is_over:
            self.session.status = SessionStatus.GAME_OVER
            logger.info(
                "Session %s over, winner %s",
                self.session.session_id, self.session.game_state.winner_id,
            )

    def apply(self, action: Action) -> TurnResult:
        """
        Apply one action from a human (or any external caller).

        A rejected action leaves the state untouched and reports why.
        """
        with self.session.lock:
            return self._apply(action)

    def _apply(self, action: Action) -> TurnResult:
        result = self.reducer.apply(self.session.game_state, action)
        if not result.success:
            logger.debug("Rejected %s: %s", action.label(), result.error)
            return self._result(
                success=False,
                error=result.error,
                error_code=result.error_code,
            )

        self._commit(result)
        return self._result(state_changes=list(result.state_changes))

    def _force_default(self) -> ActionResult:
        """Take the pending hit in DEFENSE, otherwise end the turn."""
        state = self.session.game_state
        if state.phase == TurnPhase.DEFENSE:
            return try_resolve_attack(state, [])
        return try_next_turn(state, self.session.rng)

    def run_bots(self, max_steps: int = DEFAULT_MAX_BOT_STEPS) -> TurnResult:
        """
        Let bots act until a human must act, the game ends or
        max_steps actions were taken.

        Holds the session lock for the whole run.
        """
        with self.session.lock:
            return self._run_bots(max_steps)

    def _run_bots(self, max_steps: int) -> TurnResult:
        bot_actions: list[str] = []
        forced: list[str] = []
        changes: list[str] = []

        steps = 0
        while steps < max_steps and self.session.is_bot_turn():
            steps += 1
            state = self.session.game_state
            actor = state.acting_player
            bot = self.session.bots[actor.player_id]

            legal = legal_actions(state)
            decision = bot.select_action(state, legal) if legal else None
            action = decision.action if decision else None

            if action is not None:
                result = self.reducer.apply(state, action)
                if result.success:
                    if decision.policy:
                        self.session.training_records.append(
                            TrainingRecord.from_search(
                                state, actor.player_id, action, decision.policy, decision.value,
                            )
                        )
                    self._commit(result)
                    bot_actions.append(f"{actor.name}: {action.label()}")
                    changes.extend(result.state_changes)
                    continue
                logger.warning(
                    "Bot %s action %s rejected (%s), forcing default",
                    actor.player_id, action.label(), result.error_code,
                )

            default = "take_damage" if state.phase == TurnPhase.DEFENSE else "end_turn"
            result = self._force_default()
            if not result.success:
                logger.error(
                    "Cannot force a transition for %s: %s", actor.player_id, result.error,
                )
                return self._result(
                    success=False,
                    bot_actions=bot_actions,
                    forced_actions=forced,
                    state_changes=changes,
                    error=result.error,
                    error_code=result.error_code,
                )
            self._commit(result)
            forced.append(f"{actor.name}: {default}")
            changes.extend(result.state_changes)

        return self._result(
            bot_actions=bot_actions,
            forced_actions=forced,
            state_changes=changes,
        )
