"""
MCTS Bot - Search-driven bot for seated bot players.

The bot:
- Runs MCTS from the current state with its profile's budget
- Scores leaves with the heuristic or a loaded value network
- Occasionally plays a random legal move (profile randomness)
- Reports the visit distribution and value estimate with its choice

The bot does NOT:
- Keep a tree between decisions
- Coordinate with other bots
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import random
import time

from .policy import BotPolicy, BotDecision
from .evaluator import HeuristicEvaluator
from .mcts import Evaluator, run_mcts
from .profiles import BotProfile, NORMAL

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..engine_core.action import Action


@dataclass
class MCTSBot(BotPolicy):
    """
    MCTS bot with a difficulty profile.

    Usage:
        bot = MCTSBot(player_id="bot1", profile=HARD)
        decision = bot.select_action(state, legal_actions(state))
        if decision.action is None:
            ...  # force end turn / take damage
    """
    player_id: str
    profile: BotProfile = None  # type: ignore
    evaluator: Evaluator = None  # type: ignore
    rng: random.Random = None  # type: ignore
    iterations: int | None = None  # Overrides the profile budget
    time_limit: float | None = None  # Seconds per decision

    def __post_init__(self):
        if self.profile is None:
            self.profile = NORMAL
        if self.evaluator is None:
            self.evaluator = HeuristicEvaluator(weights=self.profile.weights)
        if self.rng is None:
            self.rng = random.Random()

    @property
    def budget(self) -> int:
        return self.iterations if self.iterations is not None else self.profile.iterations

    def select_action(
        self,
        state: GameState,
        legal_actions: list[Action],
    ) -> BotDecision:
        """
        Select an action by search.

        An empty action list gives a decision with action=None; the
        caller forces the default transition.
        """
        if not legal_actions:
            return BotDecision(action=None, explanation="No legal actions", confidence=0.0)

        if len(legal_actions) > 1 and self.rng.random() < self.profile.randomness:
            action = self.rng.choice(legal_actions)
            return BotDecision(
                action=action,
                explanation=f"Random action (profile: {self.profile.name})",
                confidence=1.0 / len(legal_actions),
                evaluated_actions=0,
            )

        deadline = time.monotonic() + self.time_limit if self.time_limit else None
        result = run_mcts(
            state,
            iterations=self.budget,
            evaluator=self.evaluator,
            rng=self.rng,
            exploration=self.profile.exploration,
            deadline=deadline,
        )
        if result.best_action is None:
            return BotDecision(action=None, explanation="Search found no action", confidence=0.0)

        label = result.best_action.label()
        return BotDecision(
            action=result.best_action,
            explanation=f"Selected {label} (value: {result.value:.2f}, profile: {self.profile.name})",
            confidence=result.policy.get(label, 0.0),
            policy=result.policy,
            value=result.value,
            evaluated_actions=len(result.policy),
            best_score=result.value,
            evaluation_details={"iterations": result.iterations},
        )

    def get_name(self) -> str:
        return f"MCTSBot({self.player_id}, {self.profile.name})"
