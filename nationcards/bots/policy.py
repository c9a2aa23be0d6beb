"""
Bot Policy - Interface for bot decision-making.

A BotPolicy takes a game state and returns a decision.
Decisions include:
- Which action to take (or None when the search found nothing)
- Explanation for logs and the UI
- Search statistics usable as training targets
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..engine_core.action import Action


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The action to take
    - Explanation (for UI/debugging)
    - Confidence in the decision
    - Visit distribution and value estimate from the search, if any
    """
    action: Action | None
    explanation: str = ""
    confidence: float = 1.0

    # Search statistics (training targets)
    policy: dict[str, float] = field(default_factory=dict)
    value: float = 0.0

    # Evaluation details (for debugging)
    evaluated_actions: int = 0
    best_score: float = 0.0
    evaluation_details: dict[str, Any] = field(default_factory=dict)


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects actions.
    Implementations can range from simple heuristics
    to tree search.
    """

    @abstractmethod
    def select_action(
        self,
        state: GameState,
        legal_actions: list[Action],
    ) -> BotDecision:
        """
        Select an action from the legal actions.

        Args:
            state: Current game state
            legal_actions: List of legal actions to choose from

        Returns:
            BotDecision with the selected action
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__

