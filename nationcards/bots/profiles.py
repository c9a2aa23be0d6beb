"""
Bot Profiles - Difficulty presets for the search bot.

Profiles adjust:
- Search budget (iterations per decision)
- Evaluation weights (what the bot values)
- Randomness (chance of an unsearched random move)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from .evaluator import EvaluationWeights


@dataclass
class BotProfile:
    """
    A difficulty level for MCTSBot.

    Profiles can be:
    - Predefined (easy, normal, hard)
    - Built ad hoc for simulations
    """
    name: str
    description: str = ""

    iterations: int = 50
    exploration: float = 1.41
    randomness: float = 0.0  # Probability of a random legal action

    weights: EvaluationWeights = field(default_factory=EvaluationWeights)

    metadata: dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Predefined Profiles
# ============================================================================

EASY = BotProfile(
    name="Easy",
    description="Short search and frequent random moves",
    iterations=15,
    randomness=0.3,
)


NORMAL = BotProfile(
    name="Normal",
    description="Default search budget",
    iterations=50,
    randomness=0.05,
)


HARD = BotProfile(
    name="Hard",
    description="Long search, presses the HP advantage",
    iterations=200,
    randomness=0.0,
    weights=EvaluationWeights(
        hp_advantage=1.0,
        gold=0.05,  # Spend, don't hoard
        stalemate_penalty=-0.4,
    ),
)


PROFILES: dict[str, BotProfile] = {
    "easy": EASY,
    "normal": NORMAL,
    "hard": HARD,
}


def get_profile(name: str | None) -> BotProfile:
    """Look up a profile by name; unknown names get NORMAL."""
    if name is None:
        return NORMAL
    return PROFILES.get(name.lower(), NORMAL)
