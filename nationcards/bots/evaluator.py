"""
Heuristic Evaluator - Scores game states for bot decision-making.

The evaluator maps (state, player) to a score in [-1, 1] based on:
- HP advantage over the living enemies (dominant term)
- Mana and gold holdings (small terms, hoarding is not rewarded)
- Income capacity including land values
- Equipped artifacts
- A stalemate penalty for long games against healthy enemies

Weights can be adjusted to create different play styles.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.state import GameState


@dataclass
class EvaluationWeights:
    """
    Weights for the heuristic evaluator.

    Higher values = more importance.
    """
    hp_advantage: float = 0.8
    mana: float = 0.1
    gold: float = 0.1
    income: float = 0.4
    artifact: float = 0.1  # Per equipped artifact

    # Normalizers
    hp_scale: float = 100.0
    mana_scale: float = 100.0
    gold_scale: float = 500.0
    income_scale: float = 100.0

    # Stalemate: after this turn, penalize if enemies are still healthy
    stalemate_turn: int = 20
    stalemate_enemy_hp: float = 80.0
    stalemate_penalty: float = -0.3


@dataclass
class StateEvaluation:
    """
    Result of evaluating a game state.
    """
    total_score: float
    feature_breakdown: dict[str, float] = field(default_factory=dict)


def clamp_score(value: float) -> float:
    return max(-1.0, min(1.0, value))


class HeuristicEvaluator:
    """
    Evaluates game states using weighted heuristics.

    Used by the search as its leaf value and by bots for
    1-ply lookahead:
    1. Generate legal actions
    2. Apply each action to get new state
    3. Evaluate new states
    """

    def __init__(self, weights: EvaluationWeights | None = None):
        self.weights = weights or EvaluationWeights()

    def __call__(self, state: GameState, player_id: str) -> float:
        return self.evaluate(state, player_id)

    def evaluate(self, state: GameState, player_id: str) -> float:
        """
        Evaluate a game state from a player's perspective.

        -1 when the player is dead (or unknown), +1 when every enemy
        is dead, otherwise the clamped weighted sum.
        """
        return self.evaluate_detailed(state, player_id).total_score

    def evaluate_detailed(self, state: GameState, player_id: str) -> StateEvaluation:
        """Evaluate and keep the per-feature breakdown."""
        player = state.get_player(player_id)
        if player is None or player.is_dead:
            return StateEvaluation(total_score=-1.0)

        enemies = state.living_enemies(player_id)
        if not enemies:
            return StateEvaluation(total_score=1.0)

        w = self.weights
        avg_enemy_hp = sum(e.hp for e in enemies) / len(enemies)

        features = {
            "hp": (player.hp - avg_enemy_hp) / w.hp_scale * w.hp_advantage,
            "mana": min(1.0, player.mana / w.mana_scale) * w.mana,
            "gold": min(1.0, player.gold / w.gold_scale) * w.gold,
            "income": (player.income + player.land_income) / w.income_scale * w.income,
            "artifacts": len(player.artifacts) * w.artifact,
            "stalemate": 0.0,
        }
        if state.turn > w.stalemate_turn and avg_enemy_hp > w.stalemate_enemy_hp:
            features["stalemate"] = w.stalemate_penalty

        return StateEvaluation(
            total_score=clamp_score(sum(features.values())),
            feature_breakdown=features,
        )
