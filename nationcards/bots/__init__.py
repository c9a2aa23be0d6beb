"""
Bots module - Automated players and state evaluation.

Provides:
- BotPolicy: Interface for bot decision-making
- HeuristicEvaluator: Scores game states
- ValueEvaluator: Neural value network with heuristic fallback
- MCTSSearch / run_mcts: Tree search over engine states
- MCTSBot: Search bot with difficulty profiles
- TrainingRecord: Per-decision search data export
"""

from .policy import BotPolicy, BotDecision
from .evaluator import HeuristicEvaluator, EvaluationWeights, StateEvaluation
from .neural import (
    ValueEvaluator, NetworkWeights, WeightsDocument, ModelWeightsError,
    encode_player, make_evaluator,
)
from .mcts import MCTSNode, MCTSSearch, SearchResult, run_mcts
from .profiles import BotProfile, PROFILES, get_profile
from .mcts_bot import MCTSBot
from .training import TrainingRecord, export_training_records

__all__ = [
    "BotPolicy",
    "BotDecision",
    "HeuristicEvaluator",
    "EvaluationWeights",
    "StateEvaluation",
    "ValueEvaluator",
    "NetworkWeights",
    "WeightsDocument",
    "ModelWeightsError",
    "encode_player",
    "make_evaluator",
    "MCTSNode",
    "MCTSSearch",
    "SearchResult",
    "run_mcts",
    "BotProfile",
    "PROFILES",
    "get_profile",
    "MCTSBot",
    "TrainingRecord",
    "export_training_records",
]
