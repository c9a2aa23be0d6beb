"""
Neural Value Evaluator - A small residual network over player features.

The network is supplied as a JSON weights document at runtime:

    {
      "input":        {"weight": H x 10, "bias": H},
      "blocks":       [3 x {"weight": H x H, "bias": H}],
      "value_hidden": {"weight": V x H, "bias": V},
      "value_out":    {"weight": 1 x V, "bias": 1}
    }

Forward pass: affine -> ReLU -> 3 x (x + ReLU(affine(x))) ->
affine -> ReLU -> affine -> tanh.

The loaded weights are owned by a ValueEvaluator instance. A document
that fails validation never replaces weights that were already loaded;
with no weights at all the heuristic evaluator answers instead.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable
import logging

import numpy as np
from pydantic import BaseModel, ValidationError

from ..engine_core.state import Nation, MAX_LAND_SIZE, SOUL_LIMIT
from .evaluator import HeuristicEvaluator, clamp_score

if TYPE_CHECKING:
    from ..engine_core.state import GameState

logger = logging.getLogger(__name__)

NATION_ORDER: tuple[Nation, ...] = (Nation.FIGHTER, Nation.HOLY, Nation.COMMERCIAL, Nation.MAGIC)
INPUT_SIZE = 6 + len(NATION_ORDER)
NUM_BLOCKS = 3
GOLD_SCALE = 500.0


class ModelWeightsError(ValueError):
    """The weights document is malformed or has inconsistent shapes."""


# ============================================================================
# Weights document
# ============================================================================

class LayerDocument(BaseModel):
    weight: list[list[float]]
    bias: list[float]


class WeightsDocument(BaseModel):
    """Structure of an externally supplied weights file."""
    input: LayerDocument
    blocks: list[LayerDocument]
    value_hidden: LayerDocument
    value_out: LayerDocument


@dataclass(frozen=True)
class DenseLayer:
    weight: np.ndarray  # (out, in)
    bias: np.ndarray    # (out,)

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return self.weight @ x + self.bias

    @property
    def in_features(self) -> int:
        return self.weight.shape[1]

    @property
    def out_features(self) -> int:
        return self.weight.shape[0]


def _to_layer(name: str, doc: LayerDocument) -> DenseLayer:
    try:
        weight = np.asarray(doc.weight, dtype=np.float64)
        bias = np.asarray(doc.bias, dtype=np.float64)
    except ValueError as e:
        # Ragged rows
        raise ModelWeightsError(f"{name}: weight rows differ in length") from e
    if weight.ndim != 2 or weight.shape[0] == 0 or weight.shape[1] == 0:
        raise ModelWeightsError(f"{name}: weight must be a non-empty matrix")
    if bias.shape != (weight.shape[0],):
        raise ModelWeightsError(
            f"{name}: bias has {bias.size} entries, expected {weight.shape[0]}"
        )
    if not (np.all(np.isfinite(weight)) and np.all(np.isfinite(bias))):
        raise ModelWeightsError(f"{name}: contains non-finite values")
    return DenseLayer(weight=weight, bias=bias)


def relu(x: np.ndarray) -> np.ndarray:
    return np.maximum(x, 0.0)


@dataclass(frozen=True)
class NetworkWeights:
    """Validated, shape-consistent network parameters."""
    input: DenseLayer
    blocks: tuple[DenseLayer, ...]
    value_hidden: DenseLayer
    value_out: DenseLayer

    @classmethod
    def from_document(cls, document: Any) -> NetworkWeights:
        """
        Parse a weights document (dict, JSON string or WeightsDocument).

        Raises ModelWeightsError on any structural or shape problem.
        """
        try:
            if isinstance(document, WeightsDocument):
                doc = document
            elif isinstance(document, (str, bytes)):
                doc = WeightsDocument.model_validate_json(document)
            else:
                doc = WeightsDocument.model_validate(document)
        except ValidationError as e:
            raise ModelWeightsError(f"Invalid weights document: {e.error_count()} error(s)") from e

        if len(doc.blocks) != NUM_BLOCKS:
            raise ModelWeightsError(
                f"Expected {NUM_BLOCKS} residual blocks, got {len(doc.blocks)}"
            )

        input_layer = _to_layer("input", doc.input)
        blocks = tuple(_to_layer(f"blocks[{i}]", b) for i, b in enumerate(doc.blocks))
        value_hidden = _to_layer("value_hidden", doc.value_hidden)
        value_out = _to_layer("value_out", doc.value_out)

        hidden = input_layer.out_features
        if input_layer.in_features != INPUT_SIZE:
            raise ModelWeightsError(
                f"input: expects {input_layer.in_features} features, encoder gives {INPUT_SIZE}"
            )
        for i, block in enumerate(blocks):
            if block.weight.shape != (hidden, hidden):
                raise ModelWeightsError(f"blocks[{i}]: weight must be {hidden}x{hidden}")
        if value_hidden.in_features != hidden:
            raise ModelWeightsError(f"value_hidden: expects {value_hidden.in_features} inputs, got {hidden}")
        if value_out.weight.shape != (1, value_hidden.out_features):
            raise ModelWeightsError(
                f"value_out: weight must be 1x{value_hidden.out_features}"
            )

        return cls(
            input=input_layer,
            blocks=blocks,
            value_hidden=value_hidden,
            value_out=value_out,
        )

    def forward(self, features: np.ndarray) -> float:
        x = relu(self.input(features))
        for block in self.blocks:
            x = x + relu(block(x))
        v = relu(self.value_hidden(x))
        return float(np.tanh(self.value_out(v))[0])

    @property
    def hidden_size(self) -> int:
        return self.input.out_features


# ============================================================================
# Features
# ============================================================================

def encode_player(state: GameState, player_id: str) -> np.ndarray:
    """
    Fixed-size input vector for one player.

    [hp, mana, gold, soul, hand, lands] normalized, then a nation one-hot.
    """
    player = state.get_player(player_id)
    if player is None:
        raise KeyError(player_id)

    nation = np.zeros(len(NATION_ORDER), dtype=np.float64)
    nation[NATION_ORDER.index(player.nation)] = 1.0

    stats = np.array([
        player.hp / player.max_hp if player.max_hp else 0.0,
        player.mana / player.max_mana if player.max_mana else 0.0,
        min(1.0, player.gold / GOLD_SCALE),
        player.soul / SOUL_LIMIT,
        len(player.hand) / state.settings.max_hand_size,
        len(player.lands) / MAX_LAND_SIZE,
    ], dtype=np.float64)
    return np.concatenate([stats, nation])


# ============================================================================
# Evaluator
# ============================================================================

class ValueEvaluator:
    """
    Evaluation function backed by the network when weights are loaded.

    Usage:
        evaluator = ValueEvaluator()
        evaluator.load_weights_file("weights.json")
        score = evaluator(state, "p1")
    """

    def __init__(
        self,
        weights_document: Any = None,
        fallback: HeuristicEvaluator | None = None,
    ):
        self.weights: NetworkWeights | None = None
        self.last_error: str | None = None
        self.fallback = fallback or HeuristicEvaluator()
        if weights_document is not None:
            self.load_weights(weights_document)

    @property
    def has_weights(self) -> bool:
        return self.weights is not None

    def load_weights(self, document: Any) -> bool:
        """Replace the weights; on failure the current weights stay."""
        try:
            weights = NetworkWeights.from_document(document)
        except ModelWeightsError as e:
            self.last_error = str(e)
            logger.warning("Rejected weights document: %s", e)
            return False
        self.weights = weights
        self.last_error = None
        logger.info("Loaded value network (hidden size %d)", weights.hidden_size)
        return True

    def load_weights_file(self, path: str | Path) -> bool:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            self.last_error = f"Cannot read {path}: {e}"
            logger.warning("Cannot read weights file %s: %s", path, e)
            return False
        return self.load_weights(text)

    def evaluate(self, state: GameState, player_id: str) -> float:
        """
        Score in [-1, 1] for player_id.

        Terminal outcomes are exact; otherwise the network, or the
        heuristic when no network is loaded.
        """
        player = state.get_player(player_id)
        if player is None or player.is_dead:
            return -1.0
        if not state.living_enemies(player_id):
            return 1.0
        if self.weights is None:
            return self.fallback.evaluate(state, player_id)
        return clamp_score(self.weights.forward(encode_player(state, player_id)))

    def __call__(self, state: GameState, player_id: str) -> float:
        return self.evaluate(state, player_id)


def make_evaluator(document: Any = None) -> Callable[[GameState, str], float]:
    """Build an evaluation function closed over its own weights."""
    evaluator = ValueEvaluator(document)

    def evaluate(state: GameState, player_id: str) -> float:
        return evaluator.evaluate(state, player_id)

    return evaluate

