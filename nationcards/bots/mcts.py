"""
MCTS Search - Monte-Carlo tree search over engine states.

Each iteration:
1. Selection: descend by UCB1 until a node has untried actions or no children
2. Expansion: apply one random untried action to a clone of that node's state
3. Evaluation: score the new state from the root player's perspective
   (one-ply value estimate, no rollout)
4. Backpropagation: add the score and a visit to every node up to the root

The search never touches the caller's state: the root holds a clone and
every expansion clones again before applying the engine.

The loop can be sliced by the caller with step(n), or bounded by an
iteration budget and a monotonic-clock deadline with run().
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging
import math
import random
import time

from ..engine_core.state import GameState
from ..engine_core.action import Action
from ..engine_core.action_generator import legal_actions
from ..engine_core.reducer import Reducer
from .evaluator import HeuristicEvaluator

logger = logging.getLogger(__name__)

DEFAULT_EXPLORATION = 1.41
DEFAULT_ITERATIONS = 50

Evaluator = Callable[[GameState, str], float]


@dataclass(eq=False)
class MCTSNode:
    """
    A single node in the search tree.

    state is the position after `action` was applied to the parent's
    state; the root has no action.
    """
    state: GameState
    parent: MCTSNode | None = None
    action: Action | None = None
    children: list[MCTSNode] = field(default_factory=list)
    untried_actions: list[Action] = field(default_factory=list)
    visits: int = 0
    total_score: float = 0.0

    @property
    def mean_score(self) -> float:
        if self.visits == 0:
            return 0.0
        return self.total_score / self.visits

    @property
    def is_fully_expanded(self) -> bool:
        return not self.untried_actions

    def ucb1(self, exploration: float) -> float:
        """UCB1 priority; unvisited nodes always come first."""
        if self.visits == 0 or self.parent is None:
            return math.inf
        return self.mean_score + exploration * math.sqrt(
            math.log(self.parent.visits) / self.visits
        )

    def best_child(self, exploration: float) -> MCTSNode:
        # max keeps the first of equal scores, so ties go to the older child
        return max(self.children, key=lambda c: c.ucb1(exploration))

    def most_visited_child(self) -> MCTSNode | None:
        if not self.children:
            return None
        return max(self.children, key=lambda c: c.visits)


@dataclass
class SearchResult:
    """
    Outcome of a search.

    best_action is None when the root had no legal actions.
    policy maps each root child's action label to visits / iterations.
    value is the best child's mean score.
    """
    best_action: Action | None
    policy: dict[str, float] = field(default_factory=dict)
    value: float = 0.0
    iterations: int = 0
    root_visits: int = 0
    player_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "best_action": self.best_action.to_dict() if self.best_action else None,
            "policy": dict(self.policy),
            "value": self.value,
            "iterations": self.iterations,
            "root_visits": self.root_visits,
            "player_id": self.player_id,
        }


class MCTSSearch:
    """
    Incremental search from one root position.

    Usage:
        search = MCTSSearch(state, evaluator=ValueEvaluator())
        while not done:
            search.step(10)      # yield to the host loop in between
        result = search.result()
    """

    def __init__(
        self,
        root_state: GameState,
        evaluator: Evaluator | None = None,
        exploration: float = DEFAULT_EXPLORATION,
        rng: random.Random | None = None,
    ):
        self.evaluator = evaluator or HeuristicEvaluator()
        self.exploration = exploration
        self.rng = rng or random.Random()
        self.reducer = Reducer(rng=self.rng)

        self.root_player_id = (
            root_state.acting_player.player_id if root_state.players else None
        )
        self.root = MCTSNode(
            state=root_state.clone(),
            untried_actions=legal_actions(root_state),
        )
        self.iterations = 0

    def step(self, n: int = 1) -> MCTSSearch:
        """Run n more iterations."""
        for _ in range(n):
            self._iterate()
        return self

    def run(self, iterations: int, deadline: float | None = None) -> SearchResult:
        """
        Run up to `iterations` iterations.

        deadline is a time.monotonic() timestamp; the loop stops between
        iterations once it has passed.
        """
        for _ in range(iterations):
            if deadline is not None and time.monotonic() >= deadline:
                logger.debug("Search stopped at deadline after %d iterations", self.iterations)
                break
            self._iterate()
        return self.result()

    def _iterate(self) -> None:
        node = self.root

        # Selection
        while node.is_fully_expanded and node.children:
            node = node.best_child(self.exploration)

        # Expansion
        if node.untried_actions:
            index = self.rng.randrange(len(node.untried_actions))
            action = node.untried_actions.pop(index)
            before = node.state.clone()
            state = self.reducer.apply(before, action).state_or(before)
            child = MCTSNode(
                state=state,
                parent=node,
                action=action,
                untried_actions=legal_actions(state),
            )
            node.children.append(child)
            node = child

        # Evaluation
        if self.root_player_id is None:
            score = 0.0
        else:
            score = self.evaluator(node.state, self.root_player_id)

        # Backpropagation
        while node is not None:
            node.visits += 1
            node.total_score += score
            node = node.parent

        self.iterations += 1

    def result(self) -> SearchResult:
        best = self.root.most_visited_child()
        if best is None:
            return SearchResult(
                best_action=None,
                iterations=self.iterations,
                root_visits=self.root.visits,
                player_id=self.root_player_id,
            )

        total = self.iterations or 1
        policy = {child.action.label(): child.visits / total for child in self.root.children}
        return SearchResult(
            best_action=best.action,
            policy=policy,
            value=best.mean_score,
            iterations=self.iterations,
            root_visits=self.root.visits,
            player_id=self.root_player_id,
        )


def run_mcts(
    state: GameState,
    iterations: int = DEFAULT_ITERATIONS,
    evaluator: Evaluator | None = None,
    rng: random.Random | None = None,
    exploration: float = DEFAULT_EXPLORATION,
    deadline: float | None = None,
) -> SearchResult:
    """
    Search from state and recommend an action for the acting player.

    Convenience function: creates an MCTSSearch and runs it.
    """
    search = MCTSSearch(state, evaluator=evaluator, exploration=exploration, rng=rng)
    result = search.run(iterations, deadline=deadline)
    if result.best_action is None:
        logger.debug("No legal actions for %s", result.player_id)
    else:
        logger.debug(
            "MCTS chose %s for %s (value %.3f, %d children)",
            result.best_action.label(), result.player_id, result.value, len(result.policy),
        )
    return result
