"""
Tests for MCTS search and the MCTS bot.
"""

import math
import random
import time

import pytest

from ..bots.mcts import MCTSNode, MCTSSearch, run_mcts
from ..bots.mcts_bot import MCTSBot
from ..bots.profiles import get_profile, EASY, NORMAL, HARD
from ..engine_core.action import ActionType
from ..engine_core.action_generator import legal_actions
from .conftest import make_player, make_state


def walk(node):
    yield node
    for child in node.children:
        yield from walk(child)


class TestSearch:
    """Search tree statistics."""

    def test_root_children_visits_sum_to_iterations(self, initial_state):
        search = MCTSSearch(initial_state, rng=random.Random(3))

        result = search.run(40)

        assert result.iterations == 40
        assert search.root.visits == 40
        assert sum(child.visits for child in search.root.children) == 40

    def test_child_visits_never_exceed_parent(self, initial_state):
        search = MCTSSearch(initial_state, rng=random.Random(5))
        search.run(60)

        for node in walk(search.root):
            for child in node.children:
                assert child.visits <= node.visits

    def test_policy_is_visit_distribution(self, initial_state):
        result = run_mcts(initial_state, iterations=30, rng=random.Random(1))

        assert sum(result.policy.values()) == pytest.approx(1.0)
        assert result.best_action.label() in result.policy
        assert result.policy[result.best_action.label()] == max(result.policy.values())
        assert -1.0 <= result.value <= 1.0

    def test_finds_winning_attack(self, sword):
        """With the kill available, search prefers it."""
        state = make_state(make_player("p1", hand=[sword]), make_player("p2", hp=15))

        result = run_mcts(state, iterations=60, rng=random.Random(0))

        assert result.best_action.action_type == ActionType.ATTACK
        assert result.value == 1.0

    def test_no_legal_actions_reports_none(self, sword):
        state = make_state(make_player("p1", hand=[sword]), make_player("p2", hp=15))
        state = state._copy_with(winner_id="p1")

        result = run_mcts(state, iterations=10)

        assert result.best_action is None
        assert result.policy == {}

    def test_root_state_not_mutated(self, initial_state):
        snapshot = initial_state.clone()

        run_mcts(initial_state, iterations=50, rng=random.Random(2))

        assert initial_state == snapshot

    def test_step_slices_the_loop(self, initial_state):
        search = MCTSSearch(initial_state, rng=random.Random(4))

        search.step(5).step(5)

        assert search.iterations == 10
        assert search.result().iterations == 10

    def test_deadline_stops_search(self, initial_state):
        result = run_mcts(initial_state, iterations=10_000, deadline=time.monotonic())

        assert result.iterations == 0
        assert result.best_action is None

    def test_custom_evaluator_sees_root_player(self, initial_state):
        seen = set()

        def evaluator(state, player_id):
            seen.add(player_id)
            return 0.0

        run_mcts(initial_state, iterations=10, evaluator=evaluator)

        assert seen == {initial_state.acting_player.player_id}


class TestNode:

    def test_unvisited_child_has_infinite_priority(self, two_player_state):
        root = MCTSNode(state=two_player_state, visits=4)
        child = MCTSNode(state=two_player_state, parent=root)

        assert child.ucb1(1.41) == math.inf

    def test_ucb1(self, two_player_state):
        root = MCTSNode(state=two_player_state, visits=10)
        child = MCTSNode(state=two_player_state, parent=root, visits=2, total_score=1.0)

        expected = 0.5 + 1.41 * math.sqrt(math.log(10) / 2)
        assert child.ucb1(1.41) == pytest.approx(expected)


class TestMCTSBot:

    def test_empty_actions_give_no_action(self, two_player_state):
        bot = MCTSBot(player_id="p1")

        decision = bot.select_action(two_player_state, [])

        assert decision.action is None

    def test_decision_carries_search_targets(self, initial_state):
        bot = MCTSBot(player_id="human", profile=HARD, rng=random.Random(8), iterations=25)

        decision = bot.select_action(initial_state, legal_actions(initial_state))

        assert decision.action is not None
        assert decision.policy
        assert sum(decision.policy.values()) == pytest.approx(1.0)
        assert decision.evaluation_details["iterations"] == 25

    def test_budget_override(self):
        assert MCTSBot(player_id="b").budget == NORMAL.iterations
        assert MCTSBot(player_id="b", iterations=7).budget == 7

    def test_profiles(self):
        assert EASY.iterations < NORMAL.iterations < HARD.iterations
        assert get_profile("hard") is HARD
        assert get_profile("unknown") is NORMAL
