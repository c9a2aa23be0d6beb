"""
Simulation - Bot-only games for evaluation and training data.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..engine_core.state import GameState, GameSettings, Nation
from ..engine_core.setup import PlayerSeat
from ..bots.mcts import Evaluator
from ..bots.training import TrainingRecord
from .manager import SessionManager
from .game_loop import GameLoop

logger = logging.getLogger(__name__)


def default_bot_seats(num_players: int = 4, difficulty: str = "normal") -> list[PlayerSeat]:
    """One bot per nation, in nation order, repeating past four."""
    nations = list(Nation)
    seats = []
    for i in range(num_players):
        nation = nations[i % len(nations)]
        name = f"AI_{nation.value.capitalize()}"
        if i >= len(nations):
            name += f"_{i + 1}"
        seats.append(PlayerSeat(
            player_id=f"bot_{i + 1}",
            name=name,
            nation=nation,
            is_human=False,
            bot_difficulty=difficulty,
        ))
    return seats


@dataclass
class SimulationResult:
    final_state: GameState
    records: list[TrainingRecord] = field(default_factory=list)
    steps: int = 0
    forced_actions: int = 0

    @property
    def winner_id(self) -> str | None:
        return self.final_state.winner_id


def simulate_game(
    seats: list[PlayerSeat] | None = None,
    settings: GameSettings | None = None,
    seed: int | None = None,
    iterations: int | None = None,
    evaluator: Evaluator | None = None,
    max_steps: int = 20000,
) -> SimulationResult:
    """
    Play one game with bots in every seat.

    Stops at a winner (the turn limit guarantees one) or after
    max_steps bot actions.
    """
    seats = seats or default_bot_seats()
    if any(seat.is_human for seat in seats):
        raise ValueError("simulate_game needs bot seats only")

    manager = SessionManager(evaluator=evaluator, bot_iterations=iterations)
    session = manager.create_session(seats, settings, seed=seed)
    loop = GameLoop(session)

    result = loop.run_bots(max_steps=max_steps)
    steps = len(result.bot_actions) + len(result.forced_actions)
    if not result.success:
        logger.warning("Simulation %s stopped early: %s", session.session_id, result.error)
    elif session.game_state.winner_id is None:
        logger.warning("Simulation %s hit the step limit (%d)", session.session_id, max_steps)
    else:
        logger.info(
            "Simulation %s won by %s on turn %d after %d steps",
            session.session_id, session.game_state.winner_id, session.game_state.turn, steps,
        )

    manager.end_session(session.session_id)
    return SimulationResult(
        final_state=session.game_state,
        records=list(session.training_records),
        steps=steps,
        forced_actions=len(result.forced_actions),
    )
