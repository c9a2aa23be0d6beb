"""
Session Module - Manages in-memory game sessions.

A session represents one play-through of a game:
- Created when a table of players starts a game
- Holds the authoritative game state
- Drives bot seats through the game loop
- Destroyed when the game ends or goes idle

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import SessionManager, GameSession, SessionStatus
from .game_loop import GameLoop, LoopState, TurnResult
from .simulation import SimulationResult, simulate_game, default_bot_seats

__all__ = [
    "SessionManager",
    "GameSession",
    "SessionStatus",
    "GameLoop",
    "LoopState",
    "TurnResult",
    "SimulationResult",
    "simulate_game",
    "default_bot_seats",
]
