"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Caller seats players (humans and bots) and picks settings
2. A session is created in memory with the initial engine state
3. During the game:
   - Human actions are applied through the game loop
   - Bot seats are driven by their MCTS bots
   - Each bot decision leaves a training record
4. Game ends or is abandoned -> session destroyed

PERSISTENCE RULES:
- No database; sessions live in process memory only
- Training records leave the process only through an explicit export
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import random
import threading
import time
import uuid

from ..engine_core.state import GameState, GameSettings
from ..engine_core.setup import PlayerSeat, create_initial_state
from ..bots import BotPolicy, MCTSBot, get_profile
from ..bots.mcts import Evaluator
from ..bots.training import TrainingRecord

logger = logging.getLogger(__name__)


class SessionStatus(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # A winner was declared
    ABANDONED = "abandoned"  # Ended before a winner


@dataclass
class GameSession:
    """
    An in-memory game session.

    Contains:
    - The authoritative game state
    - Bots for the non-human seats, keyed by player id
    - Training records from bot decisions
    - The session's random source (draws, shop, missile targets)
    - A lock serializing writers; the API drives sessions from worker threads
    """
    session_id: str
    game_state: GameState
    created_at: float
    updated_at: float = 0.0

    status: SessionStatus = SessionStatus.ACTIVE
    bots: dict[str, BotPolicy] = field(default_factory=dict)
    training_records: list[TrainingRecord] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.status == SessionStatus.ACTIVE

    def is_bot_turn(self) -> bool:
        """Check if the player entitled to act is a bot."""
        if not self.game_state.players or self.game_state.is_over:
            return False
        return self.game_state.acting_player.player_id in self.bots

    def touch(self) -> None:
        self.updated_at = time.time()


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions from seats and settings
    - Track active sessions
    - Clean up completed and idle sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, evaluator: Evaluator | None = None, bot_iterations: int | None = None):
        self._sessions: dict[str, GameSession] = {}
        self.evaluator = evaluator
        self.bot_iterations = bot_iterations

    def create_session(
        self,
        seats: list[PlayerSeat],
        settings: GameSettings | None = None,
        seed: int | None = None,
    ) -> GameSession:
        """
        Create a new game session.

        Args:
            seats: Players in turn order; is_human=False seats get a bot
            settings: Rules configuration (defaults if omitted)
            seed: Seed for the session's random source

        Returns:
            New GameSession with the initial state
        """
        settings = settings or GameSettings()
        rng = random.Random(seed)
        session_id = str(uuid.uuid4())
        state = create_initial_state(seats, settings, game_id=session_id, rng=rng)

        bots: dict[str, BotPolicy] = {}
        for seat in seats:
            if seat.is_human:
                continue
            profile = get_profile(seat.bot_difficulty or settings.bot_difficulty)
            bots[seat.player_id] = MCTSBot(
                player_id=seat.player_id,
                profile=profile,
                evaluator=self.evaluator,
                rng=random.Random(rng.getrandbits(64)),
                iterations=self.bot_iterations,
            )

        now = time.time()
        session = GameSession(
            session_id=session_id,
            game_state=state,
            created_at=now,
            updated_at=now,
            bots=bots,
            rng=rng,
        )
        self._sessions[session_id] = session
        logger.info(
            "Created session %s with %d players (%d bots)",
            session_id, len(seats), len(bots),
        )
        return session

    def get_session(self, session_id: str) -> GameSession | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> GameSession | None:
        """
        End a session and remove it from memory.

        Returns the removed session, or None if it did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session:
            if session.game_state.is_over:
                session.status = SessionStatus.GAME_OVER
            else:
                session.status = SessionStatus.ABANDONED
            logger.info("Ended session %s (%s)", session_id, reason)
        return session

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def list_sessions(self) -> list[GameSession]:
        return list(self._sessions.values())

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Remove sessions idle for longer than max_age_seconds.

        Returns how many were removed.
        """
        current_time = time.time()
        to_remove = [
            session_id
            for session_id, session in self._sessions.items()
            if current_time - session.updated_at > max_age_seconds
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
