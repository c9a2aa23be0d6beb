"""
Action System - Actions, payloads, and results.

Actions mirror the tagged action requests a client can send:
end_turn, play_card, attack, buy_card, sell_card, repel,
take_damage and bank.

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of actions in the system."""
    END_TURN = "end_turn"
    PLAY_CARD = "play_card"
    ATTACK = "attack"
    BUY_CARD = "buy_card"
    SELL_CARD = "sell_card"
    BANK = "bank"

    # Defense sub-phase answers
    REPEL = "repel"
    TAKE_DAMAGE = "take_damage"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    Validation happens in the engine.
    """
    player_id: str | None = None
    card_id: str | None = None
    card_ids: list[str] = field(default_factory=list)
    target_player_id: str | None = None
    amount: int | None = None


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Built through the classmethod factories; the reducer
    dispatches on action_type.
    """
    action_type: ActionType
    payload: ActionPayload

    @classmethod
    def end_turn(cls, player_id: str) -> Action:
        return cls(
            action_type=ActionType.END_TURN,
            payload=ActionPayload(player_id=player_id),
        )

    @classmethod
    def play_card(cls, player_id: str, card_id: str, target_player_id: str | None = None) -> Action:
        """Factory for a non-attack play (or a missile with optional target)."""
        return cls(
            action_type=ActionType.PLAY_CARD,
            payload=ActionPayload(
                player_id=player_id,
                card_id=card_id,
                target_player_id=target_player_id,
            ),
        )

    @classmethod
    def attack(cls, player_id: str, card_ids: list[str], target_player_id: str) -> Action:
        """Factory for an attack with one or more damage cards."""
        return cls(
            action_type=ActionType.ATTACK,
            payload=ActionPayload(
                player_id=player_id,
                card_ids=list(card_ids),
                target_player_id=target_player_id,
            ),
        )

    @classmethod
    def buy_card(cls, player_id: str, card_id: str) -> Action:
        return cls(
            action_type=ActionType.BUY_CARD,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def sell_card(cls, player_id: str, card_id: str) -> Action:
        return cls(
            action_type=ActionType.SELL_CARD,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def bank(cls, player_id: str, amount: int) -> Action:
        """Positive amount deposits, negative withdraws."""
        return cls(
            action_type=ActionType.BANK,
            payload=ActionPayload(player_id=player_id, amount=amount),
        )

    @classmethod
    def repel(cls, player_id: str, card_ids: list[str]) -> Action:
        return cls(
            action_type=ActionType.REPEL,
            payload=ActionPayload(player_id=player_id, card_ids=list(card_ids)),
        )

    @classmethod
    def take_damage(cls, player_id: str) -> Action:
        return cls(
            action_type=ActionType.TAKE_DAMAGE,
            payload=ActionPayload(player_id=player_id),
        )

    def label(self) -> str:
        """Compact description, used in training records and bot logs."""
        p = self.payload
        parts = [self.action_type.value]
        if p.card_id:
            parts.append(p.card_id)
        if p.card_ids:
            parts.append("+".join(p.card_ids))
        if p.target_player_id:
            parts.append(f"->{p.target_player_id}")
        if p.amount is not None:
            parts.append(str(p.amount))
        return ":".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.action_type.value,
            "player_id": self.payload.player_id,
            "card_id": self.payload.card_id,
            "card_ids": list(self.payload.card_ids),
            "target_player_id": self.payload.target_player_id,
            "amount": self.payload.amount,
        }


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Either Applied (success=True, new_state set) or
    Rejected (success=False, error/error_code set).
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    # For UI/presentation
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
        )

    def state_or(self, fallback: Any) -> Any:
        """New state when applied, otherwise the given fallback."""
        return self.new_state if self.success else fallback
