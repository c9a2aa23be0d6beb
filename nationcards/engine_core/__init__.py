"""
Engine Core - Pure game state transitions.

The engine is the runtime that:
1. Builds the initial match state
2. Advances turns (income, draws, events, shop)
3. Resolves card plays, attacks and repels
4. Generates legal actions
5. Applies tagged actions via the reducer
"""

from .state import (
    GameState, GameSettings, Player, Card, CardCategory, EffectKind, Nation,
    Rarity, Alignment, TurnPhase, LogKind, LogEntry, ActionEvent, PendingAttack,
)
from .action import Action, ActionType, ActionPayload, ActionResult
from .setup import PlayerSeat, create_initial_state, generate_shop, draw_random_cards
from .effect_resolver import execute_card_effect, execute_attack, resolve_attack, can_repel
from .reducer import (
    Reducer, apply_action, next_turn, buy_card, sell_card, handle_bank_transaction,
)
from .action_generator import ActionGenerator, legal_actions, is_legal, acting_player

__all__ = [
    "GameState",
    "GameSettings",
    "Player",
    "Card",
    "CardCategory",
    "EffectKind",
    "Nation",
    "Rarity",
    "Alignment",
    "TurnPhase",
    "LogKind",
    "LogEntry",
    "ActionEvent",
    "PendingAttack",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "PlayerSeat",
    "create_initial_state",
    "generate_shop",
    "draw_random_cards",
    "execute_card_effect",
    "execute_attack",
    "resolve_attack",
    "can_repel",
    "Reducer",
    "apply_action",
    "next_turn",
    "buy_card",
    "sell_card",
    "handle_bank_transaction",
    "ActionGenerator",
    "legal_actions",
    "is_legal",
    "acting_player",
]
