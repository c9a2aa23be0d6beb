"""
Reducer - Turn advancement, economy, and action dispatch.

The reducer is the single entry point for tagged actions:
apply_action(state, action) -> ActionResult.

Design principles:
- Pure function: (state, action) -> new_state
- Validates before applying
- Returns ActionResult with success/failure
- Delegates card plays and combat to the effect resolver
"""

from __future__ import annotations
from dataclasses import dataclass
import math
import random

from .state import GameState, Card, TurnPhase, LogKind, BANK_INTEREST_RATE
from .action import Action, ActionType, ActionResult
from .setup import draw_random_cards, generate_shop, resolve_rng
from .effect_resolver import (
    check_winner,
    try_execute_card_effect,
    try_execute_attack,
    try_resolve_attack,
)


def try_next_turn(state: GameState, rng: random.Random | None = None) -> ActionResult:
    """
    Hand the turn to the next living player.

    The turn counter moves only when the rotation wraps past seat 0.
    On wraparound the shop is refreshed and, every event_frequency
    turns, a global event fires. The new acting player then collects
    income and interest, regenerates mana and draws cards.
    """
    from ..catalog import GLOBAL_EVENTS

    if state.winner_id is not None:
        return ActionResult.failure("Game is over", error_code="GAME_OVER")
    if state.phase == TurnPhase.DEFENSE:
        return ActionResult.failure(
            "The pending attack must be answered first", error_code="WRONG_PHASE",
        )

    rng = resolve_rng(rng)
    settings = state.settings
    n = state.num_players

    next_idx = state.current_player_idx
    wrapped = False
    found = False
    for _ in range(n):
        next_idx = (next_idx + 1) % n
        if next_idx == 0:
            wrapped = True
        if state.players[next_idx].is_alive:
            found = True
            break
    if not found:
        return ActionResult.failure("No living player can take a turn", error_code="GAME_OVER")

    turn = state.turn + 1 if wrapped else state.turn
    shop = state.shop
    players = list(state.players)
    event_message = None

    if wrapped:
        shop = generate_shop(settings, turn, rng)
        if settings.event_frequency > 0 and turn % settings.event_frequency == 0:
            event = rng.choice(GLOBAL_EVENTS)
            players = [event.apply(p) if p.is_alive else p for p in players]
            event_message = event.message

    p = players[next_idx]
    income = math.floor((p.income + p.land_income) * settings.income_multiplier)
    interest = math.floor(p.deposit * BANK_INTEREST_RATE)
    drawn = draw_random_cards(settings.cards_draw_per_turn, turn, settings, rng)
    players[next_idx] = p.copy_with(
        gold=p.gold + income + interest,
        mana=min(p.max_mana, p.mana + settings.mana_regen_per_turn),
        hand=(p.hand + drawn)[:settings.max_hand_size],
        has_purchased_in_shop=False,
    )

    new_state = state._copy_with(
        turn=turn,
        current_player_idx=next_idx,
        players=players,
        shop=shop,
        phase=TurnPhase.ACTION,
        pending_attack=None,
        played_categories=[],
        last_action=None,
        event_message=event_message,
    )
    entries = [(LogKind.TURN, f"Turn {turn}: {players[next_idx].name} to act (+{income + interest} gold)")]
    if event_message:
        entries.append((LogKind.EVENT, event_message))
    new_state = new_state.with_log(*entries)

    if wrapped and turn > settings.max_turns:
        new_state = _end_on_turn_limit(new_state)

    return ActionResult.success_with_state(check_winner(new_state), changes=[entries[0][1]])


def _end_on_turn_limit(state: GameState) -> GameState:
    """The turn limit ends the game; highest HP among the living wins."""
    living = state.living_players()
    if not living or state.winner_id is not None:
        return state
    leader = max(living, key=lambda p: p.hp)
    state = state._copy_with(winner_id=leader.player_id)
    return state.with_log(
        (LogKind.SYSTEM, f"Turn limit reached: {leader.name} wins with {leader.hp} HP"),
    )


def _check_economy_turn(state: GameState) -> ActionResult | None:
    if state.winner_id is not None:
        return ActionResult.failure("Game is over", error_code="GAME_OVER")
    if state.current_player.is_dead:
        return ActionResult.failure(
            f"{state.current_player.name} has fallen", error_code="NOT_YOUR_TURN",
        )
    if state.phase != TurnPhase.ACTION:
        return ActionResult.failure(
            f"Not allowed during {state.phase.value} phase", error_code="WRONG_PHASE",
        )
    return None


def try_buy_card(state: GameState, card: Card, rng: random.Random | None = None) -> ActionResult:
    """Buy one shop card into the current player's hand."""
    error = _check_economy_turn(state)
    if error:
        return error

    actor = state.current_player
    offer = next((c for c in state.shop if c.card_id == card.card_id), None)
    if offer is None:
        return ActionResult.failure(f"{card.card_id} is not in the shop", error_code="NOT_IN_SHOP")
    if actor.has_purchased_in_shop:
        return ActionResult.failure("Already bought a card this turn", error_code="PURCHASE_LIMIT")
    if actor.gold < offer.cost:
        return ActionResult.failure(
            f"Need {offer.cost} gold, have {actor.gold}", error_code="INSUFFICIENT_GOLD",
        )
    if len(actor.hand) >= state.settings.max_hand_size:
        return ActionResult.failure("Hand is full", error_code="HAND_FULL")

    shop = list(state.shop)
    shop.remove(offer)
    actor = actor.copy_with(
        gold=actor.gold - offer.cost,
        hand=actor.hand + [offer.instance(resolve_rng(rng))],
        has_purchased_in_shop=True,
    )
    message = f"{actor.name} bought {offer.name} for {offer.cost} gold"
    new_state = state.with_player(actor)._copy_with(shop=shop)
    return ActionResult.success_with_state(
        new_state.with_log((LogKind.ECONOMY, message)), changes=[message],
    )


def try_sell_card(state: GameState, card: Card) -> ActionResult:
    """Sell a hand card back for half its price, rounded down."""
    error = _check_economy_turn(state)
    if error:
        return error

    actor = state.current_player
    owned = actor.find_in_hand(card.card_id)
    if owned is None:
        return ActionResult.failure(f"Card {card.card_id} not in hand", error_code="CARD_NOT_IN_HAND")

    refund = owned.cost // 2
    actor = actor.copy_with(
        gold=actor.gold + refund,
        hand=[c for c in actor.hand if c.card_id != owned.card_id],
    )
    message = f"{actor.name} sold {owned.name} for {refund} gold"
    new_state = state.with_player(actor).with_log((LogKind.ECONOMY, message))
    return ActionResult.success_with_state(new_state, changes=[message])


def try_bank_transaction(state: GameState, amount: int) -> ActionResult:
    """Positive amount deposits gold, negative withdraws. Not logged."""
    error = _check_economy_turn(state)
    if error:
        return error

    actor = state.current_player
    if amount > 0:
        if actor.gold < amount:
            return ActionResult.failure("Not enough gold to deposit", error_code="INSUFFICIENT_GOLD")
        actor = actor.copy_with(gold=actor.gold - amount, deposit=actor.deposit + amount)
    elif amount < 0:
        if actor.deposit < -amount:
            return ActionResult.failure("Not enough deposit to withdraw", error_code="INSUFFICIENT_DEPOSIT")
        actor = actor.copy_with(gold=actor.gold - amount, deposit=actor.deposit + amount)
    else:
        return ActionResult.failure("Amount must be non-zero", error_code="INVALID_AMOUNT")

    return ActionResult.success_with_state(state.with_player(actor))


def next_turn(state: GameState, rng: random.Random | None = None) -> GameState:
    return try_next_turn(state, rng).state_or(state)


def buy_card(state: GameState, card: Card, rng: random.Random | None = None) -> GameState:
    """Returns state unchanged when the purchase is not allowed."""
    return try_buy_card(state, card, rng).state_or(state)


def sell_card(state: GameState, card: Card) -> GameState:
    return try_sell_card(state, card).state_or(state)


def handle_bank_transaction(state: GameState, amount: int) -> GameState:
    return try_bank_transaction(state, amount).state_or(state)


@dataclass
class Reducer:
    """
    Reducer applies tagged actions to game state.

    Stateless - all state is in GameState. The optional rng drives
    draws, shop refreshes and missile targeting.
    """
    rng: random.Random | None = None

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            return ActionResult.failure(validation_error, error_code="NOT_YOUR_TURN")

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        result = handler(state, action)
        if result.success and result.new_state is not None:
            result.new_state = result.new_state._copy_with(clock=result.new_state.clock + 1)
        return result

    def _validate_action(self, state: GameState, action: Action) -> str | None:
        """
        Check that the action comes from the player entitled to act.

        Returns error message if invalid, None if valid.
        """
        if not state.players:
            return "Game has no players"
        player_id = action.payload.player_id
        if player_id is not None and player_id != state.acting_player.player_id:
            return f"Not {player_id}'s turn"
        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.END_TURN: self._handle_end_turn,
            ActionType.PLAY_CARD: self._handle_play_card,
            ActionType.ATTACK: self._handle_attack,
            ActionType.BUY_CARD: self._handle_buy_card,
            ActionType.SELL_CARD: self._handle_sell_card,
            ActionType.BANK: self._handle_bank,
            ActionType.REPEL: self._handle_repel,
            ActionType.TAKE_DAMAGE: self._handle_take_damage,
        }
        return handlers.get(action_type)

    def _handle_end_turn(self, state: GameState, action: Action) -> ActionResult:
        return try_next_turn(state, self.rng)

    def _handle_play_card(self, state: GameState, action: Action) -> ActionResult:
        card = state.current_player.find_in_hand(action.payload.card_id or "")
        if card is None:
            return ActionResult.failure(
                f"Card {action.payload.card_id} not in hand", error_code="CARD_NOT_IN_HAND",
            )
        return try_execute_card_effect(state, card, action.payload.target_player_id, self.rng)

    def _handle_attack(self, state: GameState, action: Action) -> ActionResult:
        return try_execute_attack(
            state, action.payload.card_ids, action.payload.target_player_id, self.rng,
        )

    def _handle_buy_card(self, state: GameState, action: Action) -> ActionResult:
        card = next((c for c in state.shop if c.card_id == action.payload.card_id), None)
        if card is None:
            return ActionResult.failure(
                f"{action.payload.card_id} is not in the shop", error_code="NOT_IN_SHOP",
            )
        return try_buy_card(state, card, self.rng)

    def _handle_sell_card(self, state: GameState, action: Action) -> ActionResult:
        card = state.current_player.find_in_hand(action.payload.card_id or "")
        if card is None:
            return ActionResult.failure(
                f"Card {action.payload.card_id} not in hand", error_code="CARD_NOT_IN_HAND",
            )
        return try_sell_card(state, card)

    def _handle_bank(self, state: GameState, action: Action) -> ActionResult:
        return try_bank_transaction(state, action.payload.amount or 0)

    def _handle_repel(self, state: GameState, action: Action) -> ActionResult:
        if not action.payload.card_ids:
            return ActionResult.failure("Repel needs at least one card", error_code="CARD_NOT_IN_HAND")
        return try_resolve_attack(state, action.payload.card_ids)

    def _handle_take_damage(self, state: GameState, action: Action) -> ActionResult:
        return try_resolve_attack(state, [])


def apply_action(state: GameState, action: Action, rng: random.Random | None = None) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(rng=rng)
    return reducer.apply(state, action)
