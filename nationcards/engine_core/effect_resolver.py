"""
Effect Resolver - Card plays, attacks and the defense answer.

Every rule check lives in a try_* function returning an ActionResult.
The public functions unwrap it: a rejected play gives back the input
state unchanged, which is what callers and the search rely on.

Design principles:
- Pure: (state, card, target) -> new state, input never touched
- Total: illegal plays are absorbed, never raised
- Randomness (missile targets) only through the injected rng
"""

from __future__ import annotations
from typing import Iterable
import math
import random

from .state import (
    GameState, Player, Card, CardCategory, EffectKind, Alignment, TurnPhase,
    LogKind, ActionEvent, PendingAttack, MAX_LAND_SIZE, MAX_ARTIFACT_SIZE,
    SOUL_LIMIT,
)
from .action import ActionResult
from .setup import resolve_rng


# Which hand categories may answer an incoming attack category
REPEL_COMPATIBILITY: dict[CardCategory, frozenset[CardCategory]] = {
    CardCategory.ATTACK: frozenset({CardCategory.ATTACK, CardCategory.DEFENSE}),
    CardCategory.MAGIC: frozenset({CardCategory.MAGIC, CardCategory.DEFENSE}),
    CardCategory.MISSILE: frozenset({CardCategory.DEFENSE}),
}


def can_repel(incoming: CardCategory, card: Card) -> bool:
    """Whether card may be used to repel an attack of the incoming category."""
    if card.effect not in (EffectKind.DAMAGE, EffectKind.BLOCK):
        return False
    return card.category in REPEL_COMPATIBILITY.get(incoming, frozenset())


def scaled_damage(state: GameState, value: int) -> int:
    return math.floor(value * state.settings.damage_multiplier)


def shift_soul(player: Player, cards: Iterable[Card]) -> Player:
    soul = player.soul
    for card in cards:
        if card.alignment == Alignment.HOLY:
            soul += 1
        elif card.alignment == Alignment.EVIL:
            soul -= 1
    return player.copy_with(soul=max(-SOUL_LIMIT, min(SOUL_LIMIT, soul)))


def apply_damage(state: GameState, target_id: str, amount: int) -> GameState:
    """Reduce target HP, clamp at 0 and mark death."""
    target = state.get_player(target_id)
    if target is None or target.is_dead:
        return state
    hp = max(0, target.hp - amount)
    return state.with_player(target.copy_with(hp=hp, is_dead=hp <= 0))


def check_winner(state: GameState) -> GameState:
    """Declare a winner once exactly one player is left alive."""
    if state.winner_id is not None or state.num_players < 2:
        return state
    living = state.living_players()
    if len(living) == 1:
        winner = living[0]
        state = state._copy_with(winner_id=winner.player_id)
        return state.with_log((LogKind.SYSTEM, f"{winner.name} wins the game!"))
    return state


def _check_can_play(state: GameState, actor: Player, cards: list[Card]) -> ActionResult | None:
    """Shared preconditions for playing cards from hand; None when playable."""
    if state.winner_id is not None:
        return ActionResult.failure("Game is over", error_code="GAME_OVER")
    if actor.is_dead:
        return ActionResult.failure(f"{actor.name} has fallen", error_code="NOT_YOUR_TURN")
    if state.phase != TurnPhase.ACTION:
        return ActionResult.failure(
            f"Cannot play cards during {state.phase.value} phase",
            error_code="WRONG_PHASE",
        )
    if not cards:
        return ActionResult.failure("No cards given", error_code="CARD_NOT_IN_HAND")

    seen: set[str] = set()
    for card in cards:
        if card.card_id in seen or actor.find_in_hand(card.card_id) is None:
            return ActionResult.failure(
                f"Card {card.card_id} not in hand", error_code="CARD_NOT_IN_HAND",
            )
        seen.add(card.card_id)
        if card.effect == EffectKind.BLOCK:
            return ActionResult.failure(
                f"{card.name} can only be used to repel", error_code="WRONG_PHASE",
            )

    if len(state.played_categories) >= state.settings.max_plays_per_turn:
        return ActionResult.failure("No plays left this turn", error_code="PLAY_LIMIT")
    category = cards[0].category
    if any(card.category != category for card in cards):
        return ActionResult.failure(
            "Cards in one play must share a category", error_code="PLAY_LIMIT",
        )
    if category in state.played_categories:
        return ActionResult.failure(
            f"A {category.value} card was already played this turn",
            error_code="PLAY_LIMIT",
        )

    mana_cost = sum(card.mana_cost for card in cards)
    if actor.mana < mana_cost:
        return ActionResult.failure(
            f"Need {mana_cost} mana, have {actor.mana}", error_code="INSUFFICIENT_MANA",
        )
    hp_cost = sum(card.hp_cost for card in cards)
    if hp_cost > 0 and actor.hp <= hp_cost:
        return ActionResult.failure(
            f"Need more than {hp_cost} HP", error_code="INSUFFICIENT_HP",
        )
    return None


def _pay_for(actor: Player, cards: list[Card]) -> Player:
    """Deduct mana/HP costs, remove the cards from hand, shift soul."""
    played = {card.card_id for card in cards}
    actor = actor.copy_with(
        mana=actor.mana - sum(card.mana_cost for card in cards),
        hp=actor.hp - sum(card.hp_cost for card in cards),
        hand=[c for c in actor.hand if c.card_id not in played],
    )
    return shift_soul(actor, cards)


def _record_play(
    state: GameState,
    actor: Player,
    card: Card,
    message: str,
    kind: LogKind = LogKind.ACTION,
    target_id: str | None = None,
    value: int = 0,
) -> GameState:
    state = state._copy_with(
        played_categories=state.played_categories + [card.category],
    ).with_log((kind, message))
    event = ActionEvent(
        source_id=actor.player_id,
        target_id=target_id,
        card_id=card.catalog_id,
        category=card.category,
        value=value,
        timestamp=state.clock,
    )
    return state._copy_with(last_action=event)


def _resolve_target(
    state: GameState,
    actor: Player,
    card: Card,
    target_player_id: str | None,
    rng: random.Random | None,
) -> Player | None:
    if target_player_id is None:
        if card.category != CardCategory.MISSILE:
            return None
        enemies = state.living_enemies(actor.player_id)
        if not enemies:
            return None
        return resolve_rng(rng).choice(enemies)

    target = state.get_player(target_player_id)
    if target is None or target.is_dead or target.player_id == actor.player_id:
        return None
    return target


def try_execute_card_effect(
    state: GameState,
    card: Card,
    target_player_id: str | None = None,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Play one card from the current player's hand.

    Mana and HP costs are paid, the card leaves the hand and its
    effect resolves. Damage and gold_steal need a living enemy; a
    missile without a target picks one at random.
    """
    actor = state.current_player
    error = _check_can_play(state, actor, [card])
    if error:
        return error
    card = actor.find_in_hand(card.card_id)

    target = None
    if card.effect in (EffectKind.DAMAGE, EffectKind.GOLD_STEAL):
        target = _resolve_target(state, actor, card, target_player_id, rng)
        if target is None:
            return ActionResult.failure(
                f"{card.name} needs a living enemy target", error_code="INVALID_TARGET",
            )

    actor = _pay_for(actor, [card])
    value = card.value
    kind = LogKind.ACTION

    if card.effect == EffectKind.INCOME:
        if len(actor.lands) < MAX_LAND_SIZE:
            actor = actor.copy_with(lands=actor.lands + [card])
            message = f"{actor.name} built {card.name} (+{card.value} income)"
        else:
            message = f"{actor.name} played {card.name} but has no free land"
            value = 0
        kind = LogKind.ECONOMY
    elif card.effect == EffectKind.EQUIP:
        if len(actor.artifacts) < MAX_ARTIFACT_SIZE:
            actor = actor.copy_with(artifacts=actor.artifacts + [card])
            message = f"{actor.name} equipped {card.name}"
        else:
            message = f"{actor.name} played {card.name} but has no free artifact slot"
            value = 0
    elif card.effect == EffectKind.HEAL:
        healed = min(actor.max_hp, actor.hp + card.value)
        value = healed - actor.hp
        actor = actor.copy_with(hp=healed)
        message = f"{actor.name} cast {card.name} and healed {value} HP"
    elif card.effect == EffectKind.MANA:
        restored = min(actor.max_mana, actor.mana + card.value)
        value = restored - actor.mana
        actor = actor.copy_with(mana=restored)
        message = f"{actor.name} used {card.name} and restored {value} mana"
    elif card.effect == EffectKind.GOLD_GAIN:
        actor = actor.copy_with(gold=actor.gold + card.value)
        message = f"{actor.name} signed {card.name} for {card.value} gold"
        kind = LogKind.ECONOMY
    elif card.effect == EffectKind.FULL_RESTORE_HP:
        actor = actor.copy_with(hp=actor.max_hp)
        message = f"{actor.name} used {card.name}: HP fully restored"
    elif card.effect == EffectKind.FULL_RESTORE_MANA:
        actor = actor.copy_with(mana=actor.max_mana)
        message = f"{actor.name} used {card.name}: mana fully restored"
    elif card.effect == EffectKind.FULL_RESTORE_ALL:
        actor = actor.copy_with(hp=actor.max_hp, mana=actor.max_mana)
        message = f"{actor.name} used {card.name}: HP and mana fully restored"
    elif card.effect == EffectKind.GOLD_STEAL:
        stolen = min(target.gold, card.value)
        actor = actor.copy_with(gold=actor.gold + stolen)
        state = state.with_player(target.copy_with(gold=target.gold - stolen))
        value = stolen
        message = f"{actor.name} stole {stolen} gold from {target.name}"
        kind = LogKind.ECONOMY
    elif card.effect == EffectKind.DAMAGE:
        value = scaled_damage(state, card.value)
        state = state.with_player(actor)
        state = apply_damage(state, target.player_id, value)
        hit = state.get_player(target.player_id)
        message = f"{actor.name} hit {hit.name} with {card.name} for {value} damage"
        if hit.is_dead:
            message += f"; {hit.name} has fallen"
        state = _record_play(
            state, actor, card, message, LogKind.COMBAT, target.player_id, value,
        )
        return ActionResult.success_with_state(check_winner(state), changes=[message])
    else:
        return ActionResult.failure(
            f"Unsupported effect {card.effect.value}", error_code="NO_HANDLER",
        )

    state = state.with_player(actor)
    state = _record_play(
        state, actor, card, message, kind,
        target.player_id if target else None, value,
    )
    return ActionResult.success_with_state(check_winner(state), changes=[message])


def try_execute_attack(
    state: GameState,
    card_ids: list[str],
    target_player_id: str,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Attack one living enemy with one or more damage cards of one category.

    Without the defense sub-phase the damage lands at once; with it
    the state enters DEFENSE and waits for the target's answer.
    """
    actor = state.current_player
    cards = [actor.find_in_hand(card_id) for card_id in card_ids]
    if any(card is None for card in cards):
        return ActionResult.failure("Attack card not in hand", error_code="CARD_NOT_IN_HAND")
    error = _check_can_play(state, actor, cards)
    if error:
        return error
    if not all(card.is_damage for card in cards):
        return ActionResult.failure("Only damage cards can attack", error_code="INVALID_TARGET")

    target = _resolve_target(state, actor, cards[0], target_player_id, rng)
    if target is None:
        return ActionResult.failure("Attack needs a living enemy", error_code="INVALID_TARGET")

    actor = _pay_for(actor, cards)
    state = state.with_player(actor)
    damage = scaled_damage(state, sum(card.value for card in cards))
    names = ", ".join(card.name for card in cards)
    lead = cards[0]

    if state.settings.defense_phase:
        pending = PendingAttack(
            attacker_id=actor.player_id,
            target_id=target.player_id,
            cards=tuple(cards),
            damage=damage,
            category=lead.category,
        )
        message = f"{actor.name} attacks {target.name} with {names} ({damage})"
        state = state._copy_with(phase=TurnPhase.DEFENSE, pending_attack=pending)
        state = _record_play(
            state, actor, lead, message, LogKind.COMBAT, target.player_id, damage,
        )
        return ActionResult.success_with_state(state, changes=[message])

    state = apply_damage(state, target.player_id, damage)
    hit = state.get_player(target.player_id)
    message = f"{actor.name} hit {hit.name} with {names} for {damage} damage"
    if hit.is_dead:
        message += f"; {hit.name} has fallen"
    state = _record_play(
        state, actor, lead, message, LogKind.COMBAT, target.player_id, damage,
    )
    return ActionResult.success_with_state(check_winner(state), changes=[message])


def try_resolve_attack(state: GameState, repel_card_ids: list[str] | None = None) -> ActionResult:
    """
    Answer a pending attack: repel with compatible cards or take it.

    Repel power beyond the incoming damage is reflected onto the
    attacker; otherwise the defender takes what is left.
    """
    pending = state.pending_attack
    if state.phase != TurnPhase.DEFENSE or pending is None:
        return ActionResult.failure("No attack to answer", error_code="WRONG_PHASE")
    if state.winner_id is not None:
        return ActionResult.failure("Game is over", error_code="GAME_OVER")

    defender = state.get_player(pending.target_id)
    attacker = state.get_player(pending.attacker_id)
    repel_card_ids = repel_card_ids or []

    cards = []
    for card_id in repel_card_ids:
        card = defender.find_in_hand(card_id)
        if card is None or card in cards:
            return ActionResult.failure(f"Card {card_id} not in hand", error_code="CARD_NOT_IN_HAND")
        if not can_repel(pending.category, card):
            return ActionResult.failure(
                f"{card.name} cannot repel a {pending.category.value} attack",
                error_code="INVALID_TARGET",
            )
        cards.append(card)

    mana_cost = sum(card.mana_cost for card in cards)
    if defender.mana < mana_cost:
        return ActionResult.failure(
            f"Need {mana_cost} mana to repel", error_code="INSUFFICIENT_MANA",
        )

    if cards:
        used = {card.card_id for card in cards}
        defender = defender.copy_with(
            mana=defender.mana - mana_cost,
            hand=[c for c in defender.hand if c.card_id not in used],
        )
        state = state.with_player(defender)

    power = sum(card.value for card in cards)
    if power > pending.damage:
        reflected = power - pending.damage
        state = apply_damage(state, attacker.player_id, reflected)
        message = f"{defender.name} repelled the attack and reflected {reflected} damage to {attacker.name}"
    else:
        taken = pending.damage - power
        state = apply_damage(state, defender.player_id, taken)
        if cards:
            message = f"{defender.name} blocked {power} and took {taken} damage"
        else:
            message = f"{defender.name} took {taken} damage"

    state = state._copy_with(phase=TurnPhase.ACTION, pending_attack=None)
    state = state.with_log((LogKind.COMBAT, message))
    return ActionResult.success_with_state(check_winner(state), changes=[message])


def execute_card_effect(
    state: GameState,
    card: Card,
    target_player_id: str | None = None,
    rng: random.Random | None = None,
) -> GameState:
    """Play a card; returns state unchanged when the play is illegal."""
    return try_execute_card_effect(state, card, target_player_id, rng).state_or(state)


def execute_attack(
    state: GameState,
    card_ids: list[str],
    target_player_id: str,
    rng: random.Random | None = None,
) -> GameState:
    return try_execute_attack(state, card_ids, target_player_id, rng).state_or(state)


def resolve_attack(state: GameState, repel_card_ids: list[str] | None = None) -> GameState:
    return try_resolve_attack(state, repel_card_ids).state_or(state)
