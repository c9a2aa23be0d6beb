"""
Action Generator - Generates all legal actions from a game state.

The action generator is used by:
1. Bots and the search to enumerate possible moves
2. UI to show available actions
3. Validation (is this action in legal_actions?)

Design: generates fully specified Action objects, and never one the
engine would reject. Selling and banking are interactive-only and
are not enumerated.
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import (
    GameState, Player, Card, EffectKind, TurnPhase, MAX_LAND_SIZE, MAX_ARTIFACT_SIZE,
)
from .action import Action
from .effect_resolver import can_repel


@dataclass
class ActionGenerator:
    """
    Generates legal actions for the player entitled to act.

    During the action phase that is the current player; during a
    defense sub-phase it is the target of the pending attack.
    """

    def generate(self, state: GameState) -> list[Action]:
        """
        Generate all legal actions.

        Returns a list of fully-specified Action objects.
        """
        if state.winner_id is not None or not state.players:
            return []

        if state.phase == TurnPhase.DEFENSE:
            return self._generate_defense_actions(state)

        if state.phase != TurnPhase.ACTION:
            return []

        player = state.current_player
        actions = [Action.end_turn(player.player_id)]
        # Killed by a reflected attack on their own turn
        if player.is_dead:
            return actions

        if len(state.played_categories) < state.settings.max_plays_per_turn:
            actions.extend(self._generate_play_actions(state, player))
            actions.extend(self._generate_attack_actions(state, player))
        actions.extend(self._generate_buy_actions(state, player))

        return actions

    def _is_affordable(self, state: GameState, player: Player, card: Card) -> bool:
        if card.category in state.played_categories:
            return False
        if card.mana_cost > player.mana:
            return False
        if card.hp_cost > 0 and player.hp <= card.hp_cost:
            return False
        return True

    def _generate_play_actions(self, state: GameState, player: Player) -> list[Action]:
        """Non-attack plays that would change something."""
        actions = []
        enemies = state.living_enemies(player.player_id)
        for card in player.hand:
            if card.is_damage or card.effect == EffectKind.BLOCK:
                continue
            if not self._is_affordable(state, player, card):
                continue

            effect = card.effect
            if effect == EffectKind.INCOME and len(player.lands) >= MAX_LAND_SIZE:
                continue
            if effect == EffectKind.EQUIP and len(player.artifacts) >= MAX_ARTIFACT_SIZE:
                continue
            if effect in (EffectKind.HEAL, EffectKind.FULL_RESTORE_HP) and player.hp >= player.max_hp:
                continue
            if effect in (EffectKind.MANA, EffectKind.FULL_RESTORE_MANA) and player.mana >= player.max_mana:
                continue
            if (
                effect == EffectKind.FULL_RESTORE_ALL
                and player.hp >= player.max_hp
                and player.mana >= player.max_mana
            ):
                continue

            if effect == EffectKind.GOLD_STEAL:
                for enemy in enemies:
                    actions.append(Action.play_card(player.player_id, card.card_id, enemy.player_id))
            else:
                actions.append(Action.play_card(player.player_id, card.card_id))
        return actions

    def _generate_attack_actions(self, state: GameState, player: Player) -> list[Action]:
        """One attack per damage card and living enemy."""
        actions = []
        enemies = state.living_enemies(player.player_id)
        for card in player.hand:
            if not card.is_damage or not self._is_affordable(state, player, card):
                continue
            for enemy in enemies:
                actions.append(Action.attack(player.player_id, [card.card_id], enemy.player_id))
        return actions

    def _generate_buy_actions(self, state: GameState, player: Player) -> list[Action]:
        if player.has_purchased_in_shop:
            return []
        if len(player.hand) >= state.settings.max_hand_size:
            return []
        return [
            Action.buy_card(player.player_id, card.card_id)
            for card in state.shop
            if card.cost <= player.gold
        ]

    def _generate_defense_actions(self, state: GameState) -> list[Action]:
        """Take the hit, or repel with any single compatible card."""
        pending = state.pending_attack
        if pending is None:
            return []
        defender = state.get_player(pending.target_id)
        if defender is None:
            return []

        actions = [Action.take_damage(defender.player_id)]
        for card in defender.hand:
            if can_repel(pending.category, card) and card.mana_cost <= defender.mana:
                actions.append(Action.repel(defender.player_id, [card.card_id]))
        return actions


def legal_actions(state: GameState) -> list[Action]:
    """
    Convenience function to get legal actions.

    Creates an ActionGenerator and generates actions.
    """
    generator = ActionGenerator()
    return generator.generate(state)


def acting_player(state: GameState) -> Player:
    """The player whose decision is pending (the defender during DEFENSE)."""
    return state.acting_player


def is_legal(state: GameState, action: Action) -> bool:
    """Check if a specific action is legal."""
    for a in legal_actions(state):
        if (
            a.action_type == action.action_type
            and a.payload.player_id == action.payload.player_id
            and a.payload.card_id == action.payload.card_id
            and a.payload.card_ids == action.payload.card_ids
            and a.payload.target_player_id == action.payload.target_player_id
        ):
            return True
    return False

