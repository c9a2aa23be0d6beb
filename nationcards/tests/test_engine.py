"""
Tests for the game engine (state transitions).

Tests:
- Card effects and combat
- Shop and bank economy
- Turn rotation, income and events
- Invariants over random play
"""

import random

import pytest

from ..engine_core.state import (
    GameSettings, CardCategory, EffectKind, Nation, TurnPhase, LogKind,
    MAX_LAND_SIZE, LOG_LIMIT,
)
from ..engine_core.action import Action
from ..engine_core.setup import PlayerSeat, create_initial_state, draw_random_cards
from ..engine_core.effect_resolver import execute_card_effect, execute_attack, try_execute_card_effect
from ..engine_core.reducer import (
    apply_action, next_turn, buy_card, sell_card, handle_bank_transaction, try_buy_card,
)
from ..engine_core.action_generator import legal_actions
from ..catalog import GLOBAL_EVENTS
from .conftest import make_card, make_player, make_state


class TestCombat:
    """Damage resolution and win detection."""

    def test_attack_reduces_target_hp(self, two_player_state):
        """A 20-damage attack takes a 50 HP target to 30."""
        state = execute_attack(two_player_state, ["sword#1"], "p2")

        target = state.get_player("p2")
        assert target.hp == 30
        assert not target.is_dead
        assert state.winner_id is None

    def test_card_effect_damage_matches_attack(self, two_player_state, sword):
        state = execute_card_effect(two_player_state, sword, "p2")

        assert state.get_player("p2").hp == 30
        assert state.get_player("p1").find_in_hand("sword#1") is None

    def test_lethal_damage_clamps_and_declares_winner(self, sword):
        """15 HP minus 20 damage is 0 HP, dead, and the attacker wins."""
        state = make_state(make_player("p1", hand=[sword]), make_player("p2", hp=15))

        state = execute_attack(state, ["sword#1"], "p2")

        target = state.get_player("p2")
        assert target.hp == 0
        assert target.is_dead
        assert state.winner_id == "p1"
        assert state.game_log[0].kind == LogKind.SYSTEM

    def test_no_winner_while_two_alive(self, sword):
        state = make_state(
            make_player("p1", hand=[sword]),
            make_player("p2", hp=15),
            make_player("p3"),
        )

        state = execute_attack(state, ["sword#1"], "p2")

        assert state.get_player("p2").is_dead
        assert state.winner_id is None

    def test_attack_records_last_action(self, two_player_state):
        state = execute_attack(two_player_state, ["sword#1"], "p2")

        event = state.last_action
        assert event.source_id == "p1"
        assert event.target_id == "p2"
        assert event.card_id == "sword"
        assert event.category == CardCategory.ATTACK
        assert state.played_categories == [CardCategory.ATTACK]

    def test_cannot_attack_dead_player(self, sword):
        state = make_state(
            make_player("p1", hand=[sword]),
            make_player("p2", hp=0, is_dead=True),
            make_player("p3"),
        )

        assert execute_attack(state, ["sword#1"], "p2") is state

    def test_missile_without_target_hits_living_enemy(self):
        """Untargeted missiles pick a random living enemy."""
        javelin = make_card("javelin#1", category=CardCategory.MISSILE, value=14)
        for seed in range(10):
            state = make_state(
                make_player("p1", hand=[javelin]),
                make_player("p2"),
                make_player("p3", hp=0, is_dead=True),
                make_player("p4"),
            )
            after = execute_card_effect(state, javelin, None, random.Random(seed))

            hit = [p for p in after.players if p.hp < 100 and not p.is_dead]
            assert len(hit) == 1
            assert hit[0].player_id in ("p2", "p4")
            assert hit[0].hp == 86

    def test_damage_multiplier(self, sword):
        state = make_state(
            make_player("p1", hand=[sword]),
            make_player("p2"),
            settings=GameSettings(damage_multiplier=1.5, event_frequency=0),
        )

        state = execute_attack(state, ["sword#1"], "p2")

        assert state.get_player("p2").hp == 70


class TestCardEffects:
    """Non-combat effects."""

    def test_heal_is_deterministic(self):
        """Same state and heal card give equal results."""
        heal = make_card("heal#1", CardCategory.MAGIC, EffectKind.HEAL, value=20, mana_cost=15)
        state = make_state(make_player("p1", hp=60, hand=[heal]), make_player("p2"))

        first = execute_card_effect(state, heal)
        second = execute_card_effect(state, heal)

        assert first == second
        assert first.get_player("p1").hp == 80
        assert first.get_player("p1").mana == 35
        # Input untouched
        assert state.get_player("p1").hp == 60

    def test_heal_caps_at_max_hp(self):
        heal = make_card("heal#1", CardCategory.MAGIC, EffectKind.HEAL, value=20)
        state = make_state(make_player("p1", hp=95, hand=[heal]), make_player("p2"))

        assert execute_card_effect(state, heal).get_player("p1").hp == 100

    def test_insufficient_mana_is_noop(self):
        """A card costing more mana than the actor has changes nothing."""
        spell = make_card("meteor#1", CardCategory.MAGIC, EffectKind.DAMAGE, value=45, mana_cost=80)
        state = make_state(make_player("p1", mana=50, hand=[spell]), make_player("p2"))
        snapshot = state.clone()

        after = execute_card_effect(state, spell, "p2")

        assert after == snapshot
        result = try_execute_card_effect(state, spell, "p2")
        assert not result.success
        assert result.error_code == "INSUFFICIENT_MANA"

    def test_gold_steal_conserves_gold(self):
        """Stolen gold moves from target to actor, capped by what the target has."""
        steal = make_card("steal#1", CardCategory.CONTRACT, EffectKind.GOLD_STEAL, value=20)
        for target_gold in (100, 15, 0):
            state = make_state(
                make_player("p1", gold=100, hand=[steal]),
                make_player("p2", gold=target_gold),
            )
            before = state.get_player("p1").gold + state.get_player("p2").gold

            after = execute_card_effect(state, steal, "p2")

            actor, target = after.get_player("p1"), after.get_player("p2")
            assert actor.gold + target.gold == before
            assert actor.gold - 100 == min(target_gold, 20)

    def test_hp_cost_is_paid(self):
        pact = make_card("pact#1", CardCategory.CONTRACT, EffectKind.GOLD_GAIN, value=50, hp_cost=10)
        state = make_state(make_player("p1", hand=[pact]), make_player("p2"))

        player = execute_card_effect(state, pact).get_player("p1")

        assert player.hp == 90
        assert player.gold == 150

    def test_hp_cost_cannot_be_lethal(self):
        pact = make_card("pact#1", CardCategory.CONTRACT, EffectKind.GOLD_GAIN, value=50, hp_cost=10)
        state = make_state(make_player("p1", hp=10, hand=[pact]), make_player("p2"))

        assert execute_card_effect(state, pact) is state

    def test_income_card_builds_land(self):
        farm = make_card("farm#1", CardCategory.INDUSTRY, EffectKind.INCOME, value=8)
        state = make_state(make_player("p1", hand=[farm]), make_player("p2"))

        player = execute_card_effect(state, farm).get_player("p1")

        assert [c.card_id for c in player.lands] == ["farm#1"]
        assert player.land_income == 8
        assert player.hand == []

    def test_income_card_consumed_when_lands_full(self):
        lands = [
            make_card(f"farm#{i}", CardCategory.INDUSTRY, EffectKind.INCOME, value=8)
            for i in range(MAX_LAND_SIZE)
        ]
        extra = make_card("farm#x", CardCategory.INDUSTRY, EffectKind.INCOME, value=8)
        state = make_state(make_player("p1", hand=[extra], lands=lands), make_player("p2"))

        player = execute_card_effect(state, extra).get_player("p1")

        assert len(player.lands) == MAX_LAND_SIZE
        assert player.hand == []

    def test_one_play_per_category(self, sword):
        second = make_card("sword#2")
        state = make_state(make_player("p1", hand=[sword, second]), make_player("p2"))

        state = execute_attack(state, ["sword#1"], "p2")

        assert execute_attack(state, ["sword#2"], "p2") is state

    def test_block_cards_cannot_be_played(self):
        shield = make_card("shield#1", CardCategory.DEFENSE, EffectKind.BLOCK, value=20)
        state = make_state(make_player("p1", hand=[shield]), make_player("p2"))

        result = try_execute_card_effect(state, shield)

        assert not result.success
        assert result.error_code == "WRONG_PHASE"


class TestEconomy:
    """Shop and bank."""

    def test_purchase_rejected_without_gold(self):
        """Gold 10 cannot buy a 50-gold card."""
        offer = make_card("farm#shop", CardCategory.INDUSTRY, EffectKind.INCOME, value=8, cost=50)
        state = make_state(make_player("p1", gold=10), make_player("p2"), shop=[offer])

        after = buy_card(state, offer)

        assert after is state
        assert after.get_player("p1").gold == 10
        assert len(after.get_player("p1").hand) == 0

    def test_purchase_moves_card_to_hand(self, rng):
        offer = make_card("farm#shop", CardCategory.INDUSTRY, EffectKind.INCOME, value=8, cost=50)
        state = make_state(make_player("p1", gold=100), make_player("p2"), shop=[offer])

        after = buy_card(state, offer, rng)

        player = after.get_player("p1")
        assert player.gold == 50
        assert len(player.hand) == 1
        assert player.hand[0].catalog_id == "farm"
        assert player.hand[0].card_id != offer.card_id
        assert player.has_purchased_in_shop
        assert after.shop == []
        assert after.game_log[0].kind == LogKind.ECONOMY

    def test_one_purchase_per_turn(self, rng):
        offers = [
            make_card("farm#a", CardCategory.INDUSTRY, EffectKind.INCOME, value=8, cost=10),
            make_card("farm#b", CardCategory.INDUSTRY, EffectKind.INCOME, value=8, cost=10),
        ]
        state = make_state(make_player("p1"), make_player("p2"), shop=offers)

        state = buy_card(state, offers[0], rng)
        result = try_buy_card(state, offers[1], rng)

        assert not result.success
        assert result.error_code == "PURCHASE_LIMIT"

    def test_purchase_rejected_when_hand_full(self, rng):
        offer = make_card("farm#shop", CardCategory.INDUSTRY, EffectKind.INCOME, cost=10)
        hand = [make_card(f"sword#{i}") for i in range(3)]
        state = make_state(
            make_player("p1", hand=hand),
            make_player("p2"),
            shop=[offer],
            settings=GameSettings(max_hand_size=3, event_frequency=0),
        )

        assert buy_card(state, offer, rng) is state

    def test_sell_refunds_half_price(self):
        card = make_card("mace#1", cost=31)
        state = make_state(make_player("p1", hand=[card]), make_player("p2"))

        player = sell_card(state, card).get_player("p1")

        assert player.gold == 115
        assert player.hand == []

    def test_bank_round_trip(self):
        """Deposit 50 then withdraw 50 leaves gold and deposit as they were."""
        state = make_state(make_player("p1", gold=100, deposit=0), make_player("p2"))

        deposited = handle_bank_transaction(state, 50)
        assert deposited.get_player("p1").gold == 50
        assert deposited.get_player("p1").deposit == 50

        final = handle_bank_transaction(deposited, -50)
        assert final.get_player("p1").gold == 100
        assert final.get_player("p1").deposit == 0

    def test_bank_rejects_overdraft(self):
        state = make_state(make_player("p1", gold=100, deposit=20), make_player("p2"))

        assert handle_bank_transaction(state, 150) is state
        assert handle_bank_transaction(state, -30) is state
        assert handle_bank_transaction(state, 0) is state

    def test_bank_does_not_log(self):
        state = make_state(make_player("p1"), make_player("p2"))

        assert handle_bank_transaction(state, 10).game_log == state.game_log


class TestTurnRotation:
    """next_turn: rotation, turn counter, income, events."""

    def test_skips_dead_players(self, rng):
        state = make_state(
            make_player("p1"),
            make_player("p2", hp=0, is_dead=True),
            make_player("p3", hp=0, is_dead=True),
            make_player("p4"),
        )

        state = next_turn(state, rng)
        assert state.current_player.player_id == "p4"
        assert state.turn == 1

        state = next_turn(state, rng)
        assert state.current_player.player_id == "p1"
        assert state.turn == 2

    def test_turn_increments_only_on_wraparound(self, rng):
        state = make_state(make_player("p1"), make_player("p2"), make_player("p3"))

        turns = []
        for _ in range(6):
            state = next_turn(state, rng)
            turns.append((state.current_player_idx, state.turn))

        assert turns == [(1, 1), (2, 1), (0, 2), (1, 2), (2, 2), (0, 3)]

    def test_income_interest_and_mana(self, rng):
        land = make_card("farm#1", CardCategory.INDUSTRY, EffectKind.INCOME, value=8)
        state = make_state(
            make_player("p1"),
            make_player("p2", gold=0, deposit=100, mana=90, lands=[land]),
            settings=GameSettings(event_frequency=0, cards_draw_per_turn=0),
        )

        player = next_turn(state, rng).get_player("p2")

        # 20 base + 8 land + 5 interest
        assert player.gold == 33
        assert player.mana == 100

    def test_draws_respect_hand_cap(self, rng):
        hand = [make_card(f"sword#{i}") for i in range(3)]
        state = make_state(
            make_player("p1"),
            make_player("p2", hand=hand[:2]),
            settings=GameSettings(max_hand_size=3, cards_draw_per_turn=2, event_frequency=0),
        )

        assert len(next_turn(state, rng).get_player("p2").hand) == 3

    def test_resets_turn_state(self, two_player_state, rng):
        state = execute_attack(two_player_state, ["sword#1"], "p2")

        state = next_turn(state, rng)

        assert state.played_categories == []
        assert state.last_action is None
        assert state.game_log[0].kind == LogKind.TURN

    def test_shop_refreshes_on_wraparound_only(self, rng):
        offer = make_card("farm#shop", CardCategory.INDUSTRY, EffectKind.INCOME)
        state = make_state(make_player("p1"), make_player("p2"), shop=[offer])

        state = next_turn(state, rng)
        assert state.shop == [offer]

        state = next_turn(state, rng)
        assert state.shop != [offer]
        assert len(state.shop) == state.settings.shop_size

    def test_global_event_on_frequency(self, rng):
        state = make_state(
            make_player("p1"),
            make_player("p2"),
            current_player_idx=1,
            settings=GameSettings(event_frequency=2),
        )

        state = next_turn(state, rng)

        assert state.turn == 2
        assert state.event_message in {event.message for event in GLOBAL_EVENTS}
        assert state.game_log[1].kind == LogKind.EVENT

    @pytest.mark.parametrize("event", GLOBAL_EVENTS, ids=lambda e: e.kind)
    def test_global_event_effects(self, event):
        class FixedEvent(random.Random):
            def choice(self, seq):
                return event if seq is GLOBAL_EVENTS else super().choice(seq)

        state = make_state(
            make_player("p1"),
            make_player("p2", hp=90, mana=10),
            make_player("p3", hp=0, mana=40, is_dead=True),
            make_player("p4"),
            current_player_idx=3,
            settings=GameSettings(event_frequency=2),
        )

        state = next_turn(state, FixedEvent(8))

        assert state.event_message == event.message
        p2 = state.get_player("p2")
        if event.kind == "blessing":
            # +20 capped at max HP
            assert (p2.hp, p2.mana) == (100, 10)
        else:
            # -20 floored at zero
            assert (p2.hp, p2.mana) == (90, 0)
        fallen = state.get_player("p3")
        assert (fallen.hp, fallen.mana, fallen.is_dead) == (0, 40, True)

    def test_global_events_bounded(self):
        blessing, catastrophe = GLOBAL_EVENTS
        player = make_player("p1", hp=30, max_hp=100, mana=50)

        assert blessing.apply(player).hp == 50
        assert catastrophe.apply(player).mana == 30
        assert blessing.apply(make_player("p1", hp=95)).hp == 100
        assert catastrophe.apply(make_player("p1", mana=5)).mana == 0

    def test_turn_limit_ends_game(self, rng):
        state = make_state(
            make_player("p1", hp=40),
            make_player("p2", hp=70),
            current_player_idx=1,
            turn=3,
            settings=GameSettings(max_turns=3, event_frequency=0),
        )

        state = next_turn(state, rng)

        assert state.winner_id == "p2"

    def test_log_is_capped(self):
        state = make_state(make_player("p1"), make_player("p2"))
        for i in range(LOG_LIMIT + 10):
            state = state.with_log((LogKind.SYSTEM, f"entry {i}"))

        assert len(state.game_log) == LOG_LIMIT
        assert state.game_log[0].message == f"entry {LOG_LIMIT + 9}"


class TestDefensePhase:
    """Attack / repel / take damage."""

    @pytest.fixture
    def defense_state(self, sword):
        shield = make_card("shield#1", CardCategory.DEFENSE, EffectKind.BLOCK, value=30)
        buckler = make_card("buckler#1", CardCategory.DEFENSE, EffectKind.BLOCK, value=10)
        return make_state(
            make_player("p1", hand=[sword]),
            make_player("p2", hp=50, hand=[shield, buckler]),
            settings=GameSettings(defense_phase=True, event_frequency=0),
        )

    def test_attack_enters_defense(self, defense_state):
        result = apply_action(defense_state, Action.attack("p1", ["sword#1"], "p2"))

        state = result.new_state
        assert result.success
        assert state.phase == TurnPhase.DEFENSE
        assert state.pending_attack.damage == 20
        assert state.acting_player.player_id == "p2"
        assert state.get_player("p2").hp == 50

    def test_take_damage(self, defense_state):
        state = apply_action(defense_state, Action.attack("p1", ["sword#1"], "p2")).new_state

        state = apply_action(state, Action.take_damage("p2")).new_state

        assert state.get_player("p2").hp == 30
        assert state.phase == TurnPhase.ACTION
        assert state.pending_attack is None

    def test_repel_reflects_excess(self, defense_state):
        state = apply_action(defense_state, Action.attack("p1", ["sword#1"], "p2")).new_state

        state = apply_action(state, Action.repel("p2", ["shield#1"])).new_state

        assert state.get_player("p2").hp == 50
        assert state.get_player("p1").hp == 90
        assert state.get_player("p2").find_in_hand("shield#1") is None

    def test_partial_block(self, defense_state):
        state = apply_action(defense_state, Action.attack("p1", ["sword#1"], "p2")).new_state

        state = apply_action(state, Action.repel("p2", ["buckler#1"])).new_state

        assert state.get_player("p2").hp == 40

    def test_attacker_cannot_act_during_defense(self, defense_state):
        state = apply_action(defense_state, Action.attack("p1", ["sword#1"], "p2")).new_state

        result = apply_action(state, Action.end_turn("p1"))

        assert not result.success
        assert result.error_code == "NOT_YOUR_TURN"

    def test_attacker_killed_by_reflection_can_only_end_turn(self):
        sword = make_card("sword#1", value=20)
        farm = make_card("farm#1", CardCategory.INDUSTRY, EffectKind.INCOME, value=8)
        shield = make_card("shield#1", CardCategory.DEFENSE, EffectKind.BLOCK, value=40)
        state = make_state(
            make_player("p1", hp=10, hand=[sword, farm]),
            make_player("p2", hand=[shield]),
            make_player("p3"),
            settings=GameSettings(defense_phase=True, event_frequency=0),
        )
        state = apply_action(state, Action.attack("p1", ["sword#1"], "p2")).new_state
        state = apply_action(state, Action.repel("p2", ["shield#1"])).new_state

        assert state.get_player("p1").is_dead
        assert state.winner_id is None
        assert [a.label() for a in legal_actions(state)] == ["end_turn"]
        assert execute_card_effect(state, farm) is state

        state = apply_action(state, Action.end_turn("p1")).new_state
        assert state.current_player.player_id == "p2"

    def test_missile_cannot_be_repelled_by_weapon(self):
        javelin = make_card("javelin#1", category=CardCategory.MISSILE, value=14)
        dagger = make_card("dagger#1", value=30)
        state = make_state(
            make_player("p1", hand=[javelin]),
            make_player("p2", hand=[dagger]),
            settings=GameSettings(defense_phase=True, event_frequency=0),
        )
        state = apply_action(state, Action.attack("p1", ["javelin#1"], "p2")).new_state

        result = apply_action(state, Action.repel("p2", ["dagger#1"]))

        assert not result.success
        assert result.error_code == "INVALID_TARGET"


class TestReducer:
    """Tagged action dispatch."""

    def test_wrong_player_rejected(self, two_player_state):
        result = apply_action(two_player_state, Action.end_turn("p2"))

        assert not result.success
        assert result.error_code == "NOT_YOUR_TURN"

    def test_success_advances_clock(self, two_player_state):
        result = apply_action(two_player_state, Action.attack("p1", ["sword#1"], "p2"))

        assert result.success
        assert result.new_state.clock > two_player_state.clock
        assert result.state_changes

    def test_unknown_card_rejected(self, two_player_state):
        result = apply_action(two_player_state, Action.play_card("p1", "nope"))

        assert result.error_code == "CARD_NOT_IN_HAND"

    def test_actions_after_game_over_rejected(self, sword):
        state = make_state(make_player("p1", hand=[sword]), make_player("p2", hp=15))
        state = execute_attack(state, ["sword#1"], "p2")

        result = apply_action(state, Action.end_turn("p1"))

        assert result.error_code == "GAME_OVER"


class TestSetup:
    """Initial state creation."""

    def test_initial_state(self, initial_state):
        assert initial_state.turn == 1
        assert initial_state.phase == TurnPhase.ACTION
        assert initial_state.current_player_idx == 0
        assert len(initial_state.shop) == 3
        assert len(initial_state.game_log) == 1
        assert initial_state.game_log[0].kind == LogKind.INIT

    def test_nation_bonuses_and_start_card(self, rng):
        seats = [
            PlayerSeat("a", "A", Nation.FIGHTER),
            PlayerSeat("b", "B", Nation.COMMERCIAL),
        ]
        state = create_initial_state(seats, GameSettings(), rng=rng)

        fighter, merchant = state.players
        assert fighter.max_hp == 150
        assert fighter.hp == 150
        assert fighter.hand[0].catalog_id == "wpn_iron_sword"
        assert merchant.gold == 300
        assert merchant.hand[0].catalog_id == "small_shop"
        assert len(fighter.hand) == 3

    def test_players_are_independent(self, initial_state):
        a, b = initial_state.players
        assert a.hand is not b.hand
        assert a.lands is not b.lands

    def test_card_instances_are_unique(self, initial_state):
        ids = [c.card_id for p in initial_state.players for c in p.hand]
        ids += [c.card_id for c in initial_state.shop]
        assert len(ids) == len(set(ids))

    def test_no_block_cards_without_defense_phase(self, rng):
        cards = draw_random_cards(300, 25, GameSettings(), rng)

        assert all(card.effect != EffectKind.BLOCK for card in cards)

    def test_seeded_setup_is_reproducible(self, seats):
        a = create_initial_state(seats, GameSettings(), game_id="g", rng=random.Random(7))
        b = create_initial_state(seats, GameSettings(), game_id="g", rng=random.Random(7))

        assert a == b

    def test_clone_is_independent(self, initial_state):
        clone = initial_state.clone()
        clone.players[0].hand.clear()
        clone.shop.pop()

        assert initial_state.players[0].hand
        assert len(initial_state.shop) == 3


class TestInvariants:
    """Bounds hold over random legal play."""

    @pytest.mark.parametrize("defense_phase", [False, True])
    def test_bounds_over_random_play(self, defense_phase):
        rng = random.Random(99)
        settings = GameSettings(defense_phase=defense_phase, max_hand_size=8)
        seats = [
            PlayerSeat("p1", "P1", Nation.FIGHTER),
            PlayerSeat("p2", "P2", Nation.MAGIC),
            PlayerSeat("p3", "P3", Nation.HOLY),
        ]
        state = create_initial_state(seats, settings, rng=rng)

        for _ in range(400):
            actions = legal_actions(state)
            if not actions:
                break
            result = apply_action(state, rng.choice(actions), rng)
            # The enumerator never offers an action the engine rejects
            assert result.success, result.error
            state = result.new_state

            for p in state.players:
                assert 0 <= p.hp <= p.max_hp
                assert 0 <= p.mana <= p.max_mana
                assert len(p.hand) <= settings.max_hand_size
                assert len(p.lands) <= MAX_LAND_SIZE
            assert len(state.game_log) <= LOG_LIMIT
