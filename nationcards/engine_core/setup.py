"""
Game Setup - Initial state, shop offers and random draws.

All randomness comes from the caller's random.Random so tests can seed it.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
import math
import random

from .state import (
    GameState, GameSettings, Player, Card, Nation, Rarity, TurnPhase, LogKind,
    BASE_HP, BASE_INCOME,
)

_default_rng = random.Random()


@dataclass
class PlayerSeat:
    """Who sits at the table; supplied by the room layer."""
    player_id: str
    name: str
    nation: Nation
    is_human: bool = True
    bot_difficulty: str | None = None


def resolve_rng(rng: random.Random | None) -> random.Random:
    return rng if rng is not None else _default_rng


def rarity_weights_for_turn(settings: GameSettings, turn: int) -> dict[Rarity, int]:
    """Rarity weights, shifted toward rarer cards as the match goes on."""
    w = settings.rarity_weights
    common = w.get("common", 60)
    rare = w.get("rare", 30)
    epic = w.get("epic", 8)
    legendary = w.get("legendary", 2)

    if turn > 5:
        common, rare, epic, legendary = common - 10, rare + 5, epic + 4, legendary + 1
    if turn > 10:
        common, rare, epic, legendary = common - 10, rare - 5, epic + 10, legendary + 5
    if turn > 20:
        common, epic, legendary = common - 10, epic + 5, legendary + 5

    return {
        Rarity.COMMON: max(0, common),
        Rarity.RARE: max(0, rare),
        Rarity.EPIC: max(0, epic),
        Rarity.LEGENDARY: max(0, legendary),
    }


def draw_random_cards(
    count: int,
    turn: int,
    settings: GameSettings,
    rng: random.Random | None = None,
) -> list[Card]:
    """Draw count rarity-weighted card instances."""
    from ..catalog import cards_by_rarity

    rng = resolve_rng(rng)
    pools = cards_by_rarity(settings)
    weights = rarity_weights_for_turn(settings, turn)
    rarities = [r for r in Rarity if pools[r] and weights[r] > 0]
    if not rarities:
        rarities = [r for r in Rarity if pools[r]]
        weights = {r: 1 for r in rarities}

    drawn = []
    for _ in range(count):
        rarity = rng.choices(rarities, weights=[weights[r] for r in rarities])[0]
        drawn.append(rng.choice(pools[rarity]).instance(rng))
    return drawn


def generate_shop(
    settings: GameSettings,
    turn: int,
    rng: random.Random | None = None,
) -> list[Card]:
    """A fresh shop offer; prices carry the price multiplier."""
    rng = resolve_rng(rng)
    offer = draw_random_cards(settings.shop_size, turn, settings, rng)
    if settings.price_multiplier == 1:
        return offer
    return [
        replace(card, cost=math.floor(card.cost * settings.price_multiplier))
        for card in offer
    ]


def create_player(
    seat: PlayerSeat,
    settings: GameSettings,
    rng: random.Random | None = None,
) -> Player:
    """
    Build a starting player.

    Applies the nation's bonuses, gives the start card plus
    settings.initial_draw random cards. Every list is new.
    """
    from ..catalog import NATION_CONFIG, get_card

    rng = resolve_rng(rng)
    config = NATION_CONFIG[seat.nation]

    max_hp = math.floor((BASE_HP + config.hp_bonus) * settings.health_multiplier)
    mana = min(settings.max_mana, settings.initial_mana + config.mana_bonus)

    hand: list[Card] = []
    start_card = get_card(config.start_card_id)
    if start_card is not None:
        hand.append(start_card.instance(rng))
    hand.extend(draw_random_cards(settings.initial_draw, 1, settings, rng))

    return Player(
        player_id=seat.player_id,
        name=seat.name,
        nation=seat.nation,
        is_human=seat.is_human,
        hp=max_hp,
        max_hp=max_hp,
        mana=mana,
        max_mana=settings.max_mana,
        gold=settings.initial_gold + config.gold_bonus,
        income=BASE_INCOME + config.income_bonus,
        hand=hand[:settings.max_hand_size],
        bot_difficulty=seat.bot_difficulty,
    )


def create_initial_state(
    seats: list[PlayerSeat],
    settings: GameSettings | None = None,
    game_id: str | None = None,
    rng: random.Random | None = None,
) -> GameState:
    """
    Create the starting state for a match.

    turn=1, phase=ACTION, first seat to act, shop seeded,
    log holding a single init entry.
    """
    if not seats:
        raise ValueError("A game needs at least one player")
    settings = settings or GameSettings()
    rng = resolve_rng(rng)

    players = [create_player(seat, settings, rng) for seat in seats]
    state = GameState(
        game_id=game_id or f"game-{rng.getrandbits(32):08x}",
        players=players,
        turn=1,
        current_player_idx=0,
        phase=TurnPhase.ACTION,
        shop=generate_shop(settings, 1, rng),
        settings=settings,
    )
    names = ", ".join(p.name for p in players)
    return state.with_log((LogKind.INIT, f"Game started: {names}"))
