"""
Pytest fixtures for Nation Cards tests.
"""

import random

import pytest

from ..engine_core.state import (
    GameState, GameSettings, Player, Card, CardCategory, EffectKind, Nation,
)
from ..engine_core.setup import PlayerSeat, create_initial_state


def make_card(
    card_id: str,
    category: CardCategory = CardCategory.ATTACK,
    effect: EffectKind = EffectKind.DAMAGE,
    value: int = 20,
    mana_cost: int = 0,
    cost: int = 20,
    hp_cost: int = 0,
) -> Card:
    """A card instance whose catalog id is its id without the suffix."""
    return Card(
        card_id=card_id,
        catalog_id=card_id.split("#")[0],
        name=card_id.split("#")[0].replace("_", " ").title(),
        category=category,
        cost=cost,
        mana_cost=mana_cost,
        effect=effect,
        value=value,
        hp_cost=hp_cost,
    )


def make_player(player_id: str, hand=None, **overrides) -> Player:
    fields = dict(
        player_id=player_id,
        name=player_id.upper(),
        nation=Nation.FIGHTER,
        hp=100,
        max_hp=100,
        mana=50,
        max_mana=100,
        gold=100,
        hand=list(hand or []),
    )
    fields.update(overrides)
    return Player(**fields)


def make_state(*players: Player, **overrides) -> GameState:
    fields = dict(
        game_id="test_game",
        players=list(players),
        settings=GameSettings(event_frequency=0),
    )
    fields.update(overrides)
    return GameState(**fields)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(1234)


@pytest.fixture
def sword() -> Card:
    return make_card("sword#1", value=20)


@pytest.fixture
def two_player_state(sword) -> GameState:
    """p1 (holding a 20-damage sword) to act against p2 at 50 HP."""
    return make_state(
        make_player("p1", hand=[sword]),
        make_player("p2", hp=50),
    )


@pytest.fixture
def seats() -> list[PlayerSeat]:
    """One human and one bot."""
    return [
        PlayerSeat(player_id="human", name="Human", nation=Nation.FIGHTER),
        PlayerSeat(player_id="bot1", name="Bot", nation=Nation.MAGIC, is_human=False),
    ]


@pytest.fixture
def initial_state(seats, rng) -> GameState:
    """Freshly created state from the catalog."""
    return create_initial_state(seats, GameSettings(), game_id="test_game", rng=rng)
