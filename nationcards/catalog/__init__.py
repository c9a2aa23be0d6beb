"""
Catalog - Static, read-only game data.

Provides:
- CARDS: every card definition, keyed by catalog id
- NATION_CONFIG: per-nation starting bonuses and start card
- GLOBAL_EVENTS: round events (blessing / catastrophe)
"""

from .cards import CARDS, get_card, cards_by_rarity, card_pool
from .nations import NationConfig, NATION_CONFIG
from .events import GlobalEvent, GLOBAL_EVENTS

__all__ = [
    "CARDS",
    "get_card",
    "cards_by_rarity",
    "card_pool",
    "NationConfig",
    "NATION_CONFIG",
    "GlobalEvent",
    "GLOBAL_EVENTS",
]
