"""
Nation table - starting bonuses per faction.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..engine_core.state import Nation


@dataclass(frozen=True)
class NationConfig:
    name: str
    description: str
    hp_bonus: int = 0
    mana_bonus: int = 0
    gold_bonus: int = 0
    income_bonus: int = 0
    start_card_id: str = ""


NATION_CONFIG: dict[Nation, NationConfig] = {
    Nation.FIGHTER: NationConfig(
        name="Fighter Kingdom",
        description="Born for battle. Extra HP and a starting weapon.",
        hp_bonus=50,
        start_card_id="wpn_iron_sword",
    ),
    Nation.HOLY: NationConfig(
        name="Holy See",
        description="Divine protection. Extra HP and mana, starts with a heal.",
        hp_bonus=30,
        mana_bonus=20,
        start_card_id="minor_heal",
    ),
    Nation.COMMERCIAL: NationConfig(
        name="Merchant Republic",
        description="Money rules. Large treasury and higher income.",
        mana_bonus=10,
        # Includes the merchant's extra 50 starting gold
        gold_bonus=150 + 50,
        income_bonus=10,
        start_card_id="small_shop",
    ),
    Nation.MAGIC: NationConfig(
        name="Arcane Dominion",
        description="Arcane mastery. Huge mana pool, fragile body.",
        hp_bonus=-10,
        mana_bonus=60,
        gold_bonus=20,
        start_card_id="fire_bolt",
    ),
}
