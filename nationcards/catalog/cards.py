"""
Card definitions.

Catalog entries are templates: the engine never hands them out directly,
it calls Card.instance() so every copy in play has its own id.
"""

from __future__ import annotations

from ..engine_core.state import (
    Card, CardCategory, EffectKind, Rarity, Alignment, GameSettings,
)


def _card(
    catalog_id: str,
    name: str,
    category: CardCategory,
    cost: int,
    mana_cost: int,
    effect: EffectKind,
    value: int,
    rarity: Rarity = Rarity.COMMON,
    hp_cost: int = 0,
    alignment: Alignment | None = None,
    description: str = "",
) -> Card:
    return Card(
        card_id=catalog_id,
        catalog_id=catalog_id,
        name=name,
        category=category,
        cost=cost,
        mana_cost=mana_cost,
        effect=effect,
        value=value,
        hp_cost=hp_cost,
        rarity=rarity,
        alignment=alignment,
        description=description,
    )


C, R, E, L = Rarity.COMMON, Rarity.RARE, Rarity.EPIC, Rarity.LEGENDARY
HOLY, EVIL = Alignment.HOLY, Alignment.EVIL

IND = CardCategory.INDUSTRY
ATK = CardCategory.ATTACK
DEF = CardCategory.DEFENSE
MSL = CardCategory.MISSILE
MAG = CardCategory.MAGIC
CON = CardCategory.CONTRACT
ENC = CardCategory.ENCHANTMENT


CARDS: tuple[Card, ...] = (
    # Industry: placed into lands, adds value to income every turn
    _card("small_shop", "Market Stall", IND, 30, 0, EffectKind.INCOME, 5, C),
    _card("logging_camp", "Logging Camp", IND, 40, 0, EffectKind.INCOME, 6, C),
    _card("fishery", "Fishery", IND, 45, 0, EffectKind.INCOME, 7, C),
    _card("farm", "Wheat Farm", IND, 50, 0, EffectKind.INCOME, 8, C),
    _card("workshop", "Workshop", IND, 80, 0, EffectKind.INCOME, 12, R),
    _card("foundry", "Steel Foundry", IND, 90, 0, EffectKind.INCOME, 14, R),
    _card("mine", "Gold Mine", IND, 120, 0, EffectKind.INCOME, 18, E),
    _card("mint", "Royal Mint", IND, 180, 0, EffectKind.INCOME, 28, E),
    _card("bank_hq", "Bank Headquarters", IND, 250, 0, EffectKind.INCOME, 35, L),
    _card("stock_exchange", "Stock Exchange", IND, 300, 0, EffectKind.INCOME, 45, L),

    # Physical attacks
    _card("wpn_oak_staff", "Oak Staff", ATK, 15, 0, EffectKind.DAMAGE, 8, C),
    _card("wpn_rusty_dagger", "Rusty Dagger", ATK, 15, 0, EffectKind.DAMAGE, 8, C),
    _card("wpn_iron_sword", "Iron Sword", ATK, 20, 0, EffectKind.DAMAGE, 10, C),
    _card("wpn_spear", "Soldier Spear", ATK, 25, 0, EffectKind.DAMAGE, 12, C),
    _card("wpn_mace", "Flanged Mace", ATK, 30, 0, EffectKind.DAMAGE, 14, C),
    _card("wpn_silver_lance", "Silver Lance", ATK, 60, 5, EffectKind.DAMAGE, 20, R, alignment=HOLY),
    _card("wpn_blood_scythe", "Blood Scythe", ATK, 60, 5, EffectKind.DAMAGE, 20, R, alignment=EVIL),
    _card("wpn_warhammer", "Warhammer", ATK, 70, 10, EffectKind.DAMAGE, 24, R),
    _card("wpn_seraph_blade", "Seraph Blade", ATK, 150, 20, EffectKind.DAMAGE, 40, E, alignment=HOLY),
    _card("wpn_soul_reaper", "Soul Reaper", ATK, 150, 20, EffectKind.DAMAGE, 40, E, alignment=EVIL),
    _card("wpn_excalibur", "Excalibur", ATK, 350, 80, EffectKind.DAMAGE, 70, L, alignment=HOLY),

    # Missiles: random living enemy when no target is named
    _card("msl_throwing_knife", "Throwing Knife", MSL, 15, 0, EffectKind.DAMAGE, 8, C),
    _card("msl_javelin", "Javelin", MSL, 30, 0, EffectKind.DAMAGE, 14, C),
    _card("msl_ballista", "Ballista Bolt", MSL, 70, 10, EffectKind.DAMAGE, 25, R),
    _card("msl_meteor", "Meteor Strike", MSL, 200, 40, EffectKind.DAMAGE, 45, E),

    # Magic: elemental attacks, healing and mana
    _card("fire_bolt", "Fire Bolt", MAG, 40, 15, EffectKind.DAMAGE, 15, C, alignment=HOLY),
    _card("frost_burst", "Frost Burst", MAG, 80, 35, EffectKind.DAMAGE, 30, R, alignment=EVIL),
    _card("inferno", "Inferno", MAG, 150, 70, EffectKind.DAMAGE, 60, E, alignment=HOLY),
    _card("crimson_judgement", "Crimson Judgement", MAG, 300, 100, EffectKind.DAMAGE, 100, L, alignment=EVIL),
    _card("minor_heal", "Minor Heal", MAG, 20, 15, EffectKind.HEAL, 20, C, alignment=HOLY),
    _card("holy_light", "Holy Light", MAG, 60, 40, EffectKind.HEAL, 50, R, alignment=HOLY),
    _card("regeneration", "Regeneration", MAG, 150, 80, EffectKind.HEAL, 100, E, alignment=HOLY),
    _card("meditation", "Meditation", MAG, 20, 0, EffectKind.MANA, 30, C, alignment=HOLY),
    _card("elixir_of_life", "Elixir of Life", MAG, 200, 0, EffectKind.FULL_RESTORE_HP, 0, E),
    _card("ether_flask", "Ether Flask", MAG, 120, 0, EffectKind.FULL_RESTORE_MANA, 0, R),
    _card("phoenix_tear", "Phoenix Tear", MAG, 400, 0, EffectKind.FULL_RESTORE_ALL, 0, L, alignment=HOLY),

    # Defense: only usable to repel an incoming attack
    _card("def_wooden_shield", "Wooden Shield", DEF, 20, 0, EffectKind.BLOCK, 10, C),
    _card("def_iron_shield", "Iron Shield", DEF, 45, 0, EffectKind.BLOCK, 20, C),
    _card("def_tower_shield", "Tower Shield", DEF, 90, 5, EffectKind.BLOCK, 35, R),
    _card("def_aegis", "Aegis", DEF, 250, 20, EffectKind.BLOCK, 60, L, alignment=HOLY),

    # Blood contracts: pay HP for gold
    _card("pickpocket", "Blood Contract: Pickpocket", CON, 0, 0, EffectKind.GOLD_STEAL, 20, C, hp_cost=10, alignment=EVIL),
    _card("investment", "Blood Contract: Investment", CON, 0, 0, EffectKind.GOLD_GAIN, 100, R, hp_cost=25, alignment=EVIL),
    _card("dark_ritual", "Dark Ritual", CON, 0, 0, EffectKind.GOLD_GAIN, 200, E, hp_cost=50, alignment=EVIL),

    # Enchantments: occupy an artifact slot
    _card("ancient_coin", "Ancient Coin", ENC, 150, 0, EffectKind.EQUIP, 5, C, alignment=HOLY),
    _card("mana_crystal", "Mana Crystal", ENC, 200, 0, EffectKind.EQUIP, 10, R, alignment=HOLY),
    _card("cursed_idol", "Cursed Idol", ENC, 150, 0, EffectKind.EQUIP, 0, R, alignment=EVIL),
    _card("royal_crown", "Royal Crown", ENC, 600, 0, EffectKind.EQUIP, 50, L, alignment=HOLY),
)

_INDEX: dict[str, Card] = {card.catalog_id: card for card in CARDS}


def get_card(catalog_id: str) -> Card | None:
    """Look up a catalog entry by id."""
    return _INDEX.get(catalog_id)


def card_pool(settings: GameSettings | None = None) -> list[Card]:
    """
    Cards that can appear in the shop or be drawn.

    Block cards are only offered when the defense sub-phase is on,
    since they have no other use.
    """
    if settings is not None and settings.defense_phase:
        return list(CARDS)
    return [card for card in CARDS if card.effect != EffectKind.BLOCK]


def cards_by_rarity(settings: GameSettings | None = None) -> dict[Rarity, list[Card]]:
    pools: dict[Rarity, list[Card]] = {rarity: [] for rarity in Rarity}
    for card in card_pool(settings):
        pools[card.rarity].append(card)
    return pools
