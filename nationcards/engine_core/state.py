"""
Game State - Cards, players and the full match snapshot.

Design principles:
- Immutable-friendly: engine functions return new state, never edit in place
- Serializable: every record has to_dict() for snapshots and broadcasts
- Deterministic: timestamps come from a logical clock, not wall time
- Cloneable: clone() is a full structural copy, safe for speculative search
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from copy import deepcopy
from enum import Enum
from typing import Any
import random


MAX_LAND_SIZE = 5
MAX_ARTIFACT_SIZE = 3
LOG_LIMIT = 50
BANK_INTEREST_RATE = 0.05
BASE_HP = 100
BASE_INCOME = 20
SOUL_LIMIT = 3


class CardCategory(Enum):
    """Card types. One play per category per turn."""
    INDUSTRY = "industry"
    ATTACK = "attack"
    DEFENSE = "defense"
    MISSILE = "missile"
    MAGIC = "magic"
    CONTRACT = "contract"
    ENCHANTMENT = "enchantment"


class EffectKind(Enum):
    """What a card does when it resolves."""
    DAMAGE = "damage"
    HEAL = "heal"
    MANA = "mana"
    INCOME = "income"
    GOLD_GAIN = "gold_gain"
    GOLD_STEAL = "gold_steal"
    FULL_RESTORE_HP = "full_restore_hp"
    FULL_RESTORE_MANA = "full_restore_mana"
    FULL_RESTORE_ALL = "full_restore_all"
    EQUIP = "equip"
    BLOCK = "block"  # Only usable to repel an incoming attack


class Rarity(Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class Alignment(Enum):
    HOLY = "holy"
    EVIL = "evil"


class Nation(Enum):
    """The four factions a player can pick."""
    FIGHTER = "fighter"
    HOLY = "holy"
    COMMERCIAL = "commercial"
    MAGIC = "magic"


class TurnPhase(Enum):
    START = "start"
    ACTION = "action"
    DEFENSE = "defense"
    END = "end"


class LogKind(Enum):
    INIT = "init"
    TURN = "turn"
    EVENT = "event"
    ACTION = "action"
    COMBAT = "combat"
    ECONOMY = "economy"
    SYSTEM = "system"


@dataclass(frozen=True)
class Card:
    """
    A card definition or a drawn/bought instance of one.

    Catalog entries have card_id == catalog_id. Instances in a hand,
    land row or shop get a fresh card_id so duplicates stay distinct.
    """
    card_id: str
    catalog_id: str
    name: str
    category: CardCategory
    cost: int
    mana_cost: int
    effect: EffectKind
    value: int
    hp_cost: int = 0
    rarity: Rarity = Rarity.COMMON
    alignment: Alignment | None = None
    description: str = ""

    @property
    def is_damage(self) -> bool:
        return self.effect == EffectKind.DAMAGE

    def instance(self, rng: random.Random) -> Card:
        """Return a copy with a freshly generated unique id."""
        return replace(self, card_id=f"{self.catalog_id}#{rng.getrandbits(48):012x}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "card_id": self.card_id,
            "catalog_id": self.catalog_id,
            "name": self.name,
            "category": self.category.value,
            "cost": self.cost,
            "mana_cost": self.mana_cost,
            "effect": self.effect.value,
            "value": self.value,
            "hp_cost": self.hp_cost,
            "rarity": self.rarity.value,
            "alignment": self.alignment.value if self.alignment else None,
            "description": self.description,
        }


@dataclass
class Player:
    """
    State for a single seat.

    Invariants kept by the engine:
    0 <= hp <= max_hp, 0 <= mana <= max_mana,
    len(hand) <= settings.max_hand_size, len(lands) <= MAX_LAND_SIZE,
    len(artifacts) <= MAX_ARTIFACT_SIZE.
    """
    player_id: str
    name: str
    nation: Nation
    hp: int
    max_hp: int
    mana: int
    max_mana: int
    gold: int
    income: int = BASE_INCOME
    deposit: int = 0
    is_human: bool = True
    hand: list[Card] = field(default_factory=list)
    lands: list[Card] = field(default_factory=list)
    artifacts: list[Card] = field(default_factory=list)
    is_dead: bool = False
    soul: int = 0
    has_purchased_in_shop: bool = False
    bot_difficulty: str | None = None

    @property
    def is_alive(self) -> bool:
        return not self.is_dead

    @property
    def land_income(self) -> int:
        return sum(card.value for card in self.lands)

    def find_in_hand(self, card_id: str) -> Card | None:
        """Find a hand card by instance id."""
        for card in self.hand:
            if card.card_id == card_id:
                return card
        return None

    def copy_with(self, **changes) -> Player:
        """Return a new player with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "nation": self.nation.value,
            "is_human": self.is_human,
            "hp": self.hp,
            "max_hp": self.max_hp,
            "mana": self.mana,
            "max_mana": self.max_mana,
            "gold": self.gold,
            "income": self.income,
            "deposit": self.deposit,
            "hand": [c.to_dict() for c in self.hand],
            "lands": [c.to_dict() for c in self.lands],
            "artifacts": [c.to_dict() for c in self.artifacts],
            "is_dead": self.is_dead,
            "soul": self.soul,
            "has_purchased_in_shop": self.has_purchased_in_shop,
            "bot_difficulty": self.bot_difficulty,
        }


@dataclass
class GameSettings:
    """
    Rules configuration, fixed once the match starts.

    The engine only reads these values.
    """
    initial_gold: int = 100
    initial_mana: int = 50
    max_players: int = 4
    bot_count: int = 1
    bot_difficulty: str = "normal"
    cards_draw_per_turn: int = 2
    income_multiplier: float = 1.0
    event_frequency: int = 5
    max_mana: int = 100
    max_hand_size: int = 12
    is_multiplayer: bool = False
    shop_size: int = 3
    health_multiplier: float = 1.0
    damage_multiplier: float = 1.0
    price_multiplier: float = 1.0
    mana_regen_per_turn: int = 15
    max_plays_per_turn: int = 3
    initial_draw: int = 2
    max_turns: int = 100
    defense_phase: bool = False
    rarity_weights: dict[str, int] = field(default_factory=lambda: {
        "common": 60,
        "rare": 30,
        "epic": 8,
        "legendary": 2,
    })

    def to_dict(self) -> dict[str, Any]:
        return {
            "initial_gold": self.initial_gold,
            "initial_mana": self.initial_mana,
            "max_players": self.max_players,
            "bot_count": self.bot_count,
            "bot_difficulty": self.bot_difficulty,
            "cards_draw_per_turn": self.cards_draw_per_turn,
            "income_multiplier": self.income_multiplier,
            "event_frequency": self.event_frequency,
            "max_mana": self.max_mana,
            "max_hand_size": self.max_hand_size,
            "is_multiplayer": self.is_multiplayer,
            "shop_size": self.shop_size,
            "health_multiplier": self.health_multiplier,
            "damage_multiplier": self.damage_multiplier,
            "price_multiplier": self.price_multiplier,
            "mana_regen_per_turn": self.mana_regen_per_turn,
            "max_plays_per_turn": self.max_plays_per_turn,
            "initial_draw": self.initial_draw,
            "max_turns": self.max_turns,
            "defense_phase": self.defense_phase,
            "rarity_weights": dict(self.rarity_weights),
        }


@dataclass(frozen=True)
class LogEntry:
    entry_id: str
    turn: int
    kind: LogKind
    message: str
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "turn": self.turn,
            "kind": self.kind.value,
            "message": self.message,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ActionEvent:
    """Structured description of the last resolved play, for animation."""
    source_id: str
    card_id: str
    category: CardCategory
    timestamp: int
    target_id: str | None = None
    value: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "card_id": self.card_id,
            "category": self.category.value,
            "value": self.value,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class PendingAttack:
    """An attack waiting for the target's repel/take-damage answer."""
    attacker_id: str
    target_id: str
    cards: tuple[Card, ...]
    damage: int
    category: CardCategory

    def to_dict(self) -> dict[str, Any]:
        return {
            "attacker_id": self.attacker_id,
            "target_id": self.target_id,
            "cards": [c.to_dict() for c in self.cards],
            "damage": self.damage,
            "category": self.category.value,
        }


@dataclass
class GameState:
    """
    Complete match state at a point in time.

    Engine calls replace it wholesale. Exactly one player is at
    current_player_idx; once winner_id is set it stays set.
    """
    game_id: str
    players: list[Player] = field(default_factory=list)
    turn: int = 1
    current_player_idx: int = 0
    phase: TurnPhase = TurnPhase.ACTION
    shop: list[Card] = field(default_factory=list)
    game_log: list[LogEntry] = field(default_factory=list)
    played_categories: list[CardCategory] = field(default_factory=list)
    pending_attack: PendingAttack | None = None
    winner_id: str | None = None
    event_message: str | None = None
    settings: GameSettings = field(default_factory=GameSettings)
    last_action: ActionEvent | None = None
    clock: int = 0

    @property
    def current_player(self) -> Player:
        """Get the player whose turn it is."""
        return self.players[self.current_player_idx]

    @property
    def acting_player(self) -> Player:
        """The player entitled to act: the defender during a DEFENSE phase."""
        if self.phase == TurnPhase.DEFENSE and self.pending_attack is not None:
            defender = self.get_player(self.pending_attack.target_id)
            if defender is not None:
                return defender
        return self.current_player

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def is_over(self) -> bool:
        return self.winner_id is not None

    def get_player(self, player_id: str) -> Player | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def living_players(self) -> list[Player]:
        return [p for p in self.players if p.is_alive]

    def living_enemies(self, player_id: str) -> list[Player]:
        return [p for p in self.players if p.is_alive and p.player_id != player_id]

    def with_player(self, player: Player) -> GameState:
        """Return new state with updated player."""
        new_players = [
            player if p.player_id == player.player_id else p
            for p in self.players
        ]
        return self._copy_with(players=new_players)

    def with_log(self, *entries: tuple[LogKind, str]) -> GameState:
        """
        Return new state with log entries prepended.

        Entries keep the given order at the front; the log is capped
        at LOG_LIMIT entries.
        """
        clock = self.clock + 1
        new_entries = [
            LogEntry(
                entry_id=f"log-{clock}-{i}",
                turn=self.turn,
                kind=kind,
                message=message,
                timestamp=clock,
            )
            for i, (kind, message) in enumerate(entries)
        ]
        return self._copy_with(
            game_log=(new_entries + self.game_log)[:LOG_LIMIT],
            clock=clock,
        )

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-compatible snapshot."""
        return {
            "game_id": self.game_id,
            "turn": self.turn,
            "current_player_idx": self.current_player_idx,
            "current_player_id": self.current_player.player_id if self.players else None,
            "phase": self.phase.value,
            "players": [p.to_dict() for p in self.players],
            "shop": [c.to_dict() for c in self.shop],
            "game_log": [e.to_dict() for e in self.game_log],
            "played_categories": [c.value for c in self.played_categories],
            "pending_attack": self.pending_attack.to_dict() if self.pending_attack else None,
            "winner_id": self.winner_id,
            "event_message": self.event_message,
            "settings": self.settings.to_dict(),
            "last_action": self.last_action.to_dict() if self.last_action else None,
            "clock": self.clock,
        }
