"""
Global events, rolled on round wraparound every event_frequency turns.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable

from ..engine_core.state import Player


@dataclass(frozen=True)
class GlobalEvent:
    event_id: str
    name: str
    kind: str  # "blessing" or "catastrophe"
    description: str
    apply: Callable[[Player], Player]

    @property
    def message(self) -> str:
        return f"[{self.kind.upper()}] {self.name}: {self.description}"


def _blessing(player: Player) -> Player:
    return player.copy_with(hp=min(player.max_hp, player.hp + 20))


def _catastrophe(player: Player) -> Player:
    return player.copy_with(mana=max(0, player.mana - 20))


GLOBAL_EVENTS: tuple[GlobalEvent, ...] = (
    GlobalEvent(
        event_id="evt_blessing",
        name="Divine Blessing",
        kind="blessing",
        description="All living players recover 20 HP.",
        apply=_blessing,
    ),
    GlobalEvent(
        event_id="evt_catastrophe",
        name="Mana Storm",
        kind="catastrophe",
        description="All living players lose 20 mana.",
        apply=_catastrophe,
    ),
)
