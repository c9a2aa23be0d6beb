"""
Training Records - Per-decision search data for offline learning.

One record per bot decision: where it happened, what the acting player
saw, the visit distribution (policy target), the value estimate (value
target) and the action actually played.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable
import json

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..engine_core.action import Action


def snapshot_for_training(state: GameState, player_id: str) -> dict[str, Any]:
    """Player stats, the acting player's hand and the shop offer."""
    player = state.get_player(player_id)
    return {
        "players": [
            {
                "player_id": p.player_id,
                "nation": p.nation.value,
                "hp": p.hp,
                "max_hp": p.max_hp,
                "mana": p.mana,
                "max_mana": p.max_mana,
                "gold": p.gold,
                "income": p.income + p.land_income,
                "deposit": p.deposit,
                "soul": p.soul,
                "lands": len(p.lands),
                "artifacts": len(p.artifacts),
                "is_dead": p.is_dead,
            }
            for p in state.players
        ],
        "hand": [c.catalog_id for c in player.hand] if player else [],
        "shop": [{"card_id": c.catalog_id, "cost": c.cost} for c in state.shop],
        "phase": state.phase.value,
    }


@dataclass
class TrainingRecord:
    game_id: str
    turn: int
    player_id: str
    nation: str
    state: dict[str, Any]
    policy: dict[str, float] = field(default_factory=dict)
    value: float = 0.0
    action_taken: str = ""

    @classmethod
    def from_search(
        cls,
        state: GameState,
        player_id: str,
        action: Action,
        policy: dict[str, float],
        value: float,
    ) -> TrainingRecord:
        player = state.get_player(player_id)
        return cls(
            game_id=state.game_id,
            turn=state.turn,
            player_id=player_id,
            nation=player.nation.value if player else "",
            state=snapshot_for_training(state, player_id),
            policy=dict(policy),
            value=value,
            action_taken=action.label(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "game_id": self.game_id,
            "turn": self.turn,
            "player_id": self.player_id,
            "nation": self.nation,
            "state": self.state,
            "policy": dict(self.policy),
            "value": self.value,
            "action_taken": self.action_taken,
        }


def records_to_document(records: Iterable[TrainingRecord]) -> list[dict[str, Any]]:
    return [r.to_dict() for r in records]


def export_training_records(records: Iterable[TrainingRecord], path: str | Path) -> int:
    """Write records as a JSON array; returns how many were written."""
    document = records_to_document(records)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2)
    return len(document)
