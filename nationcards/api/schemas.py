"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between clients and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- GAME_NOT_FOUND: Game does not exist or has ended
- ILLEGAL_ACTION: Request is well-formed but can never be applied
- INVALID_WEIGHTS: Weights document failed validation
- VALIDATION_ERROR: Request parameters are invalid
- INTERNAL_ERROR: Unexpected server failure

A rule-level rejection of an action (not enough mana, wrong turn, ...)
is NOT an error response: it comes back as 200 with applied=false.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field

from ..engine_core.action import Action
from ..engine_core.state import GameSettings, Nation


# =============================================================================
# Enums
# =============================================================================

class GameStatus(str, Enum):
    """Game status values."""
    ACTIVE = "active"
    GAME_OVER = "game_over"


class NationChoice(str, Enum):
    FIGHTER = "fighter"
    HOLY = "holy"
    COMMERCIAL = "commercial"
    MAGIC = "magic"

    def to_nation(self) -> Nation:
        return Nation(self.value)


class BotDifficulty(str, Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"


class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    ILLEGAL_ACTION = "ILLEGAL_ACTION"
    INVALID_WEIGHTS = "INVALID_WEIGHTS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Game creation
# =============================================================================

class SeatRequest(BaseModel):
    """One player at the table, in turn order."""
    player_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=64)
    nation: NationChoice
    is_human: bool = True
    bot_difficulty: Optional[BotDifficulty] = Field(
        None, description="Only for bot seats; defaults to the game setting"
    )


class SettingsRequest(BaseModel):
    """Rules configuration. Omitted fields keep their defaults."""
    initial_gold: int = Field(100, ge=0)
    initial_mana: int = Field(50, ge=0)
    max_players: int = Field(4, ge=1, le=8)
    bot_count: int = Field(1, ge=0, le=8)
    bot_difficulty: BotDifficulty = BotDifficulty.NORMAL
    cards_draw_per_turn: int = Field(2, ge=0, le=10)
    income_multiplier: float = Field(1.0, ge=0)
    event_frequency: int = Field(5, ge=0, description="0 disables global events")
    max_mana: int = Field(100, ge=1)
    max_hand_size: int = Field(12, ge=1, le=50)
    is_multiplayer: bool = False
    shop_size: int = Field(3, ge=0, le=10)
    health_multiplier: float = Field(1.0, gt=0)
    damage_multiplier: float = Field(1.0, ge=0)
    price_multiplier: float = Field(1.0, ge=0)
    mana_regen_per_turn: int = Field(15, ge=0)
    max_plays_per_turn: int = Field(3, ge=1, le=7)
    initial_draw: int = Field(2, ge=0, le=10)
    max_turns: int = Field(100, ge=1)
    defense_phase: bool = False
    rarity_weights: dict[str, int] = Field(
        default_factory=lambda: {"common": 60, "rare": 30, "epic": 8, "legendary": 2}
    )

    def to_settings(self) -> GameSettings:
        data = self.model_dump()
        data["bot_difficulty"] = self.bot_difficulty.value
        return GameSettings(**data)


class CreateGameRequest(BaseModel):
    """Request to create a new game."""
    seats: list[SeatRequest] = Field(..., min_length=1, max_length=8)
    settings: SettingsRequest = Field(default_factory=SettingsRequest)
    seed: Optional[int] = Field(None, description="Seed for reproducible games")
    run_bots: bool = Field(True, description="Let bot seats act until a human is up")


# =============================================================================
# Action requests (tagged by "type")
# =============================================================================

class EndTurnRequest(BaseModel):
    type: Literal["end_turn"] = "end_turn"
    player_id: str

    def to_action(self) -> Action:
        return Action.end_turn(self.player_id)


class PlayCardRequest(BaseModel):
    type: Literal["play_card"] = "play_card"
    player_id: str
    card_id: str
    target_id: Optional[str] = None

    def to_action(self) -> Action:
        return Action.play_card(self.player_id, self.card_id, self.target_id)


class AttackRequest(BaseModel):
    type: Literal["attack"] = "attack"
    player_id: str
    card_ids: list[str] = Field(..., min_length=1)
    target_id: str

    def to_action(self) -> Action:
        return Action.attack(self.player_id, self.card_ids, self.target_id)


class BuyCardRequest(BaseModel):
    type: Literal["buy_card"] = "buy_card"
    player_id: str
    card_id: str

    def to_action(self) -> Action:
        return Action.buy_card(self.player_id, self.card_id)


class SellCardRequest(BaseModel):
    type: Literal["sell_card"] = "sell_card"
    player_id: str
    card_id: str

    def to_action(self) -> Action:
        return Action.sell_card(self.player_id, self.card_id)


class BankRequest(BaseModel):
    type: Literal["bank"] = "bank"
    player_id: str
    amount: int = Field(..., description="Positive deposits, negative withdraws")

    def to_action(self) -> Action:
        return Action.bank(self.player_id, self.amount)


class RepelRequest(BaseModel):
    type: Literal["repel"] = "repel"
    player_id: str
    card_ids: list[str] = Field(..., min_length=1)

    def to_action(self) -> Action:
        return Action.repel(self.player_id, self.card_ids)


class TakeDamageRequest(BaseModel):
    type: Literal["take_damage"] = "take_damage"
    player_id: str

    def to_action(self) -> Action:
        return Action.take_damage(self.player_id)


ActionRequest = Annotated[
    Union[
        EndTurnRequest,
        PlayCardRequest,
        AttackRequest,
        BuyCardRequest,
        SellCardRequest,
        BankRequest,
        RepelRequest,
        TakeDamageRequest,
    ],
    Field(discriminator="type"),
]


class SubmitActionRequest(BaseModel):
    """An action for the player entitled to act."""
    action: ActionRequest
    run_bots: bool = Field(True, description="Let bot seats respond afterwards")


class RunBotsRequest(BaseModel):
    max_steps: int = Field(500, ge=1, le=20000)


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class ActionInfo(BaseModel):
    """An engine action, as listed or recommended."""
    type: str
    player_id: Optional[str] = None
    card_id: Optional[str] = None
    card_ids: list[str] = Field(default_factory=list)
    target_player_id: Optional[str] = None
    amount: Optional[int] = None
    label: str

    @classmethod
    def from_action(cls, action: Action) -> "ActionInfo":
        return cls(**action.to_dict(), label=action.label())


class GameResponse(BaseModel):
    """Game snapshot plus whose move it is."""
    game_id: str
    status: GameStatus
    turn: int
    phase: str
    acting_player_id: Optional[str] = None
    is_bot_turn: bool = False
    winner_id: Optional[str] = None
    state: dict[str, Any] = Field(default_factory=dict, description="Full GameState snapshot")
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """
    Outcome of a submitted action.

    applied=false means the engine rejected it; state is unchanged and
    reason/reason_code say why.
    """
    applied: bool
    reason: Optional[str] = None
    reason_code: Optional[str] = None
    bot_actions: list[str] = Field(default_factory=list)
    forced_actions: list[str] = Field(default_factory=list)
    state_changes: list[str] = Field(default_factory=list)
    game: GameResponse
    api_version: str = "v1"


class BotRunResponse(BaseModel):
    bot_actions: list[str] = Field(default_factory=list)
    forced_actions: list[str] = Field(default_factory=list)
    state_changes: list[str] = Field(default_factory=list)
    game: GameResponse
    api_version: str = "v1"


class LegalActionsResponse(BaseModel):
    game_id: str
    player_id: Optional[str] = None
    actions: list[ActionInfo] = Field(default_factory=list)
    count: int = 0


class RecommendationResponse(BaseModel):
    """MCTS recommendation for the acting player."""
    game_id: str
    player_id: Optional[str] = None
    action: Optional[ActionInfo] = Field(None, description="Null when no action is legal")
    policy: dict[str, float] = Field(default_factory=dict)
    value: float = 0.0
    iterations: int = 0


class TrainingRecordsResponse(BaseModel):
    game_id: str
    count: int
    records: list[dict[str, Any]] = Field(default_factory=list)


class WeightsResponse(BaseModel):
    loaded: bool
    hidden_size: Optional[int] = None


class GameListResponse(BaseModel):
    """Response listing active games."""
    games: list[str]
    count: int


class EndGameResponse(BaseModel):
    """Response after ending a game."""
    success: bool
    game_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    model_loaded: bool = False
