"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal


class ActionRequest(BaseModel):
    """Request for player action."""

    action: str = Field(..., description='One of "deal", "hit" or "stand"')


class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    suit: Literal["♠", "♥", "♦", "♣"]
    rank: Literal["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]
    base_value: int = Field(..., ge=1, le=11)


class GameStateResponse(BaseModel):
    """Full session state."""

    session_id: str
    deck: list[CardResponse]
    player_hand: list[CardResponse]
    dealer_hand: list[CardResponse]
    player_score: int
    dealer_score: int
    round_active: bool
    status_message: str
    wins: int
    losses: int
    ties: int


class SessionStatsResponse(BaseModel):
    """Session statistics."""

    rounds_played: int
    wins: int
    losses: int
    ties: int
    win_rate: float


class ErrorResponse(BaseModel):
    """Error body returned for rejected requests."""

    detail: str
