"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal


class ActionRequest(BaseModel):
    """Request for a player action."""

    action: Literal["new_game", "hit", "stand"]


class CardResponse(BaseModel):
    """Card representation. Hidden cards have no rank or suit."""

    model_config = ConfigDict(from_attributes=True)

    display: str = Field(..., description='Glyph such as "A♥", or "[Hidden]"')
    rank: str | None = None
    suit: str | None = None
    value: int | None = None
    hidden: bool = False


class HandResponse(BaseModel):
    """Hand representation."""

    cards: list[CardResponse]
    value: int
    is_busted: bool


class RoundResponse(BaseModel):
    """Displayable state of the current round."""

    session_id: str
    player_hand: HandResponse
    dealer_hand: HandResponse
    message: str
    game_over: bool
    can_hit: bool
    can_stand: bool
    outcome: Literal["player_wins", "dealer_wins", "push"] | None = None
