"""Round engine and state management."""

from blackjack.game.events import GameEvent, EventType
from blackjack.game.state import GamePhase
from blackjack.game.dealer import DealerResult, play_dealer
from blackjack.game.engine import (
    BlackjackGame,
    Round,
    RoundView,
    hit,
    new_game,
    render_inputs,
    stand,
)

__all__ = [
    "GameEvent",
    "EventType",
    "GamePhase",
    "DealerResult",
    "play_dealer",
    "BlackjackGame",
    "Round",
    "RoundView",
    "new_game",
    "hit",
    "stand",
    "render_inputs",
]
