"""Round phase enumeration."""

from enum import Enum, auto


class GamePhase(Enum):
    """
    Round state machine phases.

    Flow: NOT_STARTED → PLAYER_TURN → DEALER_RESOLVING → ROUND_OVER
    """

    # No cards dealt yet
    NOT_STARTED = auto()

    # Player may hit or stand
    PLAYER_TURN = auto()

    # Dealer draws; only exists inside a single stand
    DEALER_RESOLVING = auto()

    # Outcome decided, waiting for a new game
    ROUND_OVER = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()

