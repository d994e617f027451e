"""Dealer drawing policy."""

import logging
from dataclasses import dataclass, field

from blackjack.cards import Card, Deck
from blackjack.hand import BLACKJACK, Hand

logger = logging.getLogger(__name__)

DEALER_STAND_MIN = 17


@dataclass(frozen=True)
class DealerResult:
    """What happened while the dealer played out a hand."""

    drawn: list[Card] = field(default_factory=list)
    final_score: int = 0
    exhausted: bool = False

    @property
    def busted(self) -> bool:
        return self.final_score > BLACKJACK


def dealer_should_hit(hand: Hand, stand_min: int = DEALER_STAND_MIN) -> bool:
    """Dealer hits on anything below the stand threshold, soft or hard."""
    return hand.value < stand_min


def play_dealer(
    hand: Hand,
    deck: Deck,
    stand_min: int = DEALER_STAND_MIN,
) -> DealerResult:
    """
    Draw for the dealer until the hand reaches ``stand_min``.

    Stops early, without error, if the deck runs out.

    Args:
        hand: Dealer hand, extended in place
        deck: Deck to draw from
        stand_min: Lowest total the dealer stands on

    Returns:
        The cards drawn, the final score and whether the deck ran out
    """
    drawn: list[Card] = []
    exhausted = False

    while dealer_should_hit(hand, stand_min):
        card = deck.draw()
        if card is None:
            logger.info("Deck exhausted with dealer on %d", hand.value)
            exhausted = True
            break
        hand.add_card(card)
        drawn.append(card)

    return DealerResult(drawn=drawn, final_score=hand.value, exhausted=exhausted)
