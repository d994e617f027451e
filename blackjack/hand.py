"""Hand scoring and outcome resolution for blackjack."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from blackjack.cards import Card, Rank

logger = logging.getLogger(__name__)

BLACKJACK = 21


def score(cards: Iterable[object]) -> int:
    """
    Calculate the best blackjack total for a set of cards.

    Every Ace starts at 11 and is recounted as 1 while the total is over 21.
    A total still over 21 after that is returned as-is (a bust). Entries that
    are not cards, or cards without a real rank, contribute nothing.
    """
    total = 0
    aces = 0

    for card in cards:
        if not isinstance(card, Card) or not isinstance(card.rank, Rank):
            logger.debug("Ignoring malformed card %r", card)
            continue
        if card.is_ace:
            aces += 1
        total += card.value

    # Reduce aces from 11 to 1 as needed
    while total > BLACKJACK and aces > 0:
        total -= 10
        aces -= 1

    return total


@dataclass
class Hand:
    """Cards held by the player or the dealer."""

    cards: list[Card] = field(default_factory=list)

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    @property
    def value(self) -> int:
        """Return the best hand value."""
        return score(self.cards)

    @property
    def is_soft(self) -> bool:
        """Check if an ace is still counted as 11."""
        if not any(card.is_ace for card in self.cards):
            return False
        total_hard = sum(1 if card.is_ace else card.value for card in self.cards)
        return total_hard + 10 <= BLACKJACK

    @property
    def is_blackjack(self) -> bool:
        """Check if the hand is a natural blackjack (21 with 2 cards)."""
        return len(self.cards) == 2 and self.value == BLACKJACK

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self.value > BLACKJACK

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        return " ".join(str(card) for card in self.cards)


class Outcome(Enum):
    """Result of a finished round."""

    PLAYER_WINS = "player_wins"
    DEALER_WINS = "dealer_wins"
    PUSH = "push"


def resolve(
    player_score: int,
    dealer_score: int,
    player_busted: bool,
    dealer_busted: bool,
    player_blackjack: bool,
    dealer_blackjack: bool,
) -> Outcome:
    """
    Decide the winner of a round.

    Checks run in order and the first match wins: initial blackjacks, then
    busts, then the higher score. Blackjack flags must describe the two-card
    starting hands, not the final ones.
    """
    if player_blackjack and dealer_blackjack:
        return Outcome.PUSH
    if player_blackjack:
        return Outcome.PLAYER_WINS
    if dealer_blackjack:
        return Outcome.DEALER_WINS

    # Player busts always loses
    if player_busted:
        return Outcome.DEALER_WINS
    if dealer_busted:
        return Outcome.PLAYER_WINS

    if player_score > dealer_score:
        return Outcome.PLAYER_WINS
    if dealer_score > player_score:
        return Outcome.DEALER_WINS
    return Outcome.PUSH
