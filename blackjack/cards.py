"""Card and Deck classes - immutable card representations."""

from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Iterable, Iterator


class Suit(Enum):
    """Card suits, in canonical deck order."""

    HEARTS = auto()
    DIAMONDS = auto()
    CLUBS = auto()
    SPADES = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.HEARTS: "♥",
            Suit.DIAMONDS: "♦",
            Suit.CLUBS: "♣",
            Suit.SPADES: "♠",
        }
        return symbols[self]


class Rank(Enum):
    """Card ranks, in canonical deck order (Ace low)."""

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    def __str__(self) -> str:
        if 2 <= self.value <= 10:
            return str(self.value)
        return {
            Rank.ACE: "A",
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
        }[self]

    @property
    def blackjack_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self == Rank.ACE:
            return 11
        if self.value <= 10:
            return self.value
        return 10  # Face cards

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the blackjack point value."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like 'A♥', 'AS', '10d'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        rank_map = {str(rank): rank for rank in Rank}
        rank_map["T"] = Rank.TEN

        suit_map = {
            "H": Suit.HEARTS,
            "♥": Suit.HEARTS,
            "D": Suit.DIAMONDS,
            "♦": Suit.DIAMONDS,
            "C": Suit.CLUBS,
            "♣": Suit.CLUBS,
            "S": Suit.SPADES,
            "♠": Suit.SPADES,
        }

        if rank_str not in rank_map:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in suit_map:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(rank_map[rank_str], suit_map[suit_str])


def canonical_cards() -> list[Card]:
    """Return the 52 cards suit-major, rank-minor."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


class Deck:
    """
    A single 52-card deck.

    Cards are drawn from the end of the internal list, so the last card
    placed by a shuffle (or by a stacked ``cards`` argument) is the top.
    """

    def __init__(
        self,
        cards: Iterable[Card] | None = None,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a deck.

        Args:
            cards: Explicit remaining cards, bottom first. Defaults to a full
                deck in canonical order.
            rng: Random number generator used by shuffle()
        """
        self._rng = rng or Random()
        self._cards: list[Card] = list(cards) if cards is not None else canonical_cards()

    @classmethod
    def create(cls, rng: Random | None = None) -> "Deck":
        """Create a full, unshuffled deck."""
        return cls(rng=rng)

    @classmethod
    def stacked(cls, *draw_order: Card) -> "Deck":
        """Create a deck that deals the given cards first, in order."""
        return cls(cards=reversed(draw_order))

    def shuffle(self) -> None:
        """Shuffle the remaining cards in place."""
        self._rng.shuffle(self._cards)

    def draw(self) -> Card | None:
        """Draw the top card, or return None if the deck is empty."""
        if not self._cards:
            return None
        return self._cards.pop()

    @property
    def cards(self) -> list[Card]:
        """Return a copy of the remaining cards, bottom first."""
        return list(self._cards)

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def is_empty(self) -> bool:
        return not self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Deck):
            return NotImplemented
        return self._cards == other._cards

    def __repr__(self) -> str:
        return f"Deck({len(self._cards)} cards)"
