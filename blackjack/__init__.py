"""Core blackjack engine - 100% UI-agnostic."""

from blackjack.cards import Card, Deck, Rank, Suit
from blackjack.hand import Hand, Outcome, resolve, score

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "Hand",
    "Outcome",
    "resolve",
    "score",
]
