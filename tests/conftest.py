"""Pytest fixtures for blackjack engine tests."""

import pytest
from random import Random

from blackjack.cards import Card, Deck, Rank, Suit
from blackjack.hand import Hand


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled deck."""
    d = Deck(rng=rng)
    d.shuffle()
    return d


@pytest.fixture
def empty_hand():
    """An empty hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return Hand(cards=[Card(Rank.ACE, Suit.SPADES), Card(Rank.KING, Suit.HEARTS)])


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return Hand(cards=[Card(Rank.ACE, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS)])


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return Hand(cards=[Card(Rank.TEN, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS)])


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return Hand(
        cards=[
            Card(Rank.TEN, Suit.SPADES),
            Card(Rank.SIX, Suit.HEARTS),
            Card(Rank.KING, Suit.CLUBS),
        ]
    )


@pytest.fixture
def make_cards():
    """Factory building cards from short labels like 'AS', '10H'."""

    def _make(*labels: str) -> list[Card]:
        return [Card.from_string(label) for label in labels]

    return _make


@pytest.fixture
def stacked_deck(make_cards):
    """Factory for a deck that deals the labelled cards first, in order, then nothing."""

    def _stack(*labels: str) -> Deck:
        return Deck.stacked(*make_cards(*labels))

    return _stack
