"""Pytest fixtures for blackjack tests."""

import os

# Keep the rate limiter and Redis out of the way of the API tests
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("REDIS_ENABLED", "false")

import pytest
from random import Random

from core.cards import Card, Rank, Suit
from core.hand import Hand
from core.game import RoundState


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def fresh_state(rng):
    """A brand new session before the first deal."""
    return RoundState.new("test-session", rng=rng)


@pytest.fixture
def empty_hand():
    """An empty hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return Hand((Card(Rank.ACE, Suit.SPADES), Card(Rank.KING, Suit.HEARTS)))


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return Hand((Card(Rank.ACE, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS)))


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return Hand((Card(Rank.TEN, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS)))


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return Hand(
        (
            Card(Rank.TEN, Suit.SPADES),
            Card(Rank.SIX, Suit.HEARTS),
            Card(Rank.KING, Suit.CLUBS),
        )
    )
