"""Core blackjack engine - 100% UI-agnostic."""

from core.cards import Card, Rank, Suit, create_shuffled_deck, draw
from core.hand import Hand, compute_score

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "create_shuffled_deck",
    "draw",
    "Hand",
    "compute_score",
]
