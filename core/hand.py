"""Hand evaluation for blackjack."""

from dataclasses import dataclass
from typing import Iterable, Iterator

from core.cards import Card

BLACKJACK = 21


def compute_score(cards: Iterable[Card]) -> int:
    """
    Calculate the best score for a set of cards.

    Returns the highest value that doesn't bust, or the lowest bust value.
    """
    total = 0
    aces = 0

    for card in cards:
        if card.is_ace:
            aces += 1
        total += card.base_value

    # Reduce aces from 11 to 1 as needed
    while total > BLACKJACK and aces > 0:
        total -= 10
        aces -= 1

    return total


def is_soft(cards: Iterable[Card]) -> bool:
    """Check if an ace is still being counted as 11."""
    cards = list(cards)
    if not any(card.is_ace for card in cards):
        return False

    total_hard = sum(1 if card.is_ace else card.base_value for card in cards)
    return total_hard + 10 <= BLACKJACK


@dataclass(frozen=True)
class Hand:
    """An immutable blackjack hand."""

    cards: tuple[Card, ...] = ()

    def with_card(self, card: Card) -> "Hand":
        """Return a new hand with the card added."""
        return Hand(self.cards + (card,))

    @property
    def value(self) -> int:
        """Return the best hand value."""
        return compute_score(self.cards)

    @property
    def is_soft(self) -> bool:
        """Check if the hand is soft (has an ace counted as 11)."""
        return is_soft(self.cards)

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
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({list(self.cards)!r}, value={self.value})"
