"""Card and deck primitives - immutable card representations."""

from dataclasses import dataclass
from enum import Enum
from random import Random


class Suit(Enum):
    """Card suits."""

    SPADES = "♠"
    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"

    def __str__(self) -> str:
        return self.value


class Rank(Enum):
    """Card ranks with blackjack values."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    def __str__(self) -> str:
        return self.value

    @property
    def blackjack_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self == Rank.ACE:
            return 11
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)

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
    def base_value(self) -> int:
        """Return the blackjack point value before any ace adjustment."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', 'Kh', 'TD'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        if rank_str == "T":
            rank_str = "10"

        suit_map = {
            "S": Suit.SPADES,
            "H": Suit.HEARTS,
            "D": Suit.DIAMONDS,
            "C": Suit.CLUBS,
        }

        try:
            rank = Rank(rank_str)
        except ValueError:
            raise ValueError(f"Invalid rank: {rank_str}") from None

        if suit_str in suit_map:
            suit = suit_map[suit_str]
        else:
            try:
                suit = Suit(suit_str)
            except ValueError:
                raise ValueError(f"Invalid suit: {suit_str}") from None

        return cls(rank, suit)


def create_shuffled_deck(rng: Random | None = None) -> list[Card]:
    """
    Build a standard 52-card deck in uniformly random order.

    Random.shuffle is a Fisher-Yates walk from the last index down to 1,
    swapping each position with a uniformly chosen index at or below it.

    Args:
        rng: Random number generator for shuffling (seed it for reproducible decks)

    Returns:
        A new list of cards; the last element is the top of the deck
    """
    rng = rng or Random()
    deck = [Card(rank, suit) for suit in Suit for rank in Rank]
    rng.shuffle(deck)
    return deck


def draw(deck: list[Card]) -> Card:
    """Draw a card from the top (end) of the deck."""
    if not deck:
        raise IndexError("Cannot draw from empty deck")
    return deck.pop()
