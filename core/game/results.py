"""Action results and round outcomes."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Union

from core.game.state import RoundState

Tally = Literal["wins", "losses", "ties"]


class Outcome(Enum):
    """How a round was resolved."""

    PLAYER_BLACKJACK = ("wins", "Blackjack! Player wins! 🃏")
    PLAYER_BUST = ("losses", "Player Bust! Dealer wins! 💥")
    DEALER_BUST = ("wins", "Dealer Bust! Player wins! 🎉")
    PLAYER_WINS = ("wins", "Player wins! 🎉")
    DEALER_WINS = ("losses", "Dealer wins! 😔")
    PUSH = ("ties", "It's a tie! 🤝")

    def __init__(self, tally: Tally, message: str) -> None:
        self.tally = tally
        self.message = message

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


@dataclass(frozen=True)
class Continues:
    """The round is still in progress; the player must hit or stand."""

    state: RoundState


@dataclass(frozen=True)
class RoundEnded:
    """The round was resolved and exactly one tally was incremented."""

    state: RoundState
    outcome: Outcome


ActionResult = Union[Continues, RoundEnded]
