"""Round state and phase enumeration."""

from dataclasses import dataclass, field
from enum import Enum, auto
from random import Random

from core.cards import Card, create_shuffled_deck
from core.hand import Hand

PRE_DEAL_MESSAGE = "Press Deal to start new game"
PROMPT_MESSAGE = "Choose your action: Hit or Stand"


class RoundPhase(Enum):
    """
    Round state machine states.

    Flow: NO_ROUND → ROUND_ACTIVE → NO_ROUND (repeats for every deal)
    """

    # Before the first deal, or after a round has been resolved
    NO_ROUND = auto()

    # Player turn
    ROUND_ACTIVE = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


@dataclass(frozen=True)
class RoundState:
    """
    Everything the server knows about one session.

    Holds the current round (deck, hands, scores) plus the win/loss/tie
    tallies that persist across rounds. Scores always equal the value of
    the matching hand.
    """

    session_id: str
    deck: tuple[Card, ...] = ()
    player_hand: Hand = field(default_factory=Hand)
    dealer_hand: Hand = field(default_factory=Hand)
    player_score: int = 0
    dealer_score: int = 0
    round_active: bool = False
    status_message: str = PRE_DEAL_MESSAGE
    wins: int = 0
    losses: int = 0
    ties: int = 0

    @classmethod
    def new(cls, session_id: str, rng: Random | None = None) -> "RoundState":
        """Create the pre-deal state for a brand new session."""
        return cls(session_id=session_id, deck=tuple(create_shuffled_deck(rng)))

    @property
    def phase(self) -> RoundPhase:
        """Get the current round phase."""
        return RoundPhase.ROUND_ACTIVE if self.round_active else RoundPhase.NO_ROUND

    @property
    def rounds_played(self) -> int:
        """Every resolved round increments exactly one tally."""
        return self.wins + self.losses + self.ties
