"""Blackjack round engine with state machine."""

import logging
from dataclasses import replace
from enum import Enum
from random import Random

from transitions import Machine, MachineError

from core.cards import create_shuffled_deck, draw
from core.hand import BLACKJACK, Hand
from core.game.errors import InactiveRoundError, InvalidActionError
from core.game.results import ActionResult, Continues, Outcome, RoundEnded
from core.game.state import PROMPT_MESSAGE, RoundPhase, RoundState

logger = logging.getLogger(__name__)

DEALER_STANDS_ON = 17


class Action(str, Enum):
    """Player actions accepted by the engine."""

    DEAL = "deal"
    HIT = "hit"
    STAND = "stand"

    @classmethod
    def parse(cls, action: "str | Action") -> "Action":
        """Convert an action name into an Action."""
        if isinstance(action, Action):
            return action
        try:
            return cls(action)
        except ValueError:
            raise InvalidActionError(str(action)) from None


class RoundTracker:
    """
    Phase bookkeeping for a single transition.

    A tracker is built from the incoming state, fed the triggers the
    transition performs, and its final phase becomes the new round_active.
    """

    # State machine states
    STATES = [s.name.lower() for s in RoundPhase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "start_round", "source": ["no_round", "round_active"], "dest": "round_active"},
        {"trigger": "player_hits", "source": "round_active", "dest": "round_active"},
        {"trigger": "end_round", "source": "round_active", "dest": "no_round"},
    ]

    def __init__(self, phase: RoundPhase) -> None:
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=phase.name.lower(),
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> RoundPhase:
        """Get current phase as enum."""
        return RoundPhase[self._machine_state.upper()]  # type: ignore

    @property
    def round_active(self) -> bool:
        return self.phase == RoundPhase.ROUND_ACTIVE

    def require(self, trigger: str, action: Action) -> None:
        """Fire a trigger, reporting an illegal one as an inactive round."""
        try:
            self.trigger(trigger)  # type: ignore
        except MachineError:
            raise InactiveRoundError(action.value) from None


def _end_round(
    state: RoundState,
    tracker: RoundTracker,
    outcome: Outcome,
    **changes,
) -> RoundEnded:
    """Bump the tally for the outcome once the tracker has left the round."""
    changes[outcome.tally] = getattr(state, outcome.tally) + 1
    new_state = replace(
        state,
        round_active=tracker.round_active,
        status_message=outcome.message,
        **changes,
    )
    logger.debug(
        "Round ended for %s: %s (player %s, dealer %s)",
        new_state.session_id,
        outcome.name,
        new_state.player_hand,
        new_state.dealer_hand,
    )
    return RoundEnded(state=new_state, outcome=outcome)


def deal(state: RoundState, rng: Random | None = None) -> ActionResult:
    """
    Start a new round with a fresh deck.

    The incoming deck and hands are discarded. A natural 21 for the player
    ends the round immediately as a win.
    """
    tracker = RoundTracker(state.phase)
    tracker.start_round()  # type: ignore

    deck = create_shuffled_deck(rng)
    # Deal: player, player, dealer, dealer
    player_hand = Hand((draw(deck), draw(deck)))
    dealer_hand = Hand((draw(deck), draw(deck)))

    dealt = replace(
        state,
        deck=tuple(deck),
        player_hand=player_hand,
        dealer_hand=dealer_hand,
        player_score=player_hand.value,
        dealer_score=dealer_hand.value,
    )

    if dealt.player_score == BLACKJACK:
        tracker.end_round()  # type: ignore
        return _end_round(dealt, tracker, Outcome.PLAYER_BLACKJACK)

    return Continues(
        replace(dealt, round_active=tracker.round_active, status_message=PROMPT_MESSAGE)
    )


def hit(state: RoundState) -> ActionResult:
    """
    Player takes one card.

    Busting loses the round; reaching exactly 21 stands automatically.
    """
    tracker = RoundTracker(state.phase)
    tracker.require("player_hits", Action.HIT)

    deck = list(state.deck)
    player_hand = state.player_hand.with_card(draw(deck))
    hit_state = replace(
        state,
        deck=tuple(deck),
        player_hand=player_hand,
        player_score=player_hand.value,
    )

    if hit_state.player_score > BLACKJACK:
        tracker.end_round()  # type: ignore
        return _end_round(hit_state, tracker, Outcome.PLAYER_BUST)

    if hit_state.player_score == BLACKJACK:
        return stand(hit_state)

    return Continues(replace(hit_state, status_message=PROMPT_MESSAGE))


def _dealer_should_hit(hand: Hand) -> bool:
    """Dealer hits below 17 and stands on every 17, soft or hard."""
    return hand.value < DEALER_STANDS_ON


def stand(state: RoundState) -> RoundEnded:
    """Player stands; the dealer plays out and the round is resolved."""
    tracker = RoundTracker(state.phase)
    tracker.require("end_round", Action.STAND)

    deck = list(state.deck)
    dealer_hand = state.dealer_hand
    while _dealer_should_hit(dealer_hand):
        dealer_hand = dealer_hand.with_card(draw(deck))

    dealer_score = dealer_hand.value
    player_score = state.player_score

    if dealer_score > BLACKJACK:
        outcome = Outcome.DEALER_BUST
    elif player_score == dealer_score:
        outcome = Outcome.PUSH
    elif player_score > dealer_score:
        outcome = Outcome.PLAYER_WINS
    else:
        outcome = Outcome.DEALER_WINS

    return _end_round(
        state,
        tracker,
        outcome,
        deck=tuple(deck),
        dealer_hand=dealer_hand,
        dealer_score=dealer_score,
    )


def apply_action(
    state: RoundState,
    action: "str | Action",
    rng: Random | None = None,
) -> ActionResult:
    """
    Apply a player action to a round state.

    Args:
        state: The current session state (never mutated)
        action: "deal", "hit" or "stand"
        rng: Random number generator used when dealing a fresh deck

    Returns:
        Continues if the player still has a decision to make, else RoundEnded

    Raises:
        InvalidActionError: If the action is not recognised
        InactiveRoundError: If hit or stand is requested with no active round
    """
    action = Action.parse(action)

    if action == Action.DEAL:
        return deal(state, rng)
    if action == Action.HIT:
        return hit(state)
    return stand(state)
