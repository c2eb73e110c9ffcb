"""Round engine and state management."""

from core.game.errors import GameError, InactiveRoundError, InvalidActionError
from core.game.results import ActionResult, Continues, Outcome, RoundEnded
from core.game.state import RoundPhase, RoundState
from core.game.engine import Action, apply_action, deal, hit, stand

__all__ = [
    "GameError",
    "InactiveRoundError",
    "InvalidActionError",
    "ActionResult",
    "Continues",
    "Outcome",
    "RoundEnded",
    "RoundPhase",
    "RoundState",
    "Action",
    "apply_action",
    "deal",
    "hit",
    "stand",
]
