"""Game errors surfaced to callers."""


class GameError(Exception):
    """Base class for errors that reject a request without changing state."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidActionError(GameError):
    """The requested action is not one of deal, hit, or stand."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Invalid action: {action}")
        self.action = action


class InactiveRoundError(GameError):
    """Hit or stand was requested while no round is in progress."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Cannot {action}: game is not active")
        self.action = action
