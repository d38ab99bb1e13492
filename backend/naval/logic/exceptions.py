"""Typed domain exceptions for naval battle rules and record synchronization.

Rule violations use subclasses of GameRuleError. They are raised before any
write to the shared record, so a caught GameRuleError always means the game
state is unchanged and the message can be shown to the player as-is.

Store failures use SyncError. They are never fatal: the action is simply not
applied, and the next poll tick or user action may try again.
"""


class GameRuleError(Exception):
    """Base exception for game rule violations.

    Raised by the rules engine (placement.py, turn.py) when a player action
    violates the rules. Caught by the client UI and shown as a message.
    """


class InvalidPlacementError(GameRuleError):
    """Ship does not fit at the requested cell (out of bounds or overlapping)."""


class InvalidActionError(GameRuleError):
    """Action is not valid in the current game state."""


class RepeatAttackError(InvalidActionError):
    """Coordinate was already attacked by this player."""


class OutOfTurnError(InvalidActionError):
    """Player attempted to act while the other player holds the turn."""


class InvalidTransitionError(GameRuleError):
    """Status change is not in the transition table."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"invalid status transition {current} -> {target}")


class SyncError(Exception):
    """A store operation (list, create, get, update) failed."""


class WriteConflictError(SyncError):
    """A conditional update lost against a concurrent write.

    Attributes:
        current_version: Version of the stored record, when the store reported it.

    """

    def __init__(self, game_id: str, *, current_version: int | None = None) -> None:
        self.game_id = game_id
        self.current_version = current_version
        super().__init__(f"write conflict on game {game_id} (stored version {current_version})")


class StateInconsistencyError(Exception):
    """A fetched record lacks data the client expected, or fails validation."""
