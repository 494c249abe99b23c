"""Error kinds raised by the intent, swipe and match services."""


class CoreError(Exception):
    """Base class. `code` is the stable identifier surfaced to the HTTP layer."""

    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationError(CoreError):
    """Bad input shape or range. Never retried."""

    code = "validation_error"


class NotFoundError(CoreError):
    code = "not_found"


class InvalidStateError(CoreError):
    """Operation not valid for the entity's current lifecycle state."""

    code = "invalid_state"


class ExpiredError(CoreError):
    """Time window lapsed. Terminal for that entity."""

    code = "expired"


class DuplicateSwipeError(CoreError):
    """A decision already exists for this ordered intent pair. Not recoverable."""

    code = "duplicate_swipe"


class MatchAlreadyExistsError(CoreError):
    """Race loser on match creation. Recoverable by re-fetching the pair."""

    code = "match_already_exists"


class AlreadyFinalizedError(CoreError):
    code = "already_finalized"


class NoActiveIntentError(CoreError):
    code = "no_active_intent"
