"""Domain errors raised by the dispatch core.

Race-loss results (AlreadyAssigned / AlreadyResolved) are not errors; they
are reported through ``Outcome`` on the use case results.
"""


class DispatchError(Exception):
    """Base class for every per-request failure of the dispatch core."""

    code = "DispatchError"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code


# ─── Validation ─────────────────────────────────────────────────────


class InvalidInput(DispatchError):
    code = "InvalidInput"


class InvalidRadius(InvalidInput):
    code = "InvalidRadius"


class InvalidCoordinates(InvalidInput):
    code = "InvalidCoordinates"


class MissingCategory(InvalidInput):
    code = "MissingCategory"


class MissingDescription(InvalidInput):
    code = "MissingDescription"


class InvalidRating(InvalidInput):
    code = "InvalidRating"


# ─── Configuration ──────────────────────────────────────────────────


class UnknownCategory(DispatchError):
    """No pricing rule for the category and no default rule configured."""

    code = "UnknownCategory"


# ─── Lifecycle state ────────────────────────────────────────────────


class StateError(DispatchError):
    code = "StateError"


class InvalidTransition(StateError):
    code = "InvalidTransition"


class NotCancellable(StateError):
    code = "NotCancellable"


class NotACandidate(StateError):
    code = "NotACandidate"


# ─── Access ─────────────────────────────────────────────────────────


class RequestNotFound(DispatchError):
    code = "RequestNotFound"


class PermissionDenied(DispatchError):
    code = "PermissionDenied"


class RateLimitExceeded(DispatchError):
    code = "RateLimitExceeded"
