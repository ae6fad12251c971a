"""Domain error taxonomy shared by every service and the API layer."""


class TripDeskError(Exception):
    """Base class for failures reported to the immediate caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(TripDeskError):
    """A referenced id does not exist."""


class Conflict(TripDeskError):
    """Uniqueness violation, or a delete blocked by live references."""


class InvalidState(TripDeskError):
    """A status value is not in the recognised catalog."""


class InvalidStateTransition(InvalidState):
    """Raised when the transition policy refuses a status change."""


class Unauthorized(TripDeskError):
    """The caller's role lacks the permission the operation needs."""


class StorageError(TripDeskError):
    """Any persistence failure not otherwise classified."""
