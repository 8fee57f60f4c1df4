"""Exception hierarchy for the ride dispatch service.

Every failure is local to the operation that raised it: when one of these
propagates out of an entry point, no driver, ride, balance or notification
has been changed.
"""

from typing import Any


class DispatchError(Exception):
    """Base exception for all dispatch errors."""

    code = "dispatch_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(DispatchError):
    """Errors that may succeed if the caller retries later."""

    pass


class PermanentError(DispatchError):
    """Errors that will not succeed on retry."""

    pass


class NotFoundError(PermanentError):
    """Requested driver or ride does not exist."""

    code = "not_found"


class UnauthorizedError(PermanentError):
    """Caller identity is not allowed to perform the operation."""

    code = "unauthorized"


class InvalidStateError(PermanentError):
    """Operation is not legal for the ride's current lifecycle state."""

    code = "invalid_state"


class InvalidAmountError(PermanentError):
    """Non-positive fare or fee level above the ceiling."""

    code = "invalid_amount"


class InvalidDriverError(PermanentError):
    """Path query referenced a driver id outside the registered range."""

    code = "invalid_driver"


class NoAvailableDriverError(TransientError):
    """Matching found no available driver."""

    code = "no_available_driver"


class TransferFailureError(TransientError):
    """Fund movement could not complete."""

    code = "transfer_failure"
