"""
Booking error taxonomy.

ValidationError and ConflictDetected are decided locally; ServerConflict and
NetworkError come back from the Booking API after a submission.
"""
from enum import Enum


class RejectReason(str, Enum):
    SERVER_CONFLICT = "server_conflict"
    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"


class BookingError(Exception):
    """Base class for recoverable booking failures"""

    reason: RejectReason | None = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BookingValidationError(BookingError, ValueError):
    """Missing or inverted date pair. Blocks submission, no request is sent."""

    reason = RejectReason.VALIDATION_ERROR


class ConflictDetected(BookingError):
    """Locally computed overlap with an existing stay"""

    def __init__(self, message: str, conflicts=()):
        super().__init__(message)
        self.conflicts = list(conflicts)


class ServerConflict(BookingError):
    """Authoritative overlap rejection returned by the Booking API"""

    reason = RejectReason.SERVER_CONFLICT

    def __init__(self, message: str, conflicts=()):
        super().__init__(message)
        self.conflicts = list(conflicts)


class NetworkError(BookingError):
    """Transport or unknown failure talking to the Booking API"""

    reason = RejectReason.NETWORK_ERROR
