"""
Booking proposal: the in-progress, unsubmitted booking of one room.

    EMPTY -> PARTIAL_SELECTION -> RANGE_SELECTED -> SUBMITTING -> CONFIRMED

A locally detected conflict or a server conflict sends the proposal back to
PARTIAL_SELECTION (check-out cleared). A network failure sends it back to
RANGE_SELECTED so the same dates can be retried.
"""
import datetime
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterable, Iterator, Optional

from app.domain.availability import (
    DateRange,
    booked_day_set,
    check_in_floor,
    check_out_floor,
    compute_nights,
    compute_total_price,
    has_conflict,
    merge_ranges,
)
from app.domain.errors import (
    BookingError,
    BookingValidationError,
    NetworkError,
    RejectReason,
    ServerConflict,
)

logger = logging.getLogger(__name__)


class ProposalState(str, Enum):
    EMPTY = "empty"
    PARTIAL_SELECTION = "partial_selection"
    RANGE_SELECTED = "range_selected"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"


class SelectionOutcome(str, Enum):
    ACCEPTED = "accepted"
    CONFLICT_DETECTED = "conflict_detected"


class GuardState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"


class SubmissionGuard:
    """
    Latch allowing at most one in-flight submission.

    Single event loop: acquire() never awaits between the check and the
    transition, so no lock is needed.
    """

    def __init__(self):
        self.state = GuardState.IDLE

    @property
    def busy(self) -> bool:
        return self.state is GuardState.SUBMITTING

    @contextmanager
    def acquire(self) -> Iterator[bool]:
        if self.busy:
            yield False
            return
        self.state = GuardState.SUBMITTING
        try:
            yield True
        finally:
            self.state = GuardState.IDLE


@dataclass
class Rejection:
    reason: RejectReason
    message: str
    conflicts: list[DateRange] = field(default_factory=list)


@dataclass
class BookingProposal:
    room_id: int
    price_per_night: Decimal = Decimal("0")
    existing_ranges: tuple[DateRange, ...] = ()
    check_in: Optional[datetime.date] = None
    check_out: Optional[datetime.date] = None
    state: ProposalState = ProposalState.EMPTY
    booking_id: Optional[int] = None
    last_rejection: Optional[Rejection] = None
    guard: SubmissionGuard = field(default_factory=SubmissionGuard)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def nights(self) -> int:
        return compute_nights(self.check_in, self.check_out)

    @property
    def total_price(self) -> Decimal:
        return compute_total_price(self.nights, self.price_per_night)

    @property
    def check_out_floor(self) -> datetime.date:
        return check_out_floor(self.check_in)

    def booked_days(self, include_check_out: bool = True) -> frozenset[datetime.date]:
        return booked_day_set(self.existing_ranges, include_check_out=include_check_out)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _ensure_editable(self):
        if self.state is ProposalState.SUBMITTING:
            raise BookingValidationError("Booking is being submitted, dates are locked")
        if self.state is ProposalState.CONFIRMED:
            raise BookingValidationError("Booking is already confirmed")

    def select_check_in(
        self, day: datetime.date, today: Optional[datetime.date] = None
    ) -> None:
        self._ensure_editable()
        if day < check_in_floor(today):
            raise BookingValidationError("Check-in date cannot be in the past")
        self.check_in = day
        # Changing check-in always invalidates the chosen check-out
        self.check_out = None
        self.state = ProposalState.PARTIAL_SELECTION

    def select_check_out(self, day: datetime.date) -> SelectionOutcome:
        self._ensure_editable()
        if self.check_in is None:
            raise BookingValidationError("Select a check-in date first")
        if day < self.check_out_floor:
            raise BookingValidationError("Check-out must be after check-in")
        self.check_out = day
        return self.revalidate()

    def revalidate(self) -> SelectionOutcome:
        """Clear check-out if the selected range runs into an existing stay"""
        if self.check_in is None or self.check_out is None:
            return SelectionOutcome.ACCEPTED

        if has_conflict(self.check_in, self.check_out, self.existing_ranges):
            logger.info(
                f"Room {self.room_id}: {self.check_in} - {self.check_out} "
                f"overlaps an existing stay, clearing check-out"
            )
            self.check_out = None
            self.state = ProposalState.PARTIAL_SELECTION
            return SelectionOutcome.CONFLICT_DETECTED

        self.state = ProposalState.RANGE_SELECTED
        return SelectionOutcome.ACCEPTED

    def replace_ranges(self, ranges: Iterable[DateRange]) -> SelectionOutcome:
        """Swap in a freshly fetched list of stays"""
        self.existing_ranges = tuple(ranges)
        if self.state in (ProposalState.SUBMITTING, ProposalState.CONFIRMED):
            return SelectionOutcome.ACCEPTED
        return self.revalidate()

    def reset(self) -> None:
        self._ensure_editable()
        self.check_in = None
        self.check_out = None
        self.last_rejection = None
        self.state = ProposalState.EMPTY

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def validate_for_submit(self) -> None:
        """Raises BookingValidationError, recorded as the last rejection"""
        problem = None
        if self.check_in is None or self.check_out is None:
            problem = "Select both check-in and check-out dates"
        elif self.nights <= 0:
            problem = "Check-out must be after check-in"
        elif self.state is not ProposalState.RANGE_SELECTED:
            problem = f"Proposal cannot be submitted from state {self.state.value}"

        if problem:
            error = BookingValidationError(problem)
            self.reject(error)
            raise error

    @contextmanager
    def submission(self) -> Iterator[bool]:
        """
        Scoped submission: yields False when another submission is in flight.

        The guard goes back to IDLE on every exit path. If the body leaves
        without confirming or rejecting (an unexpected exception), the
        proposal returns to RANGE_SELECTED.
        """
        with self.guard.acquire() as acquired:
            if not acquired:
                yield False
                return
            self.validate_for_submit()
            self.state = ProposalState.SUBMITTING
            try:
                yield True
            finally:
                if self.state is ProposalState.SUBMITTING:
                    self.state = ProposalState.RANGE_SELECTED

    def to_payload(self) -> dict:
        """Booking API body, dates truncated to YYYY-MM-DD"""
        if self.check_in is None or self.check_out is None:
            raise BookingValidationError("Select both check-in and check-out dates")
        return {
            "room_id": self.room_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
        }

    def confirm(self, booking_id: Optional[int]) -> None:
        self.booking_id = booking_id
        self.last_rejection = None
        self.state = ProposalState.CONFIRMED

    def reject(self, error: BookingError) -> Rejection:
        """Apply a rejection outcome to the proposal and record it"""
        if isinstance(error, ServerConflict):
            return self.reject_server_conflict(error.conflicts, error.message)
        if isinstance(error, NetworkError):
            return self.reject_network(error.message)
        if isinstance(error, BookingValidationError):
            # Dates and state stay as they are; nothing was sent
            self.last_rejection = Rejection(
                reason=RejectReason.VALIDATION_ERROR, message=error.message
            )
            return self.last_rejection
        raise error

    def reject_server_conflict(
        self, conflicts: Iterable[DateRange], message: str = ""
    ) -> Rejection:
        conflicts = list(conflicts)
        self.existing_ranges = merge_ranges(self.existing_ranges, conflicts)
        self.check_out = None
        self.state = ProposalState.PARTIAL_SELECTION
        self.last_rejection = Rejection(
            reason=RejectReason.SERVER_CONFLICT,
            message=message,
            conflicts=conflicts,
        )
        return self.last_rejection

    def reject_network(self, message: str = "") -> Rejection:
        self.state = ProposalState.RANGE_SELECTED
        self.last_rejection = Rejection(
            reason=RejectReason.NETWORK_ERROR, message=message
        )
        return self.last_rejection
