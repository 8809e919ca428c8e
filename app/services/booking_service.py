import logging
import asyncio
import datetime
from typing import Dict, List, Optional, Tuple

from app.core.config import settings
from app.core.messages import messages
from app.core.session import SessionContext
from app.domain.availability import (
    booked_day_set,
    check_out_floor,
    compute_nights,
    compute_total_price,
    conflicting_ranges,
)
from app.domain.errors import (
    BookingError,
    BookingValidationError,
    ConflictDetected,
    NetworkError,
    ServerConflict,
)
from app.domain.proposal import BookingProposal, ProposalState, SelectionOutcome
from app.schemas.booking import BookingHistoryItem
from app.schemas.room import Room
from app.services.booking_api_service import (
    BookingAPIConflict,
    BookingAPIError,
    BookingAPIService,
    booking_api_service,
)

logger = logging.getLogger(__name__)


class BookingService:
    """Booking logic on top of the external Booking API"""

    def __init__(self, api: Optional[BookingAPIService] = None):
        self.api = api or booking_api_service
        # (user_id, room_id) -> proposal in progress
        self.proposals: Dict[Tuple[int, int], BookingProposal] = {}

    async def list_rooms(self) -> List[Room]:
        return await asyncio.to_thread(self.api.list_rooms)

    async def load_room(self, room_id: int) -> Room:
        """
        Fetch the room with its existing stays.
        Raises BookingAPIError on failure (caller should handle).
        """
        return await asyncio.to_thread(self.api.get_room, room_id)

    async def booking_history(self, session: SessionContext) -> List[BookingHistoryItem]:
        rows = await asyncio.to_thread(self.api.get_booking_history, session.token)
        return [BookingHistoryItem.model_validate(row) for row in rows]

    def quote(
        self,
        room: Room,
        check_in: Optional[datetime.date],
        check_out: Optional[datetime.date],
    ) -> Dict:
        """Nights, price and conflict state for a date pair, no side effects"""
        nights = compute_nights(check_in, check_out)
        conflicts = []
        if nights > 0:
            conflicts = conflicting_ranges(check_in, check_out, room.bookings)

        return {
            "room_id": room.id,
            "check_in": check_in,
            "check_out": check_out,
            "check_out_floor": check_out_floor(check_in),
            "nights": nights,
            "price_per_night": room.price,
            "total_price": compute_total_price(nights, room.price),
            "conflict": bool(conflicts),
            "conflicts": conflicts,
        }

    def get_proposal(self, session: SessionContext, room: Room) -> BookingProposal:
        key = (session.user_id, room.id)
        proposal = self.proposals.get(key)
        if proposal is None or proposal.state is ProposalState.CONFIRMED:
            self._evict_idle(keep=key)
            proposal = BookingProposal(room_id=room.id)
            self.proposals[key] = proposal
        proposal.price_per_night = room.price
        return proposal

    def discard_proposal(self, session: SessionContext, room_id: int) -> None:
        self.proposals.pop((session.user_id, room_id), None)

    def _evict_idle(self, keep: Tuple[int, int]) -> None:
        """Drop the oldest idle proposals once the store is full"""
        limit = settings.proposal_store_limit
        for key in list(self.proposals):
            if len(self.proposals) < limit:
                break
            if key != keep and not self.proposals[key].guard.busy:
                del self.proposals[key]

    async def book(
        self,
        session: SessionContext,
        room_id: int,
        check_in: Optional[datetime.date],
        check_out: Optional[datetime.date],
        today: Optional[datetime.date] = None,
    ) -> Optional[BookingProposal]:
        """
        Select the dates on the guest's proposal and submit it.

        Returns None when a submission for the same room is already in flight.
        """
        if check_in is None or check_out is None:
            raise BookingValidationError(messages.SELECT_DATES)
        if check_out <= check_in:
            raise BookingValidationError(messages.CHECK_OUT_AFTER_CHECK_IN)

        in_flight = self.proposals.get((session.user_id, room_id))
        if in_flight is not None and in_flight.guard.busy:
            logger.info(f"Booking for room {room_id} already in flight, ignoring")
            return None

        room = await self.load_room(room_id)

        proposal = self.get_proposal(session, room)
        # Re-check: another request may have started submitting while we fetched
        if proposal.guard.busy:
            logger.info(f"Booking for room {room_id} already in flight, ignoring")
            return None

        try:
            proposal.replace_ranges(room.bookings)
            proposal.select_check_in(check_in, today=today)
            outcome = proposal.select_check_out(check_out)

            if outcome is SelectionOutcome.CONFLICT_DETECTED:
                raise ConflictDetected(
                    messages.DATES_UNAVAILABLE,
                    conflicting_ranges(check_in, check_out, proposal.existing_ranges),
                )
        except BookingError:
            # Nothing was sent; the guest starts over from the room page
            self.discard_proposal(session, room_id)
            raise

        return await self.submit(session, proposal)

    async def submit(
        self, session: SessionContext, proposal: BookingProposal
    ) -> Optional[BookingProposal]:
        """
        Send the proposal to the Booking API through its submission guard.

        Returns None for a re-entrant call while a submission is in flight.
        Raises ServerConflict / NetworkError after updating the proposal.
        """
        with proposal.submission() as acquired:
            if not acquired:
                logger.info(f"Proposal for room {proposal.room_id} already submitting")
                return None

            payload = proposal.to_payload()
            try:
                booking = await asyncio.to_thread(
                    self.api.create_booking, session.token, payload
                )
            except BookingAPIConflict as e:
                error = ServerConflict(messages.DATES_TAKEN, e.conflicts)
                proposal.reject(error)
                raise error from e
            except BookingAPIError as e:
                logger.error(
                    f"Booking submission for room {proposal.room_id} failed: {e}",
                    exc_info=True,
                )
                error = NetworkError(messages.booking_failed(e.message))
                proposal.reject(error)
                raise error from e

            proposal.confirm(booking.get("id"))

        logger.info(
            f"✅ Booking #{proposal.booking_id} confirmed for user {session.user_id}: "
            f"room {proposal.room_id}, {proposal.check_in} - {proposal.check_out}"
        )
        self.discard_proposal(session, proposal.room_id)
        return proposal

    def booked_days(self, room: Room) -> List[datetime.date]:
        return sorted(
            booked_day_set(
                room.bookings,
                include_check_out=settings.booked_days_include_checkout,
            )
        )


booking_service = BookingService()
