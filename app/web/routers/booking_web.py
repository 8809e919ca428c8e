from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.messages import messages
from app.core.rate_limiter import limiter
from app.core.session import SessionContext
from app.domain.proposal import ProposalState
from app.schemas.booking import BookingHistoryItem, BookingResultOut, DateSelection
from app.services.booking_service import booking_service
from app.web.deps import get_session

router = APIRouter(tags=["bookings"])


@router.post(
    "/rooms/{room_id}/bookings",
    response_model=BookingResultOut,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.rate_limit_booking)
async def create_booking(
    request: Request,
    room_id: int,
    selection: DateSelection,
    session: SessionContext = Depends(get_session),
):
    """
    Submit the guest's dates for a room.
    A second submit while the first is still in flight is a no-op (202).
    """
    proposal = await booking_service.book(
        session, room_id, selection.check_in, selection.check_out
    )

    if proposal is None:
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=BookingResultOut(
                room_id=room_id,
                state=ProposalState.SUBMITTING,
                check_in=selection.check_in,
                check_out=selection.check_out,
                message=messages.SUBMISSION_IN_PROGRESS,
            ).model_dump(mode="json"),
        )

    return BookingResultOut(
        room_id=proposal.room_id,
        state=proposal.state,
        booking_id=proposal.booking_id,
        check_in=proposal.check_in,
        check_out=proposal.check_out,
        nights=proposal.nights,
        total_price=proposal.total_price,
        message=messages.BOOKING_CONFIRMED,
    )


@router.get("/bookings/history", response_model=list[BookingHistoryItem])
async def booking_history(session: SessionContext = Depends(get_session)):
    return await booking_service.booking_history(session)
