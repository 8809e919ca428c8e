import asyncio
import logging
from typing import Optional
from fastapi import Request, HTTPException, status

from app.core.config import settings
from app.core.messages import messages
from app.core.session import SessionContext, UserRole
from app.services.booking_api_service import BookingAPIError, booking_api_service

logger = logging.getLogger(__name__)


def get_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, falling back to the session cookie"""
    auth = request.headers.get("Authorization", "")
    scheme, _, credentials = auth.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.session_cookie_name) or None


async def get_session(request: Request) -> SessionContext:
    """
    Dependency resolving the caller's SessionContext.
    The Booking API owns the token; we only ask it who the token belongs to.
    """
    token = get_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=messages.SIGN_IN_REQUIRED
        )

    try:
        level = await asyncio.to_thread(booking_api_service.get_user_level, token)
    except BookingAPIError as e:
        if e.status_code in (401, 403):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
            ) from e
        raise

    try:
        return SessionContext(
            token=token,
            user_id=int(level["id"]),
            role=UserRole(level.get("role", UserRole.USER.value)),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Unexpected user level payload: {level}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        ) from e
