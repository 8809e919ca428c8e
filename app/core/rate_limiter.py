"""
Booking submission rate limits.

Kept out of main.py so the routers can import `limiter` without a cycle.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings
from app.web.deps import get_token


def guest_key(request: Request) -> str:
    """Signed-in guests share one budget across addresses; anonymous calls count per IP"""
    token = get_token(request)
    if token:
        return f"session:{token}"
    return get_remote_address(request)


limiter = Limiter(
    key_func=guest_key,
    enabled=settings.rate_limit_enabled,
)
