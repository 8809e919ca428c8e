import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler
from slowapi.middleware import SlowAPIMiddleware

from app.core.logging import setup_logging
from app.core.messages import messages
from app.core.rate_limiter import limiter
from app.domain.errors import (
    BookingValidationError,
    ConflictDetected,
    NetworkError,
    ServerConflict,
)
from app.middleware.request_logger import RequestLoggerMiddleware
from app.schemas.booking import BookingErrorOut
from app.schemas.room import BookedRange
from app.services.booking_api_service import BookingAPIError

from app.api.health import router as health_router
from app.web.routers import booking_web, room_web


# -------------------------------------------------
# Logging
# -------------------------------------------------

setup_logging()
logger = logging.getLogger(__name__)

logger.info("Starting application")


# -------------------------------------------------
# FastAPI
# -------------------------------------------------

app = FastAPI(
    title="LuxuryStay Booking",
    description="Room availability, pricing and booking on top of the Booking API",
    version="0.1.0",
)

# -------------------------------------------------
# Rate Limiting (slowapi)
# -------------------------------------------------
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestLoggerMiddleware)


# -------------------------------------------------
# Booking errors -> JSON
# -------------------------------------------------


def _error_response(status_code: int, error: str, exc, conflicts=()) -> JSONResponse:
    conflicts = list(conflicts)
    body = BookingErrorOut(
        error=error,
        reason=exc.reason.value if getattr(exc, "reason", None) else None,
        message=exc.message,
        conflicts=[BookedRange.from_range(r) for r in conflicts],
        details=messages.conflict_lines(conflicts),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(BookingValidationError)
async def validation_error_handler(request: Request, exc: BookingValidationError):
    return _error_response(422, "validation_error", exc)


@app.exception_handler(ConflictDetected)
async def conflict_detected_handler(request: Request, exc: ConflictDetected):
    return _error_response(
        status.HTTP_409_CONFLICT, "conflict_detected", exc, exc.conflicts
    )


@app.exception_handler(ServerConflict)
async def server_conflict_handler(request: Request, exc: ServerConflict):
    return _error_response(
        status.HTTP_409_CONFLICT, "server_conflict", exc, exc.conflicts
    )


@app.exception_handler(NetworkError)
async def network_error_handler(request: Request, exc: NetworkError):
    return _error_response(status.HTTP_502_BAD_GATEWAY, "network_error", exc)


@app.exception_handler(BookingAPIError)
async def booking_api_error_handler(request: Request, exc: BookingAPIError):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message}
        )
    logger.error(f"Booking API error on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": messages.booking_failed(exc.message)},
    )


app.include_router(health_router)
app.include_router(room_web.router)
app.include_router(booking_web.router)


# -------------------------------------------------
# Lifecycle
# -------------------------------------------------


@app.on_event("startup")
async def on_startup():
    from app.core.config import settings

    logger.info(f"FastAPI startup, Booking API at {settings.booking_api_url}")


@app.on_event("shutdown")
async def on_shutdown():
    logger.info("FastAPI shutdown")

    from app.services.booking_api_service import booking_api_service

    booking_api_service.session.close()
