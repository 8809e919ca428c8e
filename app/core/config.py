import os
from dotenv import load_dotenv
from pydantic import BaseModel

# Load variables from .env
load_dotenv()


class Settings(BaseModel):
    # Booking API (rooms, bookings, user level)
    booking_api_url: str = "http://localhost:3001"
    booking_api_timeout_seconds: float = 10.0

    # Session token lookup (bearer header first, then this cookie)
    session_cookie_name: str = "bun_token_key"

    # Calendar highlighting: mark the check-out day of existing stays as booked
    booked_days_include_checkout: bool = True

    # Unsubmitted proposals kept in memory; the oldest idle ones are evicted
    proposal_store_limit: int = 1000

    # Rate limiting settings
    rate_limit_enabled: bool = True  # Killswitch for quick disable
    rate_limit_booking: str = "10/minute"  # Booking submissions per guest session

    # Logging settings
    log_format: str = "console"  # Options: "console", "json"
    log_slow_request_threshold_ms: int = 500  # Log timing only if duration > threshold


settings = Settings(
    booking_api_url=os.environ.get("BOOKING_API_URL", "http://localhost:3001").rstrip("/"),
    booking_api_timeout_seconds=float(os.environ.get("BOOKING_API_TIMEOUT_SECONDS", "10")),
    session_cookie_name=os.environ.get("SESSION_COOKIE_NAME", "bun_token_key"),
    booked_days_include_checkout=os.environ.get(
        "BOOKED_DAYS_INCLUDE_CHECKOUT", "true"
    ).lower()
    == "true",
    proposal_store_limit=int(os.environ.get("PROPOSAL_STORE_LIMIT", "1000")),
    rate_limit_enabled=os.environ.get("RATE_LIMIT_ENABLED", "true").lower() == "true",
    rate_limit_booking=os.environ.get("RATE_LIMIT_BOOKING", "10/minute"),
    log_format=os.environ.get("LOG_FORMAT", "console"),
    log_slow_request_threshold_ms=int(
        os.environ.get("LOG_SLOW_REQUEST_THRESHOLD_MS", "500")
    ),
)
