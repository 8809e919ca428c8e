"""
Rate limit keys for booking submissions
"""
from starlette.requests import Request

from app.core.rate_limiter import guest_key


def make_request(headers=()):
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/rooms/1/bookings",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers],
            "client": ("203.0.113.7", 51000),
        }
    )


def test_bearer_token_is_the_key():
    request = make_request([("Authorization", "Bearer guest-token")])
    assert guest_key(request) == "session:guest-token"


def test_session_cookie_is_the_key():
    request = make_request([("Cookie", "bun_token_key=cookie-token")])
    assert guest_key(request) == "session:cookie-token"


def test_anonymous_falls_back_to_client_address():
    assert guest_key(make_request()) == "203.0.113.7"
