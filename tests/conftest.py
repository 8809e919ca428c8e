"""
Pytest configuration for LuxuryStay booking tests
"""
import os
import sys
import time
from datetime import date, timedelta
from pathlib import Path

import pytest

# Ensure app is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BOOKING_API_URL", "http://booking-api.test")


class FakeBookingAPI:
    """In-memory stand-in for BookingAPIService"""

    def __init__(self, rooms=None, user_level=None, submit_delay: float = 0.0):
        self.rooms = rooms or {}
        self.user_level = user_level or {"id": 7, "role": "user"}
        self.submit_delay = submit_delay
        self.create_calls = []
        self.create_error = None
        self.history = []

    def list_rooms(self):
        return list(self.rooms.values())

    def get_room(self, room_id):
        from app.services.booking_api_service import BookingAPIError

        if room_id not in self.rooms:
            raise BookingAPIError(f"Room {room_id} not found", 404)
        return self.rooms[room_id]

    def create_booking(self, token, payload):
        self.create_calls.append((token, payload))
        if self.submit_delay:
            time.sleep(self.submit_delay)
        if self.create_error is not None:
            raise self.create_error
        return {"id": 100 + len(self.create_calls), **payload}

    def get_booking_history(self, token):
        return self.history

    def get_user_level(self, token):
        return self.user_level


@pytest.fixture
def fake_api_cls():
    return FakeBookingAPI


@pytest.fixture
def future():
    """Day offsets relative to today, so the past-date guard never trips"""
    base = date.today() + timedelta(days=30)
    return lambda days=0: base + timedelta(days=days)


@pytest.fixture
def sample_room_payload():
    """Room as returned by GET /api/rooms/{id}"""
    return {
        "id": 1,
        "title": "Deluxe Sea View",
        "type": "deluxe",
        "price": "1500",
        "image": "https://cdn.test/rooms/1.jpg",
        "description": "King bed, balcony",
        "bookings": [
            {"check_in": "2025-02-01", "check_out": "2025-02-05"},
        ],
    }


@pytest.fixture
def make_room():
    from app.domain.availability import DateRange
    from app.schemas.room import Room

    def _make(room_id=1, price="1500", ranges=()):
        return Room(
            id=room_id,
            title=f"Room {room_id}",
            type="standard",
            price=price,
            bookings=[DateRange(start, end) for start, end in ranges],
        )

    return _make
