"""
Client for the external Booking API (rooms, bookings, user level)
"""
import requests
from typing import Dict, List, Optional
import logging
from pydantic import ValidationError

from app.core.config import settings
from app.domain.availability import DateRange, parse_ranges
from app.schemas.room import Room

logger = logging.getLogger(__name__)

CONFLICT_ERROR = "Room is already booked for selected dates"


class BookingAPIError(Exception):
    """Transport failure or unexpected response from the Booking API"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BookingAPIConflict(BookingAPIError):
    """The API refused the booking because the dates are taken"""

    def __init__(self, message: str, conflicts: List[DateRange], status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.conflicts = conflicts


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        return data.get("message") or data.get("error") or str(data)
    return str(data)


class BookingAPIService:
    """Thin wrapper over the Booking API REST endpoints"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.booking_api_url).rstrip("/")
        self.timeout = timeout or settings.booking_api_timeout_seconds
        self.session = requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        **kwargs,
    ) -> requests.Response:
        headers = kwargs.pop("headers", {})
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            return self.session.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Booking API {method} {path} failed: {e}")
            raise BookingAPIError(f"Booking API unavailable: {e}") from e

    def _json(self, response: requests.Response, path: str) -> Dict:
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.error(f"HTTP error on {path}: {e}")
            logger.error(f"Response body: {response.text}")
            raise BookingAPIError(_error_message(response), response.status_code) from e

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Non-JSON response on {path}: {response.text[:200]}")
            raise BookingAPIError("Booking API returned invalid JSON", response.status_code) from e

    def _room(self, raw: Dict, response: requests.Response, path: str) -> Room:
        try:
            return Room.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Invalid room on {path}: {e}")
            raise BookingAPIError(
                "Booking API returned an invalid room", response.status_code
            ) from e

    def list_rooms(self) -> List[Room]:
        path = "/api/rooms/list"
        response = self._request("GET", path)
        data = self._json(response, path)
        rooms = [self._room(raw, response, path) for raw in data.get("rooms") or []]
        logger.info(f"Received {len(rooms)} rooms")
        return rooms

    def get_room(self, room_id: int) -> Room:
        """
        Room record with its confirmed stays.

        Returns:
            Room whose `bookings` hold the existing DateRanges
        """
        path = f"/api/rooms/{room_id}"
        response = self._request("GET", path)
        data = self._json(response, path)

        raw_room = data.get("room")
        if not raw_room:
            logger.error(f"No room in response: {data}")
            raise BookingAPIError(f"Room {room_id} not found", 404)

        room = self._room(raw_room, response, path)
        logger.info(f"Room {room_id}: {len(room.bookings)} existing stays")
        return room

    def create_booking(self, token: str, payload: Dict) -> Dict:
        """
        Submit a booking.

        Args:
            token: bearer token of the guest
            payload: {"room_id", "check_in", "check_out"} with YYYY-MM-DD dates

        Returns:
            The created booking record

        Raises:
            BookingAPIConflict: dates already taken, with the conflicting stays
            BookingAPIError: anything else
        """
        path = "/api/booking/create"
        logger.info(
            f"Creating booking for room {payload.get('room_id')}: "
            f"{payload.get('check_in')} - {payload.get('check_out')}"
        )
        response = self._request("POST", path, token=token, json=payload)

        try:
            data = response.json()
        except ValueError:
            data = {}

        # The API reports overlaps in the body, sometimes with a 2xx status
        if isinstance(data, dict) and (
            data.get("error") == CONFLICT_ERROR or response.status_code == 409
        ):
            conflicts = parse_ranges(data.get("conflicts"))
            logger.warning(
                f"Booking API rejected room {payload.get('room_id')}: "
                f"{len(conflicts)} conflicting stays"
            )
            raise BookingAPIConflict(
                data.get("error") or CONFLICT_ERROR, conflicts, response.status_code
            )

        data = self._json(response, path)
        booking = data.get("booking")
        if not booking:
            logger.error(f"No booking in response: {data}")
            raise BookingAPIError(
                data.get("message") or data.get("error") or "Booking was not created",
                response.status_code,
            )
        return booking

    def get_booking_history(self, token: str) -> List[Dict]:
        path = "/api/booking/history"
        data = self._json(self._request("GET", path, token=token), path)
        return data.get("bookings") or []

    def get_user_level(self, token: str) -> Dict:
        """Returns {"id": ..., "role": ...} for the token owner"""
        path = "/api/users/level"
        return self._json(self._request("GET", path, token=token), path)


booking_api_service = BookingAPIService()
