"""Booking error taxonomy.

Every error is a recoverable, user-facing condition. Each class carries the
HTTP status and the stable code the API reports for it.
"""


class BookingError(Exception):
    """Base class for domain/service errors."""

    status_code = 400
    code = "booking_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInterval(BookingError):
    code = "invalid_interval"


class RoomNotFound(BookingError):
    status_code = 404
    code = "room_not_found"

    def __init__(self, room_id: int) -> None:
        super().__init__(f"Room {room_id} not found")
        self.room_id = room_id


class SlotUnavailable(BookingError):
    status_code = 409
    code = "slot_unavailable"


class ReservationNotFound(BookingError):
    status_code = 404
    code = "reservation_not_found"

    def __init__(self, reservation_id: int) -> None:
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


class Forbidden(BookingError):
    status_code = 403
    code = "forbidden"
