from tutorly.bookings.create_booking import (
    CreateBookingArgs,
    create_booking,
    parse_create_booking_args,
)
from tutorly.bookings.list_bookings import get_booking_details, list_bookings, serialize_buckets
from tutorly.bookings.manage_booking import cancel_booking, complete_booking, confirm_booking
from tutorly.bookings.queries import serialize_booking

__all__ = [
    "CreateBookingArgs",
    "create_booking",
    "parse_create_booking_args",
    "get_booking_details",
    "list_bookings",
    "serialize_buckets",
    "cancel_booking",
    "complete_booking",
    "confirm_booking",
    "serialize_booking",
]
