from tutorly.tutors.availability import get_availability, parse_availability, update_availability

__all__ = [
    "get_availability",
    "parse_availability",
    "update_availability",
]
