from tutorly.db.base import Base
from tutorly.db.models import Booking, Profile

__all__ = [
    "Base",
    "Booking",
    "Profile",
]
