# Import all models to ensure they are registered with SQLAlchemy
from . import (
    appointment,
    booking_day,
    service,
    user,
)

__all__ = [
    "appointment",
    "booking_day",
    "service",
    "user",
]
