from fastapi import APIRouter

from app.api.v1.endpoints import appointments, availability

api_router = APIRouter()

# Slot, capacity and technician availability
api_router.include_router(
    availability.router, prefix="/availability", tags=["availability"]
)

# Booking and appointment lifecycle
api_router.include_router(
    appointments.router, prefix="/appointments", tags=["appointments"]
)
