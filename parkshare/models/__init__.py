"""
ParkShare Backend — ORM Models
================================

What:  SQLAlchemy models for the three stored record types.
Why imported here: Alembic and the relationship() string references need
every model registered with Base.metadata before first use.
"""

from parkshare.models.booking import BOOKING_STATUSES, Booking, BookingStatus
from parkshare.models.parking_space import (
    FEATURES,
    SPACE_STATUSES,
    VEHICLE_TYPES,
    Feature,
    ParkingSpace,
    SpaceStatus,
    VehicleType,
)
from parkshare.models.user import Role, User

__all__ = [
    "BOOKING_STATUSES",
    "Booking",
    "BookingStatus",
    "FEATURES",
    "Feature",
    "ParkingSpace",
    "Role",
    "SPACE_STATUSES",
    "SpaceStatus",
    "User",
    "VEHICLE_TYPES",
    "VehicleType",
]
