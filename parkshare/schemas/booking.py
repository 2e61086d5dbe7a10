"""
ParkShare Backend — Booking Schemas
=====================================

What:  Request/response models for /api/bookings.

Times are ISO 8601. Naive datetimes are interpreted as UTC so they compare
cleanly with the timezone-aware values stored in the database.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from parkshare.models.booking import BookingStatus
from parkshare.models.parking_space import VehicleType
from parkshare.schemas.common import CamelModel, Pagination


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BookingCreate(CamelModel):
    parking_space_id: uuid.UUID
    start_time: datetime
    end_time: datetime
    vehicle_type: VehicleType

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="after")
    def check_time_range(self) -> "BookingCreate":
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class BookingUpdate(CamelModel):
    """Body of PUT /api/bookings/{id}; omitted fields are left untouched."""
    status: Optional[BookingStatus] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @model_validator(mode="after")
    def reject_nulls(self) -> "BookingUpdate":
        nulled = sorted(name for name in self.model_fields_set if getattr(self, name) is None)
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


class BookingResponse(CamelModel):
    id: uuid.UUID
    parking_space_id: uuid.UUID
    user_id: uuid.UUID
    start_time: datetime
    end_time: datetime
    vehicle_type: str
    total_price: float
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: BookingResponse


class BookingListResponse(CamelModel):
    success: bool = True
    data: List[BookingResponse]
    pagination: Pagination
