"""
ParkShare Backend — Parking Space Schemas
===========================================

What:  Request and response models for /api/parking-spaces.

Per-field rules (create):
    title             3..100 chars
    description       ≤ 500 chars, optional
    location.*        address, city, state, zipCode required and non-blank
    location.coordinates   optional; exactly [longitude, latitude]
    pricing.hourly    required, ≥ 0 (daily/monthly optional, ≥ 0)
    vehicleTypes      at least one of car, motorcycle, truck, van, rv, bicycle
    features          optional, each from the feature allow-list
    availability      startTime/endTime in HH:MM (24h)

Update uses the same rules with every field optional; only the fields the
client sends are applied.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from parkshare.models.parking_space import Feature, SpaceStatus, VehicleType
from parkshare.schemas.common import CamelModel, Pagination

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


def _dedupe(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


# ══════════════════════════════════════════════════════════════════════════
# Nested value objects
# ══════════════════════════════════════════════════════════════════════════


class Location(CamelModel):
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    zip_code: str = Field(min_length=1, max_length=20)
    coordinates: Optional[List[float]] = Field(
        default=None,
        description="[longitude, latitude]",
    )

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: Optional[List[float]]) -> Optional[List[float]]:
        """Coordinates must be a [longitude, latitude] pair within range."""
        if v is None:
            return v
        if len(v) != 2:
            raise ValueError("Coordinates must be an array of [longitude, latitude]")
        longitude, latitude = v
        if not -180 <= longitude <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        if not -90 <= latitude <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v


class Pricing(CamelModel):
    hourly: float = Field(ge=0, description="Price per hour")
    daily: Optional[float] = Field(default=None, ge=0)
    monthly: Optional[float] = Field(default=None, ge=0)


class Availability(CamelModel):
    start_time: str = Field(pattern=TIME_PATTERN, description="Opening time, HH:MM")
    end_time: str = Field(pattern=TIME_PATTERN, description="Closing time, HH:MM")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ParkingSpaceCreate(CamelModel):
    """Body of POST /api/parking-spaces. The owner is always the caller."""

    title: str = Field(min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    location: Location
    pricing: Pricing
    vehicle_types: List[VehicleType] = Field(min_length=1)
    features: List[Feature] = Field(default_factory=list)
    availability: Availability

    @field_validator("vehicle_types", "features")
    @classmethod
    def dedupe(cls, v: List[str]) -> List[str]:
        return _dedupe(v)


class ParkingSpaceUpdate(CamelModel):
    """Body of PUT /api/parking-spaces/{id}. Omitted fields are left untouched."""

    title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    location: Optional[Location] = None
    pricing: Optional[Pricing] = None
    vehicle_types: Optional[List[VehicleType]] = Field(default=None, min_length=1)
    features: Optional[List[Feature]] = None
    availability: Optional[Availability] = None
    status: Optional[SpaceStatus] = None

    @field_validator("vehicle_types", "features")
    @classmethod
    def dedupe(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _dedupe(v) if v is not None else v

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "ParkingSpaceUpdate":
        """Only `description` may be cleared with an explicit null."""
        nulled = sorted(
            name for name in self.model_fields_set
            if name != "description" and getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class OwnerSummary(CamelModel):
    """Short owner profile embedded in parking space responses."""
    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None


class ParkingSpaceResponse(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    owner: Optional[OwnerSummary] = Field(
        default=None, description="Expanded owner profile (omitted on the owner's own listing)"
    )
    title: str
    description: Optional[str] = None
    location: Location
    pricing: Pricing
    vehicle_types: List[str]
    features: List[str]
    availability: Availability
    status: str
    created_at: datetime
    updated_at: datetime


class ParkingSpaceEnvelope(CamelModel):
    """Single-record response: POST, GET by id, PUT."""
    success: bool = True
    message: Optional[str] = None
    data: ParkingSpaceResponse


class ParkingSpaceListResponse(CamelModel):
    """Paginated response for the public listing and the owner's listing."""
    success: bool = True
    data: List[ParkingSpaceResponse]
    pagination: Pagination
