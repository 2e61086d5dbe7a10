"""
ParkShare Backend — ParkingSpace Model
========================================

What:  ORM model for the `parking_spaces` table.
Who:   Written by ParkingSpaceService (create/update/delete by owner or
       admin); read by everyone through the filtered listing and by id.

Table Design:
    - Location is flattened into address/city/state/zip_code columns plus a
      nullable longitude/latitude pair. The API exposes it as a nested
      `location` object with `coordinates: [lng, lat]`.
    - Pricing: hourly_price is required and non-negative (CHECK constraint);
      daily/monthly prices are optional.
    - vehicle_types and features are PostgreSQL text arrays so the listing
      filter can use array containment (@>) and overlap (&&).
    - availability_start / availability_end hold "HH:MM" strings.

Indexes:
    (status, created_at DESC) serves the default listing: active spaces,
    newest first. city and owner_id serve the location filter and the
    owner's "my spaces" page.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Literal, Optional, get_args

from sqlalchemy import CheckConstraint, Float, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parkshare.database import Base

VehicleType = Literal["car", "motorcycle", "truck", "van", "rv", "bicycle"]
VEHICLE_TYPES = get_args(VehicleType)

Feature = Literal[
    "covered",
    "security_camera",
    "lighting",
    "electric_charging",
    "handicap_accessible",
    "car_wash",
    "valet_service",
]
FEATURES = get_args(Feature)

SpaceStatus = Literal["active", "inactive", "pending"]
SPACE_STATUSES = get_args(SpaceStatus)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParkingSpace(Base):
    """
    A rentable parking space listed by an owner.

    Lifecycle:
        1. Created by an owner/admin (status defaults to 'active')
        2. Updated by its owner or an admin (including status changes)
        3. Deleted by its owner or an admin; bookings cascade
    """

    __tablename__ = "parking_spaces"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Location ──────────────────────────────────────────────────────────
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # ── Pricing ───────────────────────────────────────────────────────────
    hourly_price: Mapped[float] = mapped_column(Float, nullable=False)
    daily_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    monthly_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    vehicle_types: Mapped[List[str]] = mapped_column(
        ARRAY(String(20)),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )
    features: Mapped[List[str]] = mapped_column(
        ARRAY(String(40)),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )

    availability_start: Mapped[str] = mapped_column(String(5), nullable=False)
    availability_end: Mapped[str] = mapped_column(String(5), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
        server_default=text("'active'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    owner: Mapped["User"] = relationship(back_populates="parking_spaces")  # noqa: F821
    bookings: Mapped[List["Booking"]] = relationship(  # noqa: F821
        back_populates="parking_space",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("hourly_price >= 0", name="ck_parking_spaces_hourly_price_non_negative"),
        CheckConstraint(
            "(longitude IS NULL) = (latitude IS NULL)",
            name="ck_parking_spaces_coordinates_pair",
        ),
        Index("idx_parking_spaces_status_created_at", "status", created_at.desc()),
        Index("idx_parking_spaces_city", "city"),
        Index("idx_parking_spaces_owner_id", "owner_id"),
    )

    @property
    def coordinates(self) -> Optional[List[float]]:
        """[longitude, latitude] when both are stored, else None."""
        if self.longitude is None or self.latitude is None:
            return None
        return [self.longitude, self.latitude]

    def __repr__(self) -> str:
        return (
            f"<ParkingSpace(id={self.id}, title='{self.title}', "
            f"city='{self.city}', status='{self.status}')>"
        )
