"""
ParkShare Backend — Booking Model
===================================

What:  ORM model for the `bookings` table: a user's reservation of a
       parking space for a time range.
Who:   Written and read by BookingService.
"""

import uuid
from datetime import datetime, timezone
from typing import Literal, get_args

from sqlalchemy import CheckConstraint, Float, ForeignKey, Index, String, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parkshare.database import Base

BookingStatus = Literal["pending", "confirmed", "cancelled", "completed"]
BOOKING_STATUSES = get_args(BookingStatus)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    """A reservation of one parking space by one user."""

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    parking_space_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("parking_spaces.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    vehicle_type: Mapped[str] = mapped_column(String(20), nullable=False)
    total_price: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        server_default=text("'pending'"),
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

    parking_space: Mapped["ParkingSpace"] = relationship(back_populates="bookings")  # noqa: F821
    user: Mapped["User"] = relationship()  # noqa: F821

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_bookings_time_range"),
        CheckConstraint("total_price >= 0", name="ck_bookings_total_price_non_negative"),
        Index("idx_bookings_space_time", "parking_space_id", "start_time", "end_time"),
        Index("idx_bookings_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, space={self.parking_space_id}, status='{self.status}')>"
