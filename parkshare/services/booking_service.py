"""
ParkShare Backend — Booking Service
=====================================

What:  Business logic for /api/bookings.
Who:   Called by parkshare/routes/bookings.py.

Rules:
    - A booking targets an existing (404) and active (400) space.
    - The vehicle type must be one the space accepts (400).
    - The time range must not overlap another non-cancelled booking of the
      same space (400). Ranges are half-open: one booking may end exactly
      when the next begins.
    - total_price = hours × hourly price, rounded to cents.
    - Reading: the booker, the owner of the booked space, or an admin.
    - Updating/deleting: the booker or an admin.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.exceptions import (
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from parkshare.models.booking import BOOKING_STATUSES, Booking
from parkshare.models.parking_space import ParkingSpace
from parkshare.models.user import User
from parkshare.schemas.booking import (
    BookingCreate,
    BookingEnvelope,
    BookingListResponse,
    BookingResponse,
    BookingUpdate,
)
from parkshare.schemas.common import MessageResponse, Pagination
from parkshare.security import ensure_owner_or_admin

logger = logging.getLogger(__name__)


def quote_price(hourly_price: float, start_time: datetime, end_time: datetime) -> float:
    """Price of a stay: hourly rate × duration in hours, rounded to cents."""
    hours = (end_time - start_time).total_seconds() / 3600
    return round(hourly_price * hours, 2)


class BookingService:
    """Business logic layer for bookings."""

    async def create(
        self, db: AsyncSession, caller: User, payload: BookingCreate
    ) -> BookingEnvelope:
        try:
            space = await db.get(ParkingSpace, payload.parking_space_id)
            if space is None:
                raise NotFoundError(
                    resource="parking space", resource_id=str(payload.parking_space_id)
                )
            if space.status != "active":
                raise ValidationError(
                    "Parking space is not available for booking", field="parkingSpaceId"
                )
            if payload.vehicle_type not in (space.vehicle_types or []):
                raise ValidationError(
                    f"This parking space does not accept vehicle type '{payload.vehicle_type}'",
                    field="vehicleType",
                )
            await self._ensure_no_overlap(
                db, space.id, payload.start_time, payload.end_time
            )

            booking = Booking(
                parking_space_id=space.id,
                user_id=caller.id,
                start_time=payload.start_time,
                end_time=payload.end_time,
                vehicle_type=payload.vehicle_type,
                total_price=quote_price(space.hourly_price, payload.start_time, payload.end_time),
            )
            db.add(booking)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating booking: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the booking. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Booking %s created for space %s by user %s", booking.id, space.id, caller.id)
        return BookingEnvelope(
            message="Booking created successfully",
            data=BookingResponse.model_validate(booking),
        )

    async def list_for(
        self,
        db: AsyncSession,
        caller: User,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
    ) -> BookingListResponse:
        """The caller's bookings; admins see every booking."""
        conditions = []
        if not caller.is_admin:
            conditions.append(Booking.user_id == caller.id)
        if status in BOOKING_STATUSES:
            conditions.append(Booking.status == status)

        try:
            result = await db.execute(
                select(Booking)
                .where(*conditions)
                .order_by(Booking.start_time.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            bookings = list(result.scalars().all())
            count_result = await db.execute(
                select(func.count()).select_from(Booking).where(*conditions)
            )
            total = count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error listing bookings: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve bookings. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return BookingListResponse(
            data=[BookingResponse.model_validate(b) for b in bookings],
            pagination=Pagination.build(page, limit, total),
        )

    async def get(self, db: AsyncSession, caller: User, booking_id: uuid.UUID) -> BookingEnvelope:
        booking = await self._load(db, booking_id)
        if not caller.is_admin and caller.id != booking.user_id:
            space = await db.get(ParkingSpace, booking.parking_space_id)
            if space is None or space.owner_id != caller.id:
                raise AuthorizationError("You do not have access to this booking")
        return BookingEnvelope(data=BookingResponse.model_validate(booking))

    async def update(
        self,
        db: AsyncSession,
        caller: User,
        booking_id: uuid.UUID,
        payload: BookingUpdate,
    ) -> BookingEnvelope:
        """
        Change status and/or times.

        Changed times are re-checked and re-priced. Moving a cancelled
        booking back to a live status re-checks its current slot.
        """
        booking = await self._load(db, booking_id)
        ensure_owner_or_admin(caller, booking.user_id, resource="booking")

        fields = payload.model_fields_set
        try:
            if "start_time" in fields or "end_time" in fields:
                start = payload.start_time if "start_time" in fields else booking.start_time
                end = payload.end_time if "end_time" in fields else booking.end_time
                if end <= start:
                    raise ValidationError("endTime must be after startTime", field="endTime")
                await self._ensure_no_overlap(
                    db, booking.parking_space_id, start, end, exclude_id=booking.id
                )
                space = await db.get(ParkingSpace, booking.parking_space_id)
                if space is None:
                    raise NotFoundError(
                        resource="parking space", resource_id=str(booking.parking_space_id)
                    )
                booking.start_time = start
                booking.end_time = end
                booking.total_price = quote_price(space.hourly_price, start, end)
            elif (
                "status" in fields
                and booking.status == "cancelled"
                and payload.status != "cancelled"
            ):
                # A revived booking must still fit around the live ones.
                await self._ensure_no_overlap(
                    db,
                    booking.parking_space_id,
                    booking.start_time,
                    booking.end_time,
                    exclude_id=booking.id,
                )
            if "status" in fields:
                booking.status = payload.status
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating booking %s: %s", booking_id, str(e))
            raise DatabaseError(
                message="Could not update the booking. Please try again.",
                context={"booking_id": str(booking_id), "error_type": type(e).__name__},
            )

        logger.info("Booking %s updated by user %s", booking_id, caller.id)
        return BookingEnvelope(
            message="Booking updated successfully",
            data=BookingResponse.model_validate(booking),
        )

    async def delete(
        self, db: AsyncSession, caller: User, booking_id: uuid.UUID
    ) -> MessageResponse:
        booking = await self._load(db, booking_id)
        ensure_owner_or_admin(caller, booking.user_id, resource="booking")
        try:
            await db.delete(booking)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting booking %s: %s", booking_id, str(e))
            raise DatabaseError(
                message="Could not delete the booking. Please try again.",
                context={"booking_id": str(booking_id), "error_type": type(e).__name__},
            )

        logger.info("Booking %s deleted by user %s", booking_id, caller.id)
        return MessageResponse(message="Booking deleted successfully")

    async def _ensure_no_overlap(
        self,
        db: AsyncSession,
        space_id: uuid.UUID,
        start: datetime,
        end: datetime,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        conditions = [
            Booking.parking_space_id == space_id,
            Booking.status != "cancelled",
            Booking.start_time < end,
            Booking.end_time > start,
        ]
        if exclude_id is not None:
            conditions.append(Booking.id != exclude_id)
        result = await db.execute(select(func.count()).select_from(Booking).where(*conditions))
        if (result.scalar() or 0) > 0:
            raise ValidationError(
                "Parking space is already booked for the requested time", field="startTime"
            )

    async def _load(self, db: AsyncSession, booking_id: uuid.UUID) -> Booking:
        try:
            booking = await db.get(Booking, booking_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching booking %s: %s", booking_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the booking. Please try again.",
                context={"booking_id": str(booking_id)},
            )
        if booking is None:
            raise NotFoundError(resource="booking", resource_id=str(booking_id))
        return booking


booking_service = BookingService()
