"""
ParkShare Backend — Booking Service Unit Tests
================================================

What:  Tests for BookingService rules: availability, vehicle type, overlap,
       pricing, and who may read or change a booking.
How:   Mock DB session; session.get() returns the space/booking under test.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from conftest import make_result
from parkshare.exceptions import AuthorizationError, NotFoundError, ValidationError
from parkshare.models import Booking
from parkshare.schemas.booking import BookingCreate, BookingUpdate
from parkshare.services.booking_service import BookingService, quote_price

START = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def booking_payload(space, hours=3, vehicle_type="car"):
    return BookingCreate(
        parking_space_id=space.id,
        start_time=START,
        end_time=START + timedelta(hours=hours),
        vehicle_type=vehicle_type,
    )


def make_booking(space, user, **overrides):
    values = dict(
        id=uuid4(),
        parking_space_id=space.id,
        user_id=user.id,
        start_time=START,
        end_time=START + timedelta(hours=2),
        vehicle_type="car",
        total_price=10.0,
        status="pending",
        created_at=START,
        updated_at=START,
    )
    values.update(overrides)
    return Booking(**values)


class TestQuotePrice:

    def test_whole_hours(self):
        assert quote_price(5.0, START, START + timedelta(hours=3)) == 15.0

    def test_partial_hours_rounded_to_cents(self):
        assert quote_price(4.5, START, START + timedelta(minutes=20)) == 1.5

    def test_free_space(self):
        assert quote_price(0, START, START + timedelta(hours=8)) == 0


class TestCreateBooking:

    def setup_method(self):
        self.service = BookingService()

    @pytest.mark.asyncio
    async def test_success(self, mock_db_session, owner_user, renter_user, make_space):
        space = make_space(owner_user, hourly_price=4.0)
        mock_db_session.get.return_value = space
        mock_db_session.execute.return_value = make_result(scalar=0)

        result = await self.service.create(mock_db_session, renter_user, booking_payload(space))

        assert result.message == "Booking created successfully"
        assert result.data.total_price == 12.0
        assert result.data.status == "pending"
        assert result.data.user_id == renter_user.id

    @pytest.mark.asyncio
    async def test_missing_space(self, mock_db_session, owner_user, renter_user, make_space):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError):
            await self.service.create(
                mock_db_session, renter_user, booking_payload(make_space(owner_user))
            )

    @pytest.mark.asyncio
    async def test_inactive_space(self, mock_db_session, owner_user, renter_user, make_space):
        space = make_space(owner_user, status="inactive")
        mock_db_session.get.return_value = space

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create(mock_db_session, renter_user, booking_payload(space))
        assert exc_info.value.field == "parkingSpaceId"

    @pytest.mark.asyncio
    async def test_vehicle_type_not_accepted(
        self, mock_db_session, owner_user, renter_user, make_space
    ):
        space = make_space(owner_user, vehicle_types=["motorcycle"])
        mock_db_session.get.return_value = space

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create(mock_db_session, renter_user, booking_payload(space))
        assert exc_info.value.field == "vehicleType"

    @pytest.mark.asyncio
    async def test_overlap_rejected(self, mock_db_session, owner_user, renter_user, make_space):
        space = make_space(owner_user)
        mock_db_session.get.return_value = space
        mock_db_session.execute.return_value = make_result(scalar=1)

        with pytest.raises(ValidationError):
            await self.service.create(mock_db_session, renter_user, booking_payload(space))
        assert mock_db_session.added == []

    @pytest.mark.asyncio
    async def test_overlap_query_ignores_cancelled(
        self, mock_db_session, owner_user, renter_user, make_space
    ):
        space = make_space(owner_user)
        mock_db_session.get.return_value = space
        mock_db_session.execute.return_value = make_result(scalar=0)

        await self.service.create(mock_db_session, renter_user, booking_payload(space))

        sql = str(mock_db_session.execute.call_args.args[0])
        assert "bookings.status != " in sql
        assert "bookings.start_time < " in sql
        assert "bookings.end_time > " in sql

    def test_end_before_start_rejected(self):
        with pytest.raises(PydanticValidationError):
            BookingCreate(
                parking_space_id=uuid4(),
                start_time=START,
                end_time=START,
                vehicle_type="car",
            )


class TestBookingAccess:

    def setup_method(self):
        self.service = BookingService()

    @pytest.mark.asyncio
    async def test_booker_can_read(self, mock_db_session, owner_user, renter_user, make_space):
        booking = make_booking(make_space(owner_user), renter_user)
        mock_db_session.get.return_value = booking

        result = await self.service.get(mock_db_session, renter_user, booking.id)

        assert result.data.id == booking.id

    @pytest.mark.asyncio
    async def test_space_owner_can_read(self, mock_db_session, owner_user, renter_user, make_space):
        space = make_space(owner_user)
        booking = make_booking(space, renter_user)
        mock_db_session.get.side_effect = [booking, space]

        result = await self.service.get(mock_db_session, owner_user, booking.id)

        assert result.data.id == booking.id

    @pytest.mark.asyncio
    async def test_stranger_cannot_read(
        self, mock_db_session, owner_user, other_owner, renter_user, make_space
    ):
        space = make_space(owner_user)
        booking = make_booking(space, renter_user)
        mock_db_session.get.side_effect = [booking, space]

        with pytest.raises(AuthorizationError):
            await self.service.get(mock_db_session, other_owner, booking.id)

    @pytest.mark.asyncio
    async def test_missing_booking(self, mock_db_session, renter_user):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError):
            await self.service.get(mock_db_session, renter_user, uuid4())

    @pytest.mark.asyncio
    async def test_update_times_reprices(self, mock_db_session, owner_user, renter_user, make_space):
        space = make_space(owner_user, hourly_price=6.0)
        booking = make_booking(space, renter_user)
        mock_db_session.get.side_effect = [booking, space]
        mock_db_session.execute.return_value = make_result(scalar=0)

        result = await self.service.update(
            mock_db_session,
            renter_user,
            booking.id,
            BookingUpdate(end_time=START + timedelta(hours=4)),
        )

        assert result.data.total_price == 24.0
        assert result.data.end_time == START + timedelta(hours=4)

    @pytest.mark.asyncio
    async def test_update_end_before_existing_start(
        self, mock_db_session, owner_user, renter_user, make_space
    ):
        booking = make_booking(make_space(owner_user), renter_user)
        mock_db_session.get.return_value = booking

        with pytest.raises(ValidationError):
            await self.service.update(
                mock_db_session,
                renter_user,
                booking.id,
                BookingUpdate(end_time=START - timedelta(hours=1)),
            )

    @pytest.mark.asyncio
    async def test_reviving_cancelled_booking_into_taken_slot(
        self, mock_db_session, owner_user, renter_user, make_space
    ):
        booking = make_booking(make_space(owner_user), renter_user, status="cancelled")
        mock_db_session.get.return_value = booking
        mock_db_session.execute.return_value = make_result(scalar=1)

        with pytest.raises(ValidationError):
            await self.service.update(
                mock_db_session, renter_user, booking.id, BookingUpdate(status="confirmed")
            )
        assert booking.status == "cancelled"
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reviving_cancelled_booking_into_free_slot(
        self, mock_db_session, owner_user, renter_user, make_space
    ):
        booking = make_booking(make_space(owner_user), renter_user, status="cancelled")
        mock_db_session.get.return_value = booking
        mock_db_session.execute.return_value = make_result(scalar=0)

        result = await self.service.update(
            mock_db_session, renter_user, booking.id, BookingUpdate(status="pending")
        )

        assert result.data.status == "pending"
        sql = str(mock_db_session.execute.call_args.args[0])
        assert "bookings.id != " in sql

    @pytest.mark.asyncio
    async def test_cancelling_skips_overlap_check(
        self, mock_db_session, owner_user, renter_user, make_space
    ):
        booking = make_booking(make_space(owner_user), renter_user, status="confirmed")
        mock_db_session.get.return_value = booking

        result = await self.service.update(
            mock_db_session, renter_user, booking.id, BookingUpdate(status="cancelled")
        )

        assert result.data.status == "cancelled"
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_space_owner_cannot_update(
        self, mock_db_session, owner_user, renter_user, make_space
    ):
        booking = make_booking(make_space(owner_user), renter_user)
        mock_db_session.get.return_value = booking

        with pytest.raises(AuthorizationError):
            await self.service.update(
                mock_db_session, owner_user, booking.id, BookingUpdate(status="cancelled")
            )

    @pytest.mark.asyncio
    async def test_admin_can_delete(self, mock_db_session, owner_user, renter_user, admin_user, make_space):
        booking = make_booking(make_space(owner_user), renter_user)
        mock_db_session.get.return_value = booking

        result = await self.service.delete(mock_db_session, admin_user, booking.id)

        assert result.message == "Booking deleted successfully"
        mock_db_session.delete.assert_awaited_once_with(booking)

    @pytest.mark.asyncio
    async def test_list_scoped_to_caller(self, mock_db_session, renter_user):
        mock_db_session.execute.return_value = make_result(rows=[], scalar=0)

        result = await self.service.list_for(mock_db_session, renter_user, status="confirmed")

        sql = str(mock_db_session.execute.call_args_list[0].args[0])
        assert "bookings.user_id = " in sql
        assert "bookings.status = " in sql
        assert result.pagination.pages == 0

    @pytest.mark.asyncio
    async def test_admin_lists_everything(self, mock_db_session, admin_user):
        mock_db_session.execute.return_value = make_result(rows=[], scalar=0)

        await self.service.list_for(mock_db_session, admin_user)

        sql = str(mock_db_session.execute.call_args_list[0].args[0])
        assert "bookings.user_id = " not in sql
