"""
ParkShare Backend — Booking Route Handlers
============================================

What:  /api/bookings CRUD. Every route requires a bearer token; per-record
       access rules live in BookingService.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.dependencies import get_current_user, get_db_session
from parkshare.models.user import User
from parkshare.schemas.booking import (
    BookingCreate,
    BookingEnvelope,
    BookingListResponse,
    BookingUpdate,
)
from parkshare.schemas.common import ErrorResponse, MessageResponse
from parkshare.services.booking_service import booking_service
from parkshare.services.parking_filters import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])

_errors = {
    400: {"description": "Invalid request", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Caller may not access this booking", "model": ErrorResponse},
    404: {"description": "Booking or parking space not found", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=BookingEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses=_errors,
    summary="Book a parking space",
)
async def create_booking(
    payload: BookingCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BookingEnvelope:
    return await booking_service.create(db=db, caller=user, payload=payload)


@router.get(
    "",
    response_model=BookingListResponse,
    responses=_errors,
    summary="List the caller's bookings (admins: all bookings)",
)
async def list_bookings(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BookingListResponse:
    return await booking_service.list_for(
        db=db, caller=user, page=page, limit=limit, status=status_filter
    )


@router.get("/{booking_id}", response_model=BookingEnvelope, responses=_errors)
async def get_booking(
    booking_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BookingEnvelope:
    return await booking_service.get(db=db, caller=user, booking_id=booking_id)


@router.put("/{booking_id}", response_model=BookingEnvelope, responses=_errors)
async def update_booking(
    booking_id: uuid.UUID,
    payload: BookingUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BookingEnvelope:
    return await booking_service.update(
        db=db, caller=user, booking_id=booking_id, payload=payload
    )


@router.delete("/{booking_id}", response_model=MessageResponse, responses=_errors)
async def delete_booking(
    booking_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await booking_service.delete(db=db, caller=user, booking_id=booking_id)
