"""
ParkShare Backend — Parking Space Route Handlers
==================================================

What:  /api/parking-spaces: public filtered listing, the owner's own
       listing, and single-record create/read/update/delete.
How:   Extract parameters, delegate to ParkingSpaceService, return JSON.
Who:   Called by the web client's search page and owner dashboard.

Route order:
    GET /owner/my-spaces is declared before GET /{space_id}. Starlette
    matches routes in declaration order, and `owner` must never be taken
    for a space id.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.database import Database
from parkshare.dependencies import (
    get_current_user,
    get_database,
    get_db_session,
    require_roles,
)
from parkshare.models.user import User
from parkshare.schemas.common import ErrorResponse, MessageResponse
from parkshare.schemas.parking_space import (
    ParkingSpaceCreate,
    ParkingSpaceEnvelope,
    ParkingSpaceListResponse,
    ParkingSpaceUpdate,
)
from parkshare.services.parking_filters import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, parse_filters
from parkshare.services.parking_space_service import parking_space_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/parking-spaces", tags=["Parking Spaces"])

_write_errors = {
    400: {"description": "Invalid request body", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Caller may not modify this space", "model": ErrorResponse},
    404: {"description": "Parking space not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=ParkingSpaceListResponse,
    responses={
        400: {"description": "Invalid filter parameter", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Search active parking spaces",
    description=(
        "Filters by city, state, hourly price range, vehicle type, features and "
        "distance from a point. Results are newest first, or nearest first when "
        "both lat and lng are given."
    ),
)
async def list_parking_spaces(
    request: Request,
    database: Database = Depends(get_database),
) -> ParkingSpaceListResponse:
    """
    Public listing.

    Query parameters are validated together so that every bad parameter is
    reported in one 400:
        GET /api/parking-spaces?city=Austin&minPrice=2&features=covered,lighting
        GET /api/parking-spaces?lat=30.27&lng=-97.74&radius=5&vehicleType=car
    """
    filters = parse_filters(request.query_params)
    return await parking_space_service.search(database=database, filters=filters)


@router.post(
    "",
    response_model=ParkingSpaceEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses=_write_errors,
    summary="Create a parking space",
)
async def create_parking_space(
    payload: ParkingSpaceCreate,
    user: User = Depends(require_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db_session),
) -> ParkingSpaceEnvelope:
    return await parking_space_service.create(db=db, owner=user, payload=payload)


@router.get(
    "/owner/my-spaces",
    response_model=ParkingSpaceListResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Caller is not an owner or admin", "model": ErrorResponse},
    },
    summary="List the caller's own parking spaces",
)
async def list_my_parking_spaces(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    user: User = Depends(require_roles("owner", "admin")),
    database: Database = Depends(get_database),
) -> ParkingSpaceListResponse:
    """Newest first. An unrecognised `status` value is ignored."""
    return await parking_space_service.list_owned(
        database=database,
        owner=user,
        page=page,
        limit=limit,
        status=status_filter,
    )


@router.get(
    "/{space_id}",
    response_model=ParkingSpaceEnvelope,
    responses={
        404: {"description": "Parking space not found", "model": ErrorResponse},
    },
    summary="Get a parking space by ID",
)
async def get_parking_space(
    space_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ParkingSpaceEnvelope:
    return await parking_space_service.get(db=db, space_id=space_id)


@router.put(
    "/{space_id}",
    response_model=ParkingSpaceEnvelope,
    responses=_write_errors,
    summary="Update a parking space",
    description="Only the fields present in the body are changed.",
)
async def update_parking_space(
    space_id: uuid.UUID,
    payload: ParkingSpaceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ParkingSpaceEnvelope:
    return await parking_space_service.update(
        db=db, caller=user, space_id=space_id, payload=payload
    )


@router.delete(
    "/{space_id}",
    response_model=MessageResponse,
    responses=_write_errors,
    summary="Delete a parking space",
)
async def delete_parking_space(
    space_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await parking_space_service.delete(db=db, caller=user, space_id=space_id)
