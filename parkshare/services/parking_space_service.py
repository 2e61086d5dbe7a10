"""
ParkShare Backend — Parking Space Service
===========================================

What:  Business logic for /api/parking-spaces: filtered search, the
       owner's own listing, and single-record create/read/update/delete.
Who:   Called by parkshare/routes/parking_spaces.py.

Listing flow (GET /api/parking-spaces):
    ┌─────────────┐    ┌──────────────────┐    ┌───────────────────────┐
    │ query params│───▶│ parking_filters  │───▶│ page ║ count (gather) │
    └─────────────┘    │ (predicate)      │    │ two sessions          │
                       └──────────────────┘    └───────────────────────┘

    The page and the count are separate reads issued concurrently and
    not wrapped in one transaction: a write landing between them can make
    `total` and the returned page disagree. That is accepted.

Write flow (PUT/DELETE /api/parking-spaces/{id}):
    load (404 if missing) → owner-or-admin check (403) → apply → flush
"""

import asyncio
import logging
import uuid
from typing import List, Optional, Union

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from parkshare.database import Database
from parkshare.exceptions import DatabaseError, NotFoundError
from parkshare.models.parking_space import SPACE_STATUSES, ParkingSpace
from parkshare.models.user import User
from parkshare.schemas.common import MessageResponse, Pagination
from parkshare.schemas.parking_space import (
    Availability,
    Location,
    OwnerSummary,
    ParkingSpaceCreate,
    ParkingSpaceEnvelope,
    ParkingSpaceListResponse,
    ParkingSpaceResponse,
    ParkingSpaceUpdate,
    Pricing,
)
from parkshare.security import ensure_owner_or_admin
from parkshare.services.parking_filters import ParkingSpaceFilters, build_parking_space_query

logger = logging.getLogger(__name__)


def to_response(space: ParkingSpace, include_owner: bool = True) -> ParkingSpaceResponse:
    """Map the flat ORM row onto the nested wire shape."""
    owner = None
    if include_owner and space.owner is not None:
        owner = OwnerSummary(
            id=space.owner.id,
            name=space.owner.name,
            email=space.owner.email,
            phone=space.owner.phone,
        )
    return ParkingSpaceResponse(
        id=space.id,
        owner_id=space.owner_id,
        owner=owner,
        title=space.title,
        description=space.description,
        location=Location(
            address=space.address,
            city=space.city,
            state=space.state,
            zip_code=space.zip_code,
            coordinates=space.coordinates,
        ),
        pricing=Pricing(
            hourly=space.hourly_price,
            daily=space.daily_price,
            monthly=space.monthly_price,
        ),
        vehicle_types=list(space.vehicle_types or []),
        features=list(space.features or []),
        availability=Availability(
            start_time=space.availability_start,
            end_time=space.availability_end,
        ),
        status=space.status,
        created_at=space.created_at,
        updated_at=space.updated_at,
    )


def _column_values(
    payload: Union[ParkingSpaceCreate, ParkingSpaceUpdate],
    fields: Optional[set] = None,
) -> dict:
    """
    Flatten request fields into column values.

    `fields` limits the result to what the client sent (updates). Nested
    objects are replaced as a whole: a `location` without coordinates
    clears them, a `pricing` without `daily` clears the daily price.
    """
    fields = fields if fields is not None else set(type(payload).model_fields)
    values = {}
    for name in ("title", "description", "vehicle_types", "features", "status"):
        if name in fields:
            values[name] = getattr(payload, name)

    if "location" in fields:
        location = payload.location
        coordinates = location.coordinates or [None, None]
        values.update(
            address=location.address,
            city=location.city,
            state=location.state,
            zip_code=location.zip_code,
            longitude=coordinates[0],
            latitude=coordinates[1],
        )
    if "pricing" in fields:
        values.update(
            hourly_price=payload.pricing.hourly,
            daily_price=payload.pricing.daily,
            monthly_price=payload.pricing.monthly,
        )
    if "availability" in fields:
        values.update(
            availability_start=payload.availability.start_time,
            availability_end=payload.availability.end_time,
        )
    return values


class ParkingSpaceService:
    """
    Business logic layer for parking spaces.

    Stateless: every call receives its store handle or session. Store
    failures are wrapped in DatabaseError; application exceptions
    (NotFoundError, AuthorizationError) propagate unchanged.
    """

    # ── Listing ───────────────────────────────────────────────────────────

    async def search(
        self, database: Database, filters: ParkingSpaceFilters
    ) -> ParkingSpaceListResponse:
        """Public filtered listing; see parking_filters for the predicate."""
        query = build_parking_space_query(filters)
        spaces, total = await self._page_and_count(
            database, query.page_statement(), query.count_statement()
        )
        return ParkingSpaceListResponse(
            data=[to_response(space) for space in spaces],
            pagination=Pagination.build(filters.page, filters.limit, total),
        )

    async def list_owned(
        self,
        database: Database,
        owner: User,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
    ) -> ParkingSpaceListResponse:
        """
        The caller's own spaces, newest first.

        An unknown `status` value is ignored rather than rejected.
        """
        conditions = [ParkingSpace.owner_id == owner.id]
        if status in SPACE_STATUSES:
            conditions.append(ParkingSpace.status == status)

        page_statement = (
            select(ParkingSpace)
            .where(*conditions)
            .order_by(ParkingSpace.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_statement = select(func.count()).select_from(ParkingSpace).where(*conditions)

        spaces, total = await self._page_and_count(database, page_statement, count_statement)
        return ParkingSpaceListResponse(
            data=[to_response(space, include_owner=False) for space in spaces],
            pagination=Pagination.build(page, limit, total),
        )

    async def _page_and_count(
        self, database: Database, page_statement: Select, count_statement: Select
    ) -> tuple:
        """
        Run the page and the count concurrently, each in its own session.

        Both reads are awaited to completion before any failure is raised,
        so neither is left running after the other has failed.
        """
        outcomes = await asyncio.gather(
            self._fetch_all(database, page_statement),
            self._fetch_count(database, count_statement),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, SQLAlchemyError):
                logger.error(
                    "Database error listing parking spaces: %s", str(outcome), exc_info=outcome
                )
                raise DatabaseError(
                    message="Could not retrieve parking spaces. Please try again.",
                    context={"error_type": type(outcome).__name__},
                ) from outcome
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return outcomes[0], outcomes[1]

    @staticmethod
    async def _fetch_all(database: Database, statement: Select) -> List[ParkingSpace]:
        async with database.session() as db:
            result = await db.execute(statement)
            return list(result.scalars().all())

    @staticmethod
    async def _fetch_count(database: Database, statement: Select) -> int:
        async with database.session() as db:
            result = await db.execute(statement)
            return result.scalar() or 0

    # ── Single record ─────────────────────────────────────────────────────

    async def get(self, db: AsyncSession, space_id: uuid.UUID) -> ParkingSpaceEnvelope:
        space = await self._load(db, space_id)
        return ParkingSpaceEnvelope(data=to_response(space))

    async def create(
        self, db: AsyncSession, owner: User, payload: ParkingSpaceCreate
    ) -> ParkingSpaceEnvelope:
        """Create a space owned by the caller."""
        space = ParkingSpace(owner_id=owner.id, **_column_values(payload))
        space.owner = owner
        try:
            db.add(space)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating parking space: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the parking space. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Parking space %s created by user %s", space.id, owner.id)
        return ParkingSpaceEnvelope(
            message="Parking space created successfully",
            data=to_response(space),
        )

    async def update(
        self,
        db: AsyncSession,
        caller: User,
        space_id: uuid.UUID,
        payload: ParkingSpaceUpdate,
    ) -> ParkingSpaceEnvelope:
        """Apply the supplied fields. 404 if missing, 403 unless owner/admin."""
        space = await self._load(db, space_id)
        ensure_owner_or_admin(caller, space.owner_id, resource="parking space")

        for column, value in _column_values(payload, payload.model_fields_set).items():
            setattr(space, column, value)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating parking space %s: %s", space_id, str(e))
            raise DatabaseError(
                message="Could not update the parking space. Please try again.",
                context={"space_id": str(space_id), "error_type": type(e).__name__},
            )

        logger.info("Parking space %s updated by user %s", space_id, caller.id)
        return ParkingSpaceEnvelope(
            message="Parking space updated successfully",
            data=to_response(space),
        )

    async def delete(
        self, db: AsyncSession, caller: User, space_id: uuid.UUID
    ) -> MessageResponse:
        """Delete a space (its bookings cascade). 404 if missing, 403 unless owner/admin."""
        space = await self._load(db, space_id)
        ensure_owner_or_admin(caller, space.owner_id, resource="parking space")

        try:
            await db.delete(space)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting parking space %s: %s", space_id, str(e))
            raise DatabaseError(
                message="Could not delete the parking space. Please try again.",
                context={"space_id": str(space_id), "error_type": type(e).__name__},
            )

        logger.info("Parking space %s deleted by user %s", space_id, caller.id)
        return MessageResponse(message="Parking space deleted successfully")

    async def _load(self, db: AsyncSession, space_id: uuid.UUID) -> ParkingSpace:
        try:
            result = await db.execute(
                select(ParkingSpace)
                .options(selectinload(ParkingSpace.owner))
                .where(ParkingSpace.id == space_id)
            )
            space = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching parking space %s: %s", space_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the parking space. Please try again.",
                context={"space_id": str(space_id)},
            )

        if space is None:
            raise NotFoundError(resource="parking space", resource_id=str(space_id))
        return space


parking_space_service = ParkingSpaceService()
