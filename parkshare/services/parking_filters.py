"""
ParkShare Backend — Parking Space Filter-Query Builder
=======================================================

What:  Turns the optional query parameters of GET /api/parking-spaces into
       one SQLAlchemy predicate plus an ordering and a page window.
Who:   Called by ParkingSpaceService.search().

Parameters (all optional):
    city, state     case-insensitive substring match; blank means absent
    minPrice        hourly price lower bound, ≥ 0
    maxPrice        hourly price upper bound, ≥ 0 (minPrice > maxPrice is
                    allowed and simply matches nothing)
    lat, lng        search centre; geospatial filtering needs BOTH, a lone
                    lat or lng is ignored
    radius          kilometres, ≥ 0, default 10 when the centre is given
    vehicleType     one of car, motorcycle, truck, van, rv, bicycle
    features        comma-separated; unknown tokens are dropped, never rejected
    page            ≥ 1, default 1
    limit           1..50, default 10

Predicate (every clause ANDed):
    status = 'active'
    AND city ILIKE %city%                 (if city)
    AND state ILIKE %state%               (if state)
    AND hourly_price >= minPrice          (if minPrice)
    AND hourly_price <= maxPrice          (if maxPrice)
    AND vehicle_types @> ARRAY[vehicleType]      (if vehicleType)
    AND features && ARRAY[recognized features]   (if any recognized)
    AND haversine(lat, lng, row) <= radius * 1000 (if lat AND lng)

Ordering:
    created_at DESC, or distance ASC when the geospatial clause is active.
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Float, Select, func, select
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from parkshare.exceptions import ValidationError
from parkshare.models.parking_space import FEATURES, ParkingSpace, VehicleType
from parkshare.schemas.common import CamelModel

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50
DEFAULT_RADIUS_KM = 10.0
EARTH_RADIUS_M = 6_371_000.0


# ══════════════════════════════════════════════════════════════════════════
# Parameter rules
# ══════════════════════════════════════════════════════════════════════════


class ParkingSpaceFilters(CamelModel):
    """Validated query parameters of the public listing."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    city: Optional[str] = None
    state: Optional[str] = None
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius: Optional[float] = Field(default=None, ge=0)
    features: Optional[str] = None
    vehicle_type: Optional[VehicleType] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @field_validator("city", "state", "features")
    @classmethod
    def blank_is_absent(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def geo_active(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def search_radius_km(self) -> float:
        return self.radius if self.radius is not None else DEFAULT_RADIUS_KM


def parse_filters(query_params: Mapping[str, Any]) -> ParkingSpaceFilters:
    """
    Validate raw query parameters.

    Raises:
        ValidationError: one entry per failing parameter (not fail-fast).
    """
    try:
        return ParkingSpaceFilters.model_validate(dict(query_params))
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic_errors(exc.errors())


def recognized_features(raw: Optional[str]) -> List[str]:
    """
    Split a comma-separated feature list and keep only allow-listed tokens.

    Order is preserved and duplicates collapse:
        "covered, jetpack,lighting,covered" -> ["covered", "lighting"]
    """
    if not raw:
        return []
    tokens = (token.strip() for token in raw.split(","))
    return list(dict.fromkeys(token for token in tokens if token in FEATURES))


# ══════════════════════════════════════════════════════════════════════════
# Query construction
# ══════════════════════════════════════════════════════════════════════════


def distance_meters(lat: float, lng: float) -> ColumnElement[float]:
    """
    Great-circle distance in metres from (lat, lng) to each row (haversine).

    The inner term is clamped to 1.0 so rounding error can never push
    asin() outside its domain.
    """
    d_lat = func.radians(ParkingSpace.latitude - lat, type_=Float)
    d_lng = func.radians(ParkingSpace.longitude - lng, type_=Float)
    a = (
        func.power(func.sin(d_lat / 2, type_=Float), 2, type_=Float)
        + func.cos(func.radians(lat, type_=Float), type_=Float)
        * func.cos(func.radians(ParkingSpace.latitude, type_=Float), type_=Float)
        * func.power(func.sin(d_lng / 2, type_=Float), 2, type_=Float)
    )
    return 2 * EARTH_RADIUS_M * func.asin(
        func.sqrt(func.least(a, 1.0, type_=Float), type_=Float), type_=Float
    )


@dataclass
class ParkingSpaceQuery:
    """A built predicate plus ordering and page window."""

    conditions: List[ColumnElement[bool]]
    order_by: List[ColumnElement[Any]]
    page: int
    limit: int
    distance: Optional[ColumnElement[float]] = field(default=None)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def page_statement(self) -> Select:
        """Records for the requested page, owner profile eager-loaded."""
        return (
            select(ParkingSpace)
            .options(selectinload(ParkingSpace.owner))
            .where(*self.conditions)
            .order_by(*self.order_by)
            .offset(self.offset)
            .limit(self.limit)
        )

    def count_statement(self) -> Select:
        """Total number of records matching the same predicate."""
        return select(func.count()).select_from(ParkingSpace).where(*self.conditions)


def build_parking_space_query(filters: ParkingSpaceFilters) -> ParkingSpaceQuery:
    """Translate validated filters into a ParkingSpaceQuery."""
    conditions: List[ColumnElement[bool]] = [ParkingSpace.status == "active"]

    if filters.city:
        conditions.append(ParkingSpace.city.icontains(filters.city, autoescape=True))
    if filters.state:
        conditions.append(ParkingSpace.state.icontains(filters.state, autoescape=True))

    if filters.min_price is not None:
        conditions.append(ParkingSpace.hourly_price >= filters.min_price)
    if filters.max_price is not None:
        conditions.append(ParkingSpace.hourly_price <= filters.max_price)

    if filters.vehicle_type:
        conditions.append(ParkingSpace.vehicle_types.contains([filters.vehicle_type]))

    features = recognized_features(filters.features)
    if features:
        conditions.append(ParkingSpace.features.overlap(features))

    order_by: List[ColumnElement[Any]] = [ParkingSpace.created_at.desc()]
    distance = None
    if filters.geo_active:
        distance = distance_meters(filters.lat, filters.lng)
        conditions.extend([
            ParkingSpace.latitude.is_not(None),
            ParkingSpace.longitude.is_not(None),
            distance <= filters.search_radius_km * 1000,
        ])
        order_by = [distance.asc(), ParkingSpace.created_at.desc()]

    return ParkingSpaceQuery(
        conditions=conditions,
        order_by=order_by,
        page=filters.page,
        limit=filters.limit,
        distance=distance,
    )
