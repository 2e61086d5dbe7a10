"""
ParkShare Backend — Shared Schemas
====================================

What:  Base model, pagination envelope, and error/health response models
       shared by every resource.

Wire format:
    JSON keys are camelCase (`zipCode`, `vehicleTypes`, `createdAt`) because
    that is what the web client sends and reads. Python attributes stay
    snake_case; `CamelModel` maps between the two and accepts either form
    on input.
"""

import math
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for all API models: camelCase aliases, whitespace-trimmed strings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class Pagination(CamelModel):
    """
    Page-number pagination envelope.

    pages is ceil(total / limit): 0 when nothing matches, never fractional.
    """
    current: int = Field(description="Current page number (1-based)")
    pages: int = Field(description="Total number of pages")
    total: int = Field(description="Total number of matching records")
    limit: int = Field(description="Page size used for this response")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(current=page, pages=math.ceil(total / limit), total=total, limit=limit)


class MessageResponse(CamelModel):
    """Acknowledgement without a payload (e.g. after a delete)."""
    success: bool = True
    message: str


class FieldError(BaseModel):
    """One failing field of a rejected request."""
    field: str = Field(description="Dotted path of the offending field, e.g. location.city")
    message: str = Field(description="Why the value was rejected")


class ErrorResponse(BaseModel):
    """
    Standardized error body returned by every exception handler.

    Example:
        {
            "success": false,
            "error": "not_found",
            "message": "Parking space with ID '...' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    errors: Optional[List[FieldError]] = Field(
        default=None, description="Per-field messages (validation errors only)"
    )
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and store status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
