"""
ParkShare Backend — User Model
================================

What:  ORM model for the `users` table.
Who:   Created by AuthService.register; read by the auth dependency on
       every authenticated request; referenced by parking spaces and bookings.

Table Design:
    - email is unique and stored lower-cased (login is case-insensitive)
    - password_hash holds a Werkzeug salted hash, never the password
    - role drives authorization: user < owner < admin
"""

import uuid
from datetime import datetime, timezone
from typing import List, Literal, Optional

from sqlalchemy import String, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parkshare.database import Base

Role = Literal["user", "owner", "admin"]


class User(Base):
    """A registered account: renter, space owner, or moderator."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="user",
        server_default=text("'user'"),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    parking_spaces: Mapped[List["ParkingSpace"]] = relationship(  # noqa: F821
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
