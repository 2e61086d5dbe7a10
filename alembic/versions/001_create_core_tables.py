"""Create users, parking_spaces and bookings tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Initial schema for the marketplace.
How:   PostgreSQL-specific features: UUID primary keys (gen_random_uuid()),
       TIMESTAMP WITH TIME ZONE, and text arrays for vehicle types and
       features (queried with @> and &&).

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    """Create the three tables with their constraints and indexes."""
    # ── users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column(
            "role",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'user'"),
            comment="user, owner or admin",
        ),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── parking_spaces ────────────────────────────────────────────────────
    op.create_table(
        "parking_spaces",
        _uuid_pk(),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(255), nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("zip_code", sa.String(20), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("hourly_price", sa.Float(), nullable=False),
        sa.Column("daily_price", sa.Float(), nullable=True),
        sa.Column("monthly_price", sa.Float(), nullable=True),
        sa.Column(
            "vehicle_types",
            postgresql.ARRAY(sa.String(20)),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.Column(
            "features",
            postgresql.ARRAY(sa.String(40)),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.Column("availability_start", sa.String(5), nullable=False, comment="HH:MM"),
        sa.Column("availability_end", sa.String(5), nullable=False, comment="HH:MM"),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'active'"),
            comment="active, inactive or pending",
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("hourly_price >= 0", name="ck_parking_spaces_hourly_price_non_negative"),
        sa.CheckConstraint(
            "(longitude IS NULL) = (latitude IS NULL)",
            name="ck_parking_spaces_coordinates_pair",
        ),
    )
    # Default listing: active spaces, newest first
    op.create_index(
        "idx_parking_spaces_status_created_at",
        "parking_spaces",
        ["status", sa.text("created_at DESC")],
    )
    op.create_index("idx_parking_spaces_city", "parking_spaces", ["city"])
    op.create_index("idx_parking_spaces_owner_id", "parking_spaces", ["owner_id"])

    # ── bookings ──────────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        _uuid_pk(),
        sa.Column("parking_space_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("start_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("vehicle_type", sa.String(20), nullable=False),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'pending'"),
            comment="pending, confirmed, cancelled or completed",
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["parking_space_id"], ["parking_spaces.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("end_time > start_time", name="ck_bookings_time_range"),
        sa.CheckConstraint("total_price >= 0", name="ck_bookings_total_price_non_negative"),
    )
    # Overlap check: bookings of one space by time
    op.create_index(
        "idx_bookings_space_time",
        "bookings",
        ["parking_space_id", "start_time", "end_time"],
    )
    op.create_index("idx_bookings_user_id", "bookings", ["user_id"])


def downgrade() -> None:
    """Drop all tables. WARNING: destructive, every record is lost."""
    op.drop_index("idx_bookings_user_id", table_name="bookings")
    op.drop_index("idx_bookings_space_time", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("idx_parking_spaces_owner_id", table_name="parking_spaces")
    op.drop_index("idx_parking_spaces_city", table_name="parking_spaces")
    op.drop_index("idx_parking_spaces_status_created_at", table_name="parking_spaces")
    op.drop_table("parking_spaces")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
