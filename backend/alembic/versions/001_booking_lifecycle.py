# backend/alembic/versions/001_booking_lifecycle.py
"""Booking lifecycle - bookings, allocation ledger, notification audit trail

Revision ID: 001_booking_lifecycle
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the service and subscription booking tables (shared status
vocabulary, stored lower-case and checked at write time), one allocation table
per booking kind with a unique booking reference, and the notifications table
with one visibility flag per audience.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_booking_lifecycle"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BOOKING_STATUSES = ("pending", "waiting", "process", "request", "complete", "cancel")
VISIBILITIES = ("none", "active", "hidden")


def _in_list(column: str, values: Sequence[str]) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


def _booking_columns() -> list:
    return [
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("customer_id", sa.String(26), nullable=False),
        sa.Column("provider_id", sa.String(26), nullable=True),
        sa.Column("customer_name", sa.String(100), nullable=True),
        # Scheduling
        sa.Column("requested_date", sa.Date(), nullable=False),
        sa.Column("requested_time", sa.Time(), nullable=False),
        sa.Column("service_address", sa.Text(), nullable=False),
        sa.Column("contact_phone", sa.String(20), nullable=False),
        sa.Column("quoted_amount", sa.Numeric(10, 2), nullable=False),
        # Status
        sa.Column("status", sa.String(8), nullable=False, server_default="pending"),
        sa.Column("cancel_reason", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _create_booking_indexes(table: str) -> None:
    for column in ("id", "customer_id", "provider_id", "status"):
        op.create_index(f"ix_{table}_{column}", table, [column])


def upgrade() -> None:
    """Create booking lifecycle tables."""
    print("Creating booking lifecycle tables...")

    op.create_table(
        "service_bookings",
        *_booking_columns(),
        sa.Column("service_category_id", sa.String(26), nullable=False),
        sa.Column("settled_amount", sa.Numeric(10, 2), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(_in_list("status", BOOKING_STATUSES), name="booking_status"),
    )
    _create_booking_indexes("service_bookings")
    op.create_index(
        "ix_service_bookings_service_category_id", "service_bookings", ["service_category_id"]
    )

    op.create_table(
        "subscription_bookings",
        *_booking_columns(),
        sa.Column("plan_id", sa.String(26), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(_in_list("status", BOOKING_STATUSES), name="booking_status"),
    )
    _create_booking_indexes("subscription_bookings")
    op.create_index("ix_subscription_bookings_plan_id", "subscription_bookings", ["plan_id"])

    # One allocation per booking; rows are never updated
    for table, booking_table in (
        ("service_provider_allocations", "service_bookings"),
        ("subscription_provider_allocations", "subscription_bookings"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.String(26), nullable=False),
            sa.Column("booking_id", sa.String(26), nullable=False),
            sa.Column("provider_id", sa.String(26), nullable=False),
            sa.Column("allocated_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.ForeignKeyConstraint(["booking_id"], [f"{booking_table}.id"]),
            sa.UniqueConstraint("booking_id", name=f"uq_{table}_booking_id"),
        )
        op.create_index(f"ix_{table}_provider_id", table, ["provider_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("actor_id", sa.String(26), nullable=False),
        sa.Column("customer_id", sa.String(26), nullable=True),
        sa.Column("provider_id", sa.String(26), nullable=True),
        sa.Column("service_booking_id", sa.String(26), nullable=True),
        sa.Column("subscription_booking_id", sa.String(26), nullable=True),
        sa.Column("description", sa.String(100), nullable=False),
        sa.Column("admin_visibility", sa.String(6), nullable=False, server_default="none"),
        sa.Column("provider_visibility", sa.String(6), nullable=False, server_default="none"),
        sa.Column("customer_visibility", sa.String(6), nullable=False, server_default="none"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["service_booking_id"], ["service_bookings.id"]),
        sa.ForeignKeyConstraint(["subscription_booking_id"], ["subscription_bookings.id"]),
        sa.CheckConstraint(
            "service_booking_id IS NULL OR subscription_booking_id IS NULL",
            name="ck_notifications_single_booking",
        ),
        sa.CheckConstraint(
            _in_list("admin_visibility", VISIBILITIES),
            name="ck_notifications_admin_visibility",
        ),
        sa.CheckConstraint(
            _in_list("provider_visibility", VISIBILITIES),
            name="ck_notifications_provider_visibility",
        ),
        sa.CheckConstraint(
            _in_list("customer_visibility", VISIBILITIES),
            name="ck_notifications_customer_visibility",
        ),
    )
    op.create_index("ix_notifications_actor_id", "notifications", ["actor_id"])
    op.create_index("ix_notifications_customer_id", "notifications", ["customer_id"])
    op.create_index("ix_notifications_provider_id", "notifications", ["provider_id"])
    op.create_index(
        "ix_notifications_admin_visibility", "notifications", ["admin_visibility", "description"]
    )
    op.create_index(
        "ix_notifications_provider_visibility",
        "notifications",
        ["provider_id", "provider_visibility"],
    )
    op.create_index(
        "ix_notifications_customer_visibility",
        "notifications",
        ["customer_id", "customer_visibility"],
    )

    print("Booking lifecycle tables created")


def downgrade() -> None:
    """Drop booking lifecycle tables."""
    print("Dropping booking lifecycle tables...")

    for index in (
        "ix_notifications_customer_visibility",
        "ix_notifications_provider_visibility",
        "ix_notifications_admin_visibility",
        "ix_notifications_provider_id",
        "ix_notifications_customer_id",
        "ix_notifications_actor_id",
    ):
        op.drop_index(index, table_name="notifications")
    op.drop_table("notifications")

    for table in ("subscription_provider_allocations", "service_provider_allocations"):
        op.drop_index(f"ix_{table}_provider_id", table_name=table)
        op.drop_table(table)

    op.drop_index("ix_subscription_bookings_plan_id", table_name="subscription_bookings")
    op.drop_index("ix_service_bookings_service_category_id", table_name="service_bookings")
    for table in ("subscription_bookings", "service_bookings"):
        for column in ("status", "provider_id", "customer_id", "id"):
            op.drop_index(f"ix_{table}_{column}", table_name=table)
        op.drop_table(table)
