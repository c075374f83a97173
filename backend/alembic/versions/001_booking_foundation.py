# backend/alembic/versions/001_booking_foundation.py
"""Booking foundation - identities, provider directory and booking transactions

Revision ID: 001_booking_foundation
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the read-side provider directory tables and the booking_transactions
table. The partial unique index on (cleaner_id, service_date, service_time)
over active statuses is what finally prevents two customers holding the
same cleaner slot.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_booking_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_STATUS_FILTER = "status IN ('pending', 'confirmed', 'in_progress')"


def upgrade() -> None:
    """Create booking tables."""
    print("Creating booking tables...")

    op.create_table(
        "identities",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_identities_id", "identities", ["id"])

    op.create_table(
        "providers",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("owner_identity_id", sa.String(26), nullable=False),
        sa.Column("business_name", sa.String(255), nullable=False),
        sa.Column("business_email", sa.String(255), nullable=True),
        sa.Column("business_phone", sa.String(30), nullable=True),
        sa.Column("approval_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("service_areas", sa.JSON(), nullable=False),
        sa.Column("services", sa.JSON(), nullable=False),
        sa.Column("minimum_hours", sa.Numeric(4, 1), nullable=False, server_default="2.0"),
        sa.Column("instant_booking", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("response_time_hours", sa.Integer(), nullable=True, server_default="24"),
        sa.Column("subscription_tier", sa.String(20), nullable=False, server_default="free"),
        sa.ForeignKeyConstraint(["owner_identity_id"], ["identities.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_providers_id", "providers", ["id"])
    op.create_index(
        "ix_providers_owner_identity_id", "providers", ["owner_identity_id"], unique=True
    )
    op.create_index("ix_providers_approval_status", "providers", ["approval_status"])

    op.create_table(
        "provider_service_areas",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("provider_id", sa.String(26), nullable=False),
        sa.Column("zip_code", sa.String(10), nullable=False),
        sa.Column("travel_fee", sa.Numeric(10, 2), nullable=False, server_default="0.00"),
        sa.ForeignKeyConstraint(["provider_id"], ["providers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("provider_id", "zip_code", name="uq_provider_service_areas_zip"),
    )
    op.create_index(
        "ix_provider_service_areas_provider_id", "provider_service_areas", ["provider_id"]
    )

    op.create_table(
        "booking_transactions",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_reference", sa.String(20), nullable=False),
        sa.Column("customer_id", sa.String(26), nullable=False),
        sa.Column("cleaner_id", sa.String(26), nullable=False),
        # Schedule
        sa.Column("service_type", sa.String(100), nullable=False),
        sa.Column("service_date", sa.Date(), nullable=False),
        sa.Column("service_time", sa.Time(), nullable=False),
        sa.Column("duration_hours", sa.Numeric(5, 2), nullable=False),
        # Location
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("zip_code", sa.String(10), nullable=False),
        sa.Column("property_type", sa.String(50), nullable=True),
        sa.Column("property_size_sqft", sa.Integer(), nullable=True),
        sa.Column("special_instructions", sa.Text(), nullable=True),
        sa.Column("customer_notes", sa.Text(), nullable=True),
        # Pricing snapshot
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("add_ons", sa.JSON(), nullable=False),
        sa.Column("discount_amount", sa.Numeric(10, 2), nullable=False, server_default="0.00"),
        sa.Column("travel_fee", sa.Numeric(10, 2), nullable=False, server_default="0.00"),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("customer_tier", sa.String(20), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        # Payment
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="stripe"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "payment_intent_id", sa.String(255), nullable=True, comment="Stripe payment intent"
        ),
        # Timestamps
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmation_code", sa.String(10), nullable=True),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_duration_hours", sa.Numeric(5, 1), nullable=True),
        # Cancellation
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.String(26), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("source", sa.String(20), nullable=False, server_default="web"),
        sa.ForeignKeyConstraint(["customer_id"], ["identities.id"]),
        sa.ForeignKeyConstraint(["cleaner_id"], ["providers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("booking_reference"),
        sa.CheckConstraint("total_amount >= 0", name="check_total_amount_non_negative"),
        sa.CheckConstraint("duration_hours > 0", name="check_duration_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'completed', 'cancelled')",
            name="ck_booking_transactions_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid')",
            name="ck_booking_transactions_payment_status",
        ),
    )

    op.create_index("ix_booking_transactions_id", "booking_transactions", ["id"])
    op.create_index("ix_booking_transactions_customer_id", "booking_transactions", ["customer_id"])
    op.create_index("ix_booking_transactions_cleaner_id", "booking_transactions", ["cleaner_id"])
    op.create_index(
        "ix_booking_transactions_service_date", "booking_transactions", ["service_date"]
    )
    op.create_index("ix_booking_transactions_status", "booking_transactions", ["status"])
    op.create_index("ix_booking_transactions_created_at", "booking_transactions", ["created_at"])
    op.create_index(
        "ix_booking_transactions_customer_created",
        "booking_transactions",
        ["customer_id", "created_at"],
    )

    # At most one active booking per cleaner slot
    op.create_index(
        "uq_booking_transactions_active_slot",
        "booking_transactions",
        ["cleaner_id", "service_date", "service_time"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_STATUS_FILTER),
        sqlite_where=sa.text(ACTIVE_STATUS_FILTER),
    )

    print("Booking tables created successfully!")


def downgrade() -> None:
    """Drop booking tables."""
    print("Dropping booking tables...")

    op.drop_index("uq_booking_transactions_active_slot", table_name="booking_transactions")
    op.drop_index("ix_booking_transactions_customer_created", table_name="booking_transactions")
    op.drop_index("ix_booking_transactions_created_at", table_name="booking_transactions")
    op.drop_index("ix_booking_transactions_status", table_name="booking_transactions")
    op.drop_index("ix_booking_transactions_service_date", table_name="booking_transactions")
    op.drop_index("ix_booking_transactions_cleaner_id", table_name="booking_transactions")
    op.drop_index("ix_booking_transactions_customer_id", table_name="booking_transactions")
    op.drop_index("ix_booking_transactions_id", table_name="booking_transactions")
    op.drop_table("booking_transactions")

    op.drop_index("ix_provider_service_areas_provider_id", table_name="provider_service_areas")
    op.drop_table("provider_service_areas")

    op.drop_index("ix_providers_approval_status", table_name="providers")
    op.drop_index("ix_providers_owner_identity_id", table_name="providers")
    op.drop_index("ix_providers_id", table_name="providers")
    op.drop_table("providers")

    op.drop_index("ix_identities_id", table_name="identities")
    op.drop_table("identities")

    print("Booking tables dropped successfully!")
