"""Create booking store tables

Revision ID: 3b1f0c7a9d21
Revises:
Create Date: 2026-10-19 10:12:44.318201

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op  # type: ignore[attr-defined]
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3b1f0c7a9d21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("transaction_ref", sa.String(length=255), nullable=False),
        sa.Column("payment_reference", sa.String(length=255), nullable=True),
        sa.Column("room_type", sa.String(length=50), nullable=False),
        sa.Column("unit_lo", sa.Integer(), nullable=False),
        sa.Column("unit_hi", sa.Integer(), nullable=False),
        sa.Column("check_in", sa.Date(), nullable=False),
        sa.Column("check_out", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False),
        sa.Column("source", sa.String(length=20), nullable=False),
        sa.Column("external_uid", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("id_type", sa.String(length=50), nullable=True),
        sa.Column("id_file_url", sa.String(length=1024), nullable=True),
        sa.Column("guests", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("provider", sa.String(length=50), nullable=True),
        sa.Column("block_reason", sa.String(length=255), nullable=True),
        sa.Column("verification_reference", sa.String(length=255), nullable=True),
        sa.Column("verification_url", sa.String(length=1024), nullable=True),
        sa.Column("verification_status", sa.String(length=20), nullable=True),
        sa.Column("verification_event", sa.String(length=100), nullable=True),
        sa.Column("verification_declined_reason", sa.String(length=1024), nullable=True),
        sa.Column("verification_data", postgresql.JSONB(), nullable=True),
        sa.Column("verification_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transaction_ref"),
        sa.UniqueConstraint("payment_reference"),
        sa.UniqueConstraint("external_uid"),
        sa.UniqueConstraint("verification_reference"),
        sa.CheckConstraint("check_out > check_in", name="bookings_check_out_after_check_in"),
        sa.CheckConstraint("unit_hi > unit_lo", name="bookings_unit_span_not_empty"),
    )
    op.create_index("ix_bookings_room_dates", "bookings", ["room_type", "check_in", "check_out"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    # Two active rows may not share a unit over intersecting nights.
    op.execute(
        """
        ALTER TABLE bookings
        ADD CONSTRAINT bookings_no_overlapping_active
        EXCLUDE USING gist (
            int4range(unit_lo, unit_hi) WITH &&,
            daterange(check_in, check_out, '[)') WITH &&
        )
        WHERE (status IN ('confirmed', 'blocked'))
        """
    )

    op.create_table(
        "booking_events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("booking_id", sa.Uuid(), nullable=False),
        sa.Column("event", sa.String(length=50), nullable=False),
        sa.Column("from_status", sa.String(length=20), nullable=True),
        sa.Column("to_status", sa.String(length=20), nullable=True),
        sa.Column("details", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_booking_events_booking_id", "booking_events", ["booking_id"])

    op.create_table(
        "outbox_tasks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("booking_id", sa.Uuid(), nullable=False),
        sa.Column("kind", sa.String(length=50), nullable=False),
        sa.Column("payload", postgresql.JSONB(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("next_attempt_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_outbox_tasks_booking_id", "outbox_tasks", ["booking_id"])
    op.create_index("ix_outbox_tasks_due", "outbox_tasks", ["status", "next_attempt_at"])

    op.create_table(
        "verification_sessions",
        sa.Column("reference", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("id_file_url", sa.String(length=1024), nullable=False),
        sa.Column("id_type", sa.String(length=50), nullable=True),
        sa.Column("verification_url", sa.String(length=1024), nullable=True),
        sa.Column("verification_status", sa.String(length=20), nullable=False),
        sa.Column("verification_event", sa.String(length=100), nullable=True),
        sa.Column("verification_data", postgresql.JSONB(), nullable=True),
        sa.Column("declined_reason", sa.String(length=1024), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("reference"),
    )
    op.create_index(
        "ix_verification_sessions_email", "verification_sessions", ["email"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_verification_sessions_email", table_name="verification_sessions")
    op.drop_table("verification_sessions")
    op.drop_index("ix_outbox_tasks_due", table_name="outbox_tasks")
    op.drop_index("ix_outbox_tasks_booking_id", table_name="outbox_tasks")
    op.drop_table("outbox_tasks")
    op.drop_index("ix_booking_events_booking_id", table_name="booking_events")
    op.drop_table("booking_events")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_room_dates", table_name="bookings")
    op.drop_table("bookings")
