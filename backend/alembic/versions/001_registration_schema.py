"""Registration schema: users, event_registrations, payments.

Revision ID: 001
Revises: None
Create Date: 2026-02-20
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Participants
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("mobile", sa.String(15), nullable=False),
        sa.Column("college", sa.String(255), nullable=False),
        sa.Column("year", sa.String(20), nullable=False),
        sa.Column("unique_code", sa.String(20), nullable=False),
        sa.Column("food_preference", sa.String(20), nullable=False, server_default=sa.text("'VEG'")),
        sa.Column("checked_in", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("food_preference IN ('VEG', 'NON_VEG')", name="check_users_food_preference"),
    )
    # UNIQUE ON EMAIL AND MOBILE: these decide concurrent duplicate submissions.
    # The losing INSERT waits on the index entry and fails with 23505 once
    # the winner commits; the application maps that to a 409.
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_mobile", "users", ["mobile"], unique=True)
    # Check-in desk looks participants up by code
    op.create_index("ix_users_unique_code", "users", ["unique_code"], unique=True)

    # Event registrations
    op.create_table(
        "event_registrations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_id", sa.String(50), nullable=False),
        sa.Column("fallback_event_id", sa.String(50), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default=sa.text("'CONFIRMED'")),
        sa.Column("attendance_status", sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "event_id", name="uq_user_event_registration"),
        sa.CheckConstraint(
            "status IN ('CONFIRMED', 'APPROVED', 'REJECTED')",
            name="check_event_registration_status",
        ),
        sa.CheckConstraint(
            "attendance_status IN ('PENDING', 'NOT_REQUIRED', 'PRESENT', 'ABSENT')",
            name="check_event_registration_attendance",
        ),
    )
    op.create_index("ix_event_registrations_user_id", "event_registrations", ["user_id"])
    # Per-event participant lists for coordinators
    op.create_index("ix_event_registrations_event_id", "event_registrations", ["event_id"])

    # Payments
    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False, server_default=sa.text("250")),
        sa.Column("screenshot_url", sa.Text(), nullable=False),
        sa.Column("transaction_id", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="check_payment_amount_non_negative"),
    )
    op.create_index("ix_payments_user_id", "payments", ["user_id"])


def downgrade() -> None:
    op.drop_table("payments")
    op.drop_table("event_registrations")
    op.drop_table("users")
