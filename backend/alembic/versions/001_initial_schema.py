"""Initial schema — users, onboardings, webhook_events.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("document_type", sa.String(20), nullable=True),
        sa.Column("document_number", sa.String(30), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="customer"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("document_type", "document_number", name="uq_users_document"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_status", "users", ["status"])

    op.create_table(
        "onboardings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("provider", sa.String(30), nullable=False, server_default="metamap"),
        sa.Column("flow_id", sa.String(100), nullable=True),
        sa.Column("verification_id", sa.String(100), nullable=True, unique=True),
        sa.Column("identity_id", sa.String(100), nullable=True),
        sa.Column("verification_url", sa.String(500), nullable=True),
        sa.Column("attempt", sa.Integer, nullable=False, server_default="1"),
        sa.Column("failure_reason", sa.Text, nullable=True),
        sa.Column("client_metadata", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_onboardings_user_id", "onboardings", ["user_id"])
    op.create_index("ix_onboardings_status", "onboardings", ["status"])
    op.create_index(
        "uq_onboardings_active_user", "onboardings", ["user_id"], unique=True,
        postgresql_where=sa.text("status IN ('in_progress', 'in_review', 'pending')"),
    )

    op.create_table(
        "webhook_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("provider", sa.String(30), nullable=False),
        sa.Column("event_name", sa.String(100), nullable=False),
        sa.Column("resource", sa.String(500), nullable=True),
        sa.Column("verification_id", sa.String(100), nullable=True),
        sa.Column(
            "onboarding_id", UUID(as_uuid=True),
            sa.ForeignKey("onboardings.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("processed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_webhook_events_verification_id", "webhook_events", ["verification_id"])
    op.create_index("ix_webhook_events_onboarding_id", "webhook_events", ["onboarding_id"])


def downgrade() -> None:
    op.drop_index("ix_webhook_events_onboarding_id", table_name="webhook_events")
    op.drop_index("ix_webhook_events_verification_id", table_name="webhook_events")
    op.drop_table("webhook_events")
    op.drop_index("uq_onboardings_active_user", table_name="onboardings")
    op.drop_index("ix_onboardings_status", table_name="onboardings")
    op.drop_index("ix_onboardings_user_id", table_name="onboardings")
    op.drop_table("onboardings")
    op.drop_index("ix_users_status", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
