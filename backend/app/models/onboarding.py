"""Onboarding ORM — one KYC verification attempt for a user.

Invariants:
    - user_id links to the owning user (cascade on hard delete)
    - verification_id is the provider's id, unique when present
    - status follows core/onboarding_rules.ALLOWED_TRANSITIONS
    - completed_at is set exactly when status becomes terminal
    - attempt is 1-based and increases per user
    - At most one active (pending, in_progress, in_review) onboarding per user,
      enforced by the partial unique index uq_onboardings_active_user

Design Decisions:
    - client_metadata attribute (not `metadata`): the name is reserved by declarative Base
    - verification_url stored: the frontend redirects the user to the provider flow
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, Integer, DateTime, JSON, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.core.domain_types import ACTIVE_ONBOARDING_STATUSES
from app.db.base import Base, utcnow

# Partial unique index predicate: at most one active onboarding per user
ACTIVE_STATUS_PREDICATE = "status IN ({})".format(
    ", ".join(f"'{s.value}'" for s in sorted(ACTIVE_ONBOARDING_STATUSES)),
)


class Onboarding(Base):
    """KYC onboarding attempt, driven by provider webhooks."""
    __tablename__ = "onboardings"
    __table_args__ = (
        Index(
            "uq_onboardings_active_user", "user_id", unique=True,
            postgresql_where=text(ACTIVE_STATUS_PREDICATE),
            sqlite_where=text(ACTIVE_STATUS_PREDICATE),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", index=True,
    )
    provider: Mapped[str] = mapped_column(
        String(30), nullable=False, default="metamap",
    )
    flow_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    verification_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True, unique=True,
    )
    identity_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True,
    )
    verification_url: Mapped[str | None] = mapped_column(
        String(500), nullable=True,
    )
    attempt: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_metadata: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
        onupdate=utcnow,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
