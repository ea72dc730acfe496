"""WebhookEvent ORM — audit log of every provider webhook received.

Invariants:
    - Every accepted (signature-valid, parseable) webhook is stored, matched or not
    - onboarding_id is NULL when the event could not be matched
    - error holds the reason an event was stored but not applied

Design Decisions:
    - Logging table, not enforcement: no business rule reads it
    - JSON payload stored as-is for replay/debugging
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, utcnow


class WebhookEvent(Base):
    """Raw provider webhook delivery."""
    __tablename__ = "webhook_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    provider: Mapped[str] = mapped_column(String(30), nullable=False)
    event_name: Mapped[str] = mapped_column(String(100), nullable=False)
    resource: Mapped[str | None] = mapped_column(String(500), nullable=True)
    verification_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True, index=True,
    )
    onboarding_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("onboardings.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    processed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
