"""User ORM — persists the customer/admin account that owns onboardings.

Invariants:
    - id is UUID primary key
    - email is unique and stored normalized (lower-case, stripped)
    - (document_type, document_number) is unique when present; both or neither
    - status transitions: active <-> blocked, any -> deleted (soft delete, never reverted)

Design Decisions:
    - Soft delete via status column: onboardings and webhook history stay auditable
    - No ORM relationship to onboardings: queries go through OnboardingRepository,
      avoiding implicit lazy loads under AsyncSession
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, utcnow


class User(Base):
    """User account — subject of KYC onboarding."""
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint(
            "document_type", "document_number", name="uq_users_document",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True,
    )
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    document_type: Mapped[str | None] = mapped_column(
        String(20), nullable=True,
    )
    document_number: Mapped[str | None] = mapped_column(
        String(30), nullable=True,
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="customer",
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
        onupdate=utcnow,
    )
