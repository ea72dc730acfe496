"""User Service — registration, profile updates, blocking and soft deletion.

Invariants:
    - Emails stored normalized; uniqueness checked before write (EMAIL_TAKEN, 409)
    - Documents normalized/validated by core/documents.py; unique per type (DOCUMENT_TAKEN, 409)
    - Deleted users behave as missing for every operation (404)
    - status=deleted is reached only through delete_user (UserUpdate.status is active|blocked)
    - delete_user cancels the user's active onboarding in the same transaction, unless
      it is already in_review (the provider owns that decision)
    - Every public method either commits once or raises AppError

Design Decisions:
    - Soft delete keeps the email reserved: re-registration with the same address is a conflict
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.documents import normalize_document, normalize_email
from app.core.domain_types import DocumentType, OnboardingStatus, UserRole, UserStatus
from app.core.errors import AppError
from app.core.onboarding_rules import can_transition
from app.core.repository_protocols import OnboardingRepository, UserRepository
from app.db.base import utcnow
from app.infrastructure.database import commit_or_raise
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate
from app.services.onboarding_service import move_onboarding

logger = logging.getLogger(__name__)

_NON_NULLABLE_FIELDS = ("email", "full_name", "role", "status")


class UserService:
    """User management use cases."""

    def __init__(
        self,
        db: AsyncSession,
        users: UserRepository,
        onboardings: OnboardingRepository,
    ):
        self.db = db
        self.users = users
        self.onboardings = onboardings

    async def create_user(self, data: UserCreate) -> User:
        email = normalize_email(data.email)
        await self._ensure_email_free(email)

        document_type, document_number = None, None
        if data.document_type is not None and data.document_number is not None:
            document_type = DocumentType(data.document_type)
            document_number = normalize_document(document_type, data.document_number)
            await self._ensure_document_free(document_type, document_number)

        user = User(
            email=email,
            full_name=data.full_name,
            phone=data.phone,
            document_type=document_type.value if document_type else None,
            document_number=document_number,
            role=data.role.value,
            status=UserStatus.ACTIVE.value,
        )
        await self.users.add(user)
        await commit_or_raise(self.db, "create_user")
        logger.info("User created", extra={"user_id": str(user.id)})
        return user

    async def get_user(self, user_id: UUID) -> User:
        user = await self.users.get(user_id)
        if user is None or user.status == UserStatus.DELETED.value:
            raise AppError.not_found("User", user_id)
        return user

    async def list_users(
        self, limit: int = 20, offset: int = 0, status: UserStatus | None = None,
    ) -> tuple[list[User], int]:
        items = await self.users.list(limit, offset, status)
        total = await self.users.count(status)
        return list(items), total

    async def update_user(self, user_id: UUID, data: UserUpdate) -> User:
        user = await self.get_user(user_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)

        for key in _NON_NULLABLE_FIELDS:
            if key in changes and changes[key] is None:
                changes.pop(key)

        if "email" in changes:
            email = normalize_email(changes["email"])
            if email != user.email:
                await self._ensure_email_free(email)
            user.email = email

        if "document_type" in changes or "document_number" in changes:
            document_type, document_number = await self._resolve_document(
                changes.get("document_type"), changes.get("document_number"), user.id,
            )
            user.document_type = document_type
            user.document_number = document_number

        for key in ("full_name", "phone"):
            if key in changes:
                setattr(user, key, changes[key])
        if "role" in changes:
            user.role = UserRole(changes["role"]).value
        if "status" in changes:
            user.status = UserStatus(changes["status"]).value

        user.updated_at = utcnow()
        await commit_or_raise(self.db, "update_user")
        logger.info("User updated", extra={"user_id": str(user.id)})
        return user

    async def set_status(self, user_id: UUID, status: UserStatus) -> User:
        """Switch between active and blocked; deletion goes through delete_user."""
        user = await self.get_user(user_id)
        if user.status != status.value:
            user.status = status.value
            user.updated_at = utcnow()
            await commit_or_raise(self.db, "set_user_status")
            logger.info(
                f"User status set to {status.value}",
                extra={"user_id": str(user.id)},
            )
        return user

    async def block_user(self, user_id: UUID) -> User:
        return await self.set_status(user_id, UserStatus.BLOCKED)

    async def unblock_user(self, user_id: UUID) -> User:
        return await self.set_status(user_id, UserStatus.ACTIVE)

    async def delete_user(self, user_id: UUID) -> None:
        """Soft delete; the active onboarding (if any) is cancelled."""
        user = await self.get_user(user_id)
        active = await self.onboardings.get_active_for_user(user.id)
        if active is not None and can_transition(active.status, OnboardingStatus.CANCELLED):
            move_onboarding(active, OnboardingStatus.CANCELLED, reason="user_deleted")

        user.status = UserStatus.DELETED.value
        user.updated_at = utcnow()
        await commit_or_raise(self.db, "delete_user")
        logger.info("User deleted", extra={"user_id": str(user.id)})

    # ─── Helpers ────────────────────────────────────────────────

    async def _ensure_email_free(self, email: str) -> None:
        if await self.users.get_by_email(email) is not None:
            raise AppError.conflict(
                f"Email '{email}' is already registered",
                code="EMAIL_TAKEN",
                details={"field": "email"},
            )

    async def _ensure_document_free(
        self, document_type: DocumentType, document_number: str,
        exclude: UUID | None = None,
    ) -> None:
        holder = await self.users.get_by_document(document_type, document_number)
        if holder is not None and holder.id != exclude:
            raise AppError.conflict(
                "Document is already registered to another user",
                code="DOCUMENT_TAKEN",
                details={"field": "document_number"},
            )

    async def _resolve_document(
        self, document_type: Any, document_number: str | None, user_id: UUID,
    ) -> tuple[str | None, str | None]:
        """Validate a document change before touching the entity (avoids autoflush)."""
        if document_type is None or document_number is None:
            return None, None
        document_type = DocumentType(document_type)
        normalized = normalize_document(document_type, document_number)
        await self._ensure_document_free(document_type, normalized, exclude=user_id)
        return document_type.value, normalized
