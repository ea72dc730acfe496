"""Onboarding Service — starts KYC verifications and applies provider status changes.

Invariants:
    - At most one active (non-terminal) onboarding per user (ONBOARDING_ACTIVE, 409)
    - Users with an approved onboarding cannot start another (ALREADY_VERIFIED, 409)
    - Attempts per user capped at max_attempts (MAX_ATTEMPTS_REACHED, 422); every
      persisted attempt counts, whatever its outcome
    - The provider is called BEFORE anything is persisted: a provider failure leaves no row
    - The user row is locked (SELECT ... FOR UPDATE) for the whole start; a start that still
      races past it hits uq_onboardings_active_user and becomes ONBOARDING_ACTIVE (409)
    - Status changes go through move_onboarding (asserts core/onboarding_rules transitions)
    - completed_at set exactly when the status becomes terminal

Design Decisions:
    - onboarding id generated up front and sent as provider metadata: webhooks carry it
      back, so matching does not depend on the provider's verification id alone
"""

import logging
import uuid
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import (
    OnboardingStatus, UserStatus, IdentityProviderName,
)
from app.core.errors import AppError
from app.core.onboarding_rules import (
    assert_transition, is_terminal, status_for_event,
)
from app.core.repository_protocols import (
    IdentityProvider, OnboardingRepository, UserRepository,
)
from app.db.base import utcnow
from app.infrastructure.database import commit_or_raise
from app.models.onboarding import Onboarding

logger = logging.getLogger(__name__)


class OnboardingService:
    """KYC onboarding use cases."""

    def __init__(
        self,
        db: AsyncSession,
        users: UserRepository,
        onboardings: OnboardingRepository,
        provider: IdentityProvider,
        flow_id: str,
        max_attempts: int = 3,
    ):
        self.db = db
        self.users = users
        self.onboardings = onboardings
        self.provider = provider
        self.flow_id = flow_id
        self.max_attempts = max_attempts

    async def start_onboarding(
        self, user_id: UUID, metadata: dict[str, Any] | None = None,
    ) -> Onboarding:
        """Validate eligibility, create the provider verification, then persist."""
        user = await self.users.get_for_update(user_id)
        if user is None or user.status == UserStatus.DELETED.value:
            raise AppError.not_found("User", user_id)
        if user.status == UserStatus.BLOCKED.value:
            raise AppError.unprocessable_entity(
                "Blocked users cannot start onboarding", code="USER_BLOCKED",
            )
        if not user.document_number:
            raise AppError.unprocessable_entity(
                "A document is required before onboarding",
                code="DOCUMENT_REQUIRED",
            )

        active = await self.onboardings.get_active_for_user(user.id)
        if active is not None:
            raise AppError.conflict(
                "User already has an onboarding in progress",
                code="ONBOARDING_ACTIVE",
                details={"onboarding_id": str(active.id), "status": active.status},
            )
        if await self.onboardings.has_approved(user.id):
            raise AppError.conflict(
                "User is already verified", code="ALREADY_VERIFIED",
            )
        attempts = await self.onboardings.count_for_user(user.id)
        if attempts >= self.max_attempts:
            raise AppError.unprocessable_entity(
                f"Maximum of {self.max_attempts} onboarding attempts reached",
                code="MAX_ATTEMPTS_REACHED",
                details={"attempts": attempts},
            )

        onboarding_id = uuid.uuid4()
        client_metadata = dict(metadata or {})
        handle = await self.provider.create_verification(
            self.flow_id,
            {
                **client_metadata,
                "user_id": str(user.id),
                "onboarding_id": str(onboarding_id),
            },
        )

        onboarding = Onboarding(
            id=onboarding_id,
            user_id=user.id,
            status=OnboardingStatus.PENDING.value,
            provider=IdentityProviderName.METAMAP.value,
            flow_id=self.flow_id,
            verification_id=handle.verification_id,
            identity_id=handle.identity_id,
            verification_url=handle.url,
            attempt=attempts + 1,
            client_metadata=client_metadata,
        )
        await self.onboardings.add(onboarding)
        try:
            await commit_or_raise(self.db, "start_onboarding")
        except AppError as e:
            if e.code != "INTEGRITY_ERROR":
                raise
            logger.warning(
                "Concurrent onboarding start lost the race; provider verification orphaned",
                extra={"user_id": str(user.id), "provider": onboarding.provider},
            )
            raise AppError.conflict(
                "User already has an onboarding in progress",
                code="ONBOARDING_ACTIVE",
            ) from e
        logger.info(
            "Onboarding started",
            extra={
                "user_id": str(user.id),
                "onboarding_id": str(onboarding.id),
                "attempt": onboarding.attempt,
                "provider": onboarding.provider,
            },
        )
        return onboarding

    async def get_onboarding(self, onboarding_id: UUID) -> Onboarding:
        onboarding = await self.onboardings.get(onboarding_id)
        if onboarding is None:
            raise AppError.not_found("Onboarding", onboarding_id)
        return onboarding

    async def list_for_user(self, user_id: UUID) -> list[Onboarding]:
        user = await self.users.get(user_id)
        if user is None or user.status == UserStatus.DELETED.value:
            raise AppError.not_found("User", user_id)
        return list(await self.onboardings.list_for_user(user.id))

    async def cancel_onboarding(self, onboarding_id: UUID) -> Onboarding:
        onboarding = await self.get_onboarding(onboarding_id)
        if is_terminal(onboarding.status):
            raise AppError.unprocessable_entity(
                f"Onboarding is already {onboarding.status}",
                code="ONBOARDING_CLOSED",
            )
        move_onboarding(onboarding, OnboardingStatus.CANCELLED, reason="cancelled_by_user")
        await commit_or_raise(self.db, "cancel_onboarding")
        logger.info(
            "Onboarding cancelled", extra={"onboarding_id": str(onboarding.id)},
        )
        return onboarding

    def apply_provider_event(
        self,
        onboarding: Onboarding,
        event_name: str,
        identity_status: str | None = None,
        reason: str | None = None,
    ) -> OnboardingStatus | None:
        """Apply a webhook event to the onboarding in memory (caller commits).

        Returns the new status, or None when the event implies no change.
        Raises AppError(INVALID_TRANSITION) for an out-of-order event.
        """
        target = status_for_event(event_name, identity_status)
        if target is None or target.value == onboarding.status:
            return None
        move_onboarding(onboarding, target, reason=reason)
        return target


def move_onboarding(
    onboarding: Onboarding, target: OnboardingStatus, reason: str | None = None,
) -> None:
    """Apply a status change in memory (caller commits).

    Raises AppError(INVALID_TRANSITION) when the move is not allowed.
    """
    assert_transition(onboarding.status, target)
    previous = onboarding.status
    onboarding.status = target.value
    onboarding.updated_at = utcnow()
    if is_terminal(target):
        onboarding.completed_at = utcnow()
    if target in (OnboardingStatus.REJECTED, OnboardingStatus.CANCELLED):
        onboarding.failure_reason = reason or target.value
    logger.info(
        f"Onboarding {previous} -> {target.value}",
        extra={"onboarding_id": str(onboarding.id)},
    )
