"""Onboarding Repository — persistence queries for Onboarding.

Invariants:
    - get_active_for_user returns the newest non-terminal onboarding (at most one exists
      when writes go through OnboardingService)
    - list_for_user is newest first
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ACTIVE_ONBOARDING_STATUSES, OnboardingStatus
from app.models.onboarding import Onboarding

_ACTIVE_VALUES = sorted(s.value for s in ACTIVE_ONBOARDING_STATUSES)


class SqlOnboardingRepository:
    """OnboardingRepository backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, onboarding: Onboarding) -> Onboarding:
        self.db.add(onboarding)
        return onboarding

    async def get(self, onboarding_id: UUID) -> Onboarding | None:
        result = await self.db.execute(
            select(Onboarding).where(Onboarding.id == onboarding_id),
        )
        return result.scalar_one_or_none()

    async def get_by_verification_id(
        self, verification_id: str,
    ) -> Onboarding | None:
        result = await self.db.execute(
            select(Onboarding).where(
                Onboarding.verification_id == verification_id,
            ),
        )
        return result.scalar_one_or_none()

    async def get_active_for_user(self, user_id: UUID) -> Onboarding | None:
        result = await self.db.execute(
            select(Onboarding)
            .where(Onboarding.user_id == user_id)
            .where(Onboarding.status.in_(_ACTIVE_VALUES))
            .order_by(Onboarding.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: UUID) -> Sequence[Onboarding]:
        result = await self.db.execute(
            select(Onboarding)
            .where(Onboarding.user_id == user_id)
            .order_by(Onboarding.created_at.desc(), Onboarding.attempt.desc())
        )
        return result.scalars().all()

    async def count_for_user(self, user_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Onboarding)
            .where(Onboarding.user_id == user_id)
        )
        return result.scalar_one()

    async def has_approved(self, user_id: UUID) -> bool:
        result = await self.db.execute(
            select(func.count())
            .select_from(Onboarding)
            .where(Onboarding.user_id == user_id)
            .where(Onboarding.status == OnboardingStatus.APPROVED.value)
        )
        return result.scalar_one() > 0
