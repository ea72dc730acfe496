"""Webhook Event Repository — audit log writes and per-onboarding reads."""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.webhook_event import WebhookEvent


class SqlWebhookEventRepository:
    """WebhookEventRepository backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, event: WebhookEvent) -> WebhookEvent:
        self.db.add(event)
        return event

    async def list_for_onboarding(
        self, onboarding_id: UUID,
    ) -> Sequence[WebhookEvent]:
        result = await self.db.execute(
            select(WebhookEvent)
            .where(WebhookEvent.onboarding_id == onboarding_id)
            .order_by(WebhookEvent.received_at.asc())
        )
        return result.scalars().all()
