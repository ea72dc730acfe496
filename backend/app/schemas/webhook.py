"""Webhook Schemas — MetaMap delivery payload and the acknowledgement returned to it.

Invariants:
    - Every field the service reads is typed and length-bounded to fit its column
    - Unknown fields are kept (extra="allow") so the stored payload stays complete
"""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MetaMapWebhookPayload(BaseModel):
    """Body of POST /webhooks/metamap (MetaMap's camelCase keys)."""
    model_config = ConfigDict(extra="allow")

    eventName: str = Field(min_length=1, max_length=100)
    resource: str | None = Field(None, max_length=500)
    verificationId: str | None = Field(None, max_length=100)
    identityStatus: str | None = Field(None, max_length=50)
    reason: str | None = None
    rejectionReason: str | None = None
    metadata: dict[str, Any] | None = None


class WebhookAck(BaseModel):
    received: bool = True
    event_name: str
    onboarding_id: UUID | None = None
    status: str | None = None
