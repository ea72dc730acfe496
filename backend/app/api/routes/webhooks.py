"""Webhooks — inbound notifications from the identity provider.

Invariants:
    - The raw body is passed through unparsed: the signature covers the exact bytes
    - 200 acknowledges receipt; 400/401 tell the provider the delivery is unusable
"""

from fastapi import APIRouter, Depends, Header, Request

from app.api.dependencies import get_webhook_service
from app.schemas.webhook import WebhookAck
from app.services.webhook_service import WebhookService

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


@router.post("/metamap", response_model=WebhookAck)
async def metamap_webhook(
    request: Request,
    x_signature: str | None = Header(None),
    service: WebhookService = Depends(get_webhook_service),
):
    """MetaMap verification events."""
    raw_body = await request.body()
    return await service.handle_metamap(raw_body, x_signature)
