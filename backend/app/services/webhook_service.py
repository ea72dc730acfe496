"""Webhook Service — verifies, records and applies MetaMap webhook deliveries.

Invariants:
    - Signature checked on the RAW body before parsing (INVALID_SIGNATURE, 401)
    - Body must validate as MetaMapWebhookPayload (INVALID_PAYLOAD, 400): a JSON object
      with a non-empty eventName and string-typed, length-bounded fields
    - Every accepted delivery is stored as a WebhookEvent, matched or not
    - Unmatched events and out-of-order transitions are acknowledged (200) with the
      reason stored on the event: the provider would otherwise retry them forever
    - Onboarding matching: metadata.onboarding_id first, then the verification id
      (last path segment of `resource`, or `verificationId`)
"""

import logging
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import IdentityProviderName
from app.core.errors import AppError
from app.core.repository_protocols import OnboardingRepository, WebhookEventRepository
from app.infrastructure.database import commit_or_raise
from app.models.onboarding import Onboarding
from app.models.webhook_event import WebhookEvent
from app.providers.metamap_client import verify_webhook_signature
from app.schemas.webhook import MetaMapWebhookPayload, WebhookAck
from app.services.onboarding_service import OnboardingService

logger = logging.getLogger(__name__)

PROVIDER = IdentityProviderName.METAMAP.value
MAX_VERIFICATION_ID_LENGTH = 100


def parse_payload(raw_body: bytes) -> MetaMapWebhookPayload:
    """Validate the webhook body or raise AppError (400)."""
    try:
        return MetaMapWebhookPayload.model_validate_json(raw_body or b"")
    except ValidationError as e:
        raise AppError.bad_request(
            "Webhook body is not a valid MetaMap event",
            code="INVALID_PAYLOAD",
            details={
                "fields": [
                    ".".join(str(loc) for loc in err["loc"]) or "body"
                    for err in e.errors()
                ],
            },
        )


def extract_verification_id(payload: MetaMapWebhookPayload) -> str | None:
    """Last path segment of `resource`, else `verificationId`; None if unusable."""
    candidate = None
    if payload.resource and payload.resource.strip("/"):
        candidate = payload.resource.rstrip("/").rsplit("/", 1)[-1]
    elif payload.verificationId:
        candidate = payload.verificationId
    if not candidate or len(candidate) > MAX_VERIFICATION_ID_LENGTH:
        return None
    return candidate


def extract_onboarding_id(payload: MetaMapWebhookPayload) -> UUID | None:
    if not payload.metadata:
        return None
    try:
        return UUID(str(payload.metadata.get("onboarding_id")))
    except ValueError:
        return None


class WebhookService:
    """Processes identity-provider webhooks."""

    def __init__(
        self,
        db: AsyncSession,
        onboardings: OnboardingRepository,
        events: WebhookEventRepository,
        onboarding_service: OnboardingService,
        webhook_secret: str = "",
    ):
        self.db = db
        self.onboardings = onboardings
        self.events = events
        self.onboarding_service = onboarding_service
        self.webhook_secret = webhook_secret

    async def handle_metamap(
        self, raw_body: bytes, signature: str | None,
    ) -> WebhookAck:
        """POST /webhooks/metamap."""
        if not verify_webhook_signature(self.webhook_secret, raw_body, signature):
            logger.warning("Rejected webhook with invalid signature", extra={"provider": PROVIDER})
            raise AppError.unauthorized(
                "Invalid webhook signature", code="INVALID_SIGNATURE",
            )
        payload = parse_payload(raw_body)
        event_name = payload.eventName
        verification_id = extract_verification_id(payload)

        event = WebhookEvent(
            provider=PROVIDER,
            event_name=event_name,
            resource=payload.resource,
            verification_id=verification_id,
            payload=payload.model_dump(mode="json", exclude_unset=True),
        )
        await self.events.add(event)

        onboarding = await self._match(payload, verification_id)
        if onboarding is None:
            event.error = "onboarding_not_found"
            await commit_or_raise(self.db, "record_webhook")
            logger.warning(
                "Webhook did not match any onboarding",
                extra={"event_name": event_name, "provider": PROVIDER},
            )
            return WebhookAck(event_name=event_name)

        event.onboarding_id = onboarding.id
        try:
            self.onboarding_service.apply_provider_event(
                onboarding,
                event_name,
                identity_status=payload.identityStatus,
                reason=_rejection_reason(payload),
            )
            event.processed = True
        except AppError as e:
            if e.code != "INVALID_TRANSITION":
                raise
            event.error = e.code
            logger.warning(
                f"Ignored out-of-order webhook: {e.message}",
                extra={
                    "event_name": event_name,
                    "onboarding_id": str(onboarding.id),
                    "error_code": e.code,
                },
            )
        await commit_or_raise(self.db, "apply_webhook")
        logger.info(
            "Webhook processed",
            extra={
                "event_name": event_name,
                "onboarding_id": str(onboarding.id),
                "provider": PROVIDER,
            },
        )
        return WebhookAck(
            event_name=event_name,
            onboarding_id=onboarding.id,
            status=onboarding.status,
        )

    async def _match(
        self, payload: MetaMapWebhookPayload, verification_id: str | None,
    ) -> Onboarding | None:
        onboarding_id = extract_onboarding_id(payload)
        if onboarding_id is not None:
            onboarding = await self.onboardings.get(onboarding_id)
            if onboarding is not None:
                return onboarding
        if verification_id:
            return await self.onboardings.get_by_verification_id(verification_id)
        return None


def _rejection_reason(payload: MetaMapWebhookPayload) -> str | None:
    reason = payload.reason or payload.rejectionReason
    return str(reason)[:1000] if reason else None
