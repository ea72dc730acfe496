"""Dependency Providers — wire repositories, providers and services per request.

Invariants:
    - One AsyncSession per request (get_db is cached by FastAPI within a request),
      shared by every repository and service built for that request
    - The MetaMap client is process-wide (connection pool + cached token)
    - Tests override get_db and get_identity_provider via app.dependency_overrides
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.repository_protocols import IdentityProvider
from app.infrastructure.database import get_db
from app.providers.metamap_client import MetaMapClient
from app.repositories.onboarding_repository import SqlOnboardingRepository
from app.repositories.user_repository import SqlUserRepository
from app.repositories.webhook_event_repository import SqlWebhookEventRepository
from app.services.onboarding_service import OnboardingService
from app.services.user_service import UserService
from app.services.webhook_service import WebhookService


@lru_cache
def get_metamap_client() -> MetaMapClient:
    settings = get_settings()
    return MetaMapClient(
        base_url=settings.metamap_base_url,
        client_id=settings.metamap_client_id,
        client_secret=settings.metamap_client_secret,
        timeout_seconds=settings.metamap_timeout_seconds,
        max_retries=settings.metamap_max_retries,
        base_delay_ms=settings.metamap_base_delay_ms,
        max_delay_ms=settings.metamap_max_delay_ms,
    )


async def close_metamap_client() -> None:
    if get_metamap_client.cache_info().currsize:
        await get_metamap_client().aclose()
        get_metamap_client.cache_clear()


def get_identity_provider() -> IdentityProvider:
    return get_metamap_client()


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db, SqlUserRepository(db), SqlOnboardingRepository(db))


def get_onboarding_service(
    db: AsyncSession = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> OnboardingService:
    settings = get_settings()
    return OnboardingService(
        db,
        SqlUserRepository(db),
        SqlOnboardingRepository(db),
        provider,
        flow_id=settings.metamap_flow_id,
        max_attempts=settings.onboarding_max_attempts,
    )


def get_webhook_service(
    db: AsyncSession = Depends(get_db),
    onboarding_service: OnboardingService = Depends(get_onboarding_service),
) -> WebhookService:
    return WebhookService(
        db,
        SqlOnboardingRepository(db),
        SqlWebhookEventRepository(db),
        onboarding_service,
        webhook_secret=get_settings().metamap_webhook_secret,
    )
