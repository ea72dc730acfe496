"""Onboarding — start, inspect and cancel KYC verifications.

Invariants:
    - POST /onboarding returns 201 with the provider verification_url to redirect to
    - Status changes other than cancel arrive only through the provider webhook
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_onboarding_service
from app.schemas.onboarding import OnboardingCreate, OnboardingResponse
from app.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/api/v1/onboarding", tags=["onboarding"])


@router.post(
    "", response_model=OnboardingResponse, status_code=status.HTTP_201_CREATED,
)
async def start_onboarding(
    body: OnboardingCreate,
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Start a KYC onboarding for a user."""
    onboarding = await service.start_onboarding(body.user_id, body.metadata)
    return OnboardingResponse.from_model(onboarding)


@router.get("/{onboarding_id}", response_model=OnboardingResponse)
async def get_onboarding(
    onboarding_id: UUID,
    service: OnboardingService = Depends(get_onboarding_service),
):
    onboarding = await service.get_onboarding(onboarding_id)
    return OnboardingResponse.from_model(onboarding)


@router.post("/{onboarding_id}/cancel", response_model=OnboardingResponse)
async def cancel_onboarding(
    onboarding_id: UUID,
    service: OnboardingService = Depends(get_onboarding_service),
):
    onboarding = await service.cancel_onboarding(onboarding_id)
    return OnboardingResponse.from_model(onboarding)
