"""Onboarding Schemas — request/response contracts for KYC onboarding endpoints."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class OnboardingCreate(BaseModel):
    """POST /onboarding — start a verification for a user."""
    user_id: UUID
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata")
    @classmethod
    def limit_metadata(cls, v: dict[str, Any]) -> dict[str, Any]:
        if len(v) > 20:
            raise ValueError("metadata accepts at most 20 keys")
        return v


class OnboardingResponse(BaseModel):
    """Public-facing onboarding data."""
    id: UUID
    user_id: UUID
    status: str
    provider: str
    verification_id: str | None
    verification_url: str | None
    attempt: int
    failure_reason: str | None
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None

    @classmethod
    def from_model(cls, onboarding) -> "OnboardingResponse":
        return cls(
            id=onboarding.id,
            user_id=onboarding.user_id,
            status=onboarding.status,
            provider=onboarding.provider,
            verification_id=onboarding.verification_id,
            verification_url=onboarding.verification_url,
            attempt=onboarding.attempt,
            failure_reason=onboarding.failure_reason,
            metadata=onboarding.client_metadata or {},
            created_at=onboarding.created_at,
            updated_at=onboarding.updated_at,
            completed_at=onboarding.completed_at,
        )


class OnboardingListResponse(BaseModel):
    items: list[OnboardingResponse]
