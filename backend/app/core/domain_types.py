"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, OnboardingId wrap UUIDs — never use bare UUID in domain logic
    - All valid states encoded as Enums — no raw string matching
    - TERMINAL_ONBOARDING_STATUSES and ACTIVE_ONBOARDING_STATUSES partition OnboardingStatus

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders, compare equal to DB strings
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
OnboardingId = NewType("OnboardingId", UUID)
WebhookEventId = NewType("WebhookEventId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class UserStatus(str, Enum):
    """User lifecycle states — maps to DB `status` column."""
    ACTIVE = "active"
    BLOCKED = "blocked"
    DELETED = "deleted"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class DocumentType(str, Enum):
    """Identity documents accepted at registration."""
    CPF = "cpf"
    PASSPORT = "passport"
    NATIONAL_ID = "national_id"


class OnboardingStatus(str, Enum):
    """KYC onboarding lifecycle — maps to DB `status` column."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


TERMINAL_ONBOARDING_STATUSES: frozenset[OnboardingStatus] = frozenset({
    OnboardingStatus.APPROVED,
    OnboardingStatus.REJECTED,
    OnboardingStatus.EXPIRED,
    OnboardingStatus.CANCELLED,
})

ACTIVE_ONBOARDING_STATUSES: frozenset[OnboardingStatus] = frozenset(
    s for s in OnboardingStatus if s not in TERMINAL_ONBOARDING_STATUSES
)


class IdentityProviderName(str, Enum):
    METAMAP = "metamap"


class MetaMapEvent(str, Enum):
    """Webhook event names emitted by MetaMap."""
    VERIFICATION_STARTED = "verification_started"
    VERIFICATION_INPUTS_COMPLETED = "verification_inputs_completed"
    VERIFICATION_UPDATED = "verification_updated"
    VERIFICATION_COMPLETED = "verification_completed"
    VERIFICATION_EXPIRED = "verification_expired"
    STEP_COMPLETED = "step_completed"


class MetaMapIdentityStatus(str, Enum):
    """identityStatus values carried by completed/updated verifications."""
    VERIFIED = "verified"
    REVIEW_NEEDED = "reviewNeeded"
    REJECTED = "rejected"
    DELETED = "deleted"


# ─── Value Objects ───────────────────────────────────────────────

@dataclass(frozen=True)
class VerificationHandle:
    """What the identity provider returns when a verification is created."""
    verification_id: str
    identity_id: str | None = None
    url: str | None = None
