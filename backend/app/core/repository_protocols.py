"""Boundary Protocols — contracts between services and the shell (DB, identity provider).

Invariants:
    - Services depend on these Protocols, never on concrete repository/client classes
    - Repositories only add and query; services own commit
    - Implementations provided via FastAPI dependency injection (api/dependencies.py)

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes without inheritance
"""

from typing import Any, Protocol, Sequence

from app.core.domain_types import (
    UserId, OnboardingId, DocumentType, UserStatus, VerificationHandle,
)


class UserRepository(Protocol):
    """Contract for user persistence."""
    async def add(self, user: Any) -> Any: ...
    async def get(self, user_id: UserId) -> Any | None: ...
    async def get_for_update(self, user_id: UserId) -> Any | None: ...
    async def get_by_email(self, email: str) -> Any | None: ...
    async def get_by_document(
        self, document_type: DocumentType, document_number: str,
    ) -> Any | None: ...
    async def list(
        self, limit: int, offset: int, status: UserStatus | None = None,
    ) -> Sequence[Any]: ...
    async def count(self, status: UserStatus | None = None) -> int: ...


class OnboardingRepository(Protocol):
    """Contract for onboarding persistence."""
    async def add(self, onboarding: Any) -> Any: ...
    async def get(self, onboarding_id: OnboardingId) -> Any | None: ...
    async def get_by_verification_id(self, verification_id: str) -> Any | None: ...
    async def get_active_for_user(self, user_id: UserId) -> Any | None: ...
    async def list_for_user(self, user_id: UserId) -> Sequence[Any]: ...
    async def count_for_user(self, user_id: UserId) -> int: ...
    async def has_approved(self, user_id: UserId) -> bool: ...


class WebhookEventRepository(Protocol):
    """Contract for raw webhook event persistence."""
    async def add(self, event: Any) -> Any: ...
    async def list_for_onboarding(
        self, onboarding_id: OnboardingId,
    ) -> Sequence[Any]: ...


class IdentityProvider(Protocol):
    """Contract for the KYC identity-verification provider."""
    async def create_verification(
        self, flow_id: str, metadata: dict[str, Any],
    ) -> VerificationHandle: ...
