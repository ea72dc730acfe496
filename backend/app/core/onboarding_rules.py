"""Onboarding Rules — status transitions and provider event mapping.

Invariants:
    - Terminal statuses (approved, rejected, expired, cancelled) have no outgoing transitions
    - Same-status transitions are allowed no-ops (webhooks are redelivered)
    - status_for_event is PURE: returns the target status or None, never mutates
    - assert_transition raises AppError.unprocessable_entity(INVALID_TRANSITION)

Design Decisions:
    - Transition table as a dict of frozensets: single source of truth, trivially testable
    - in_review cannot be cancelled by the user: the provider owns the decision once
      documents are submitted
"""

from app.core.domain_types import (
    OnboardingStatus,
    MetaMapEvent,
    MetaMapIdentityStatus,
    TERMINAL_ONBOARDING_STATUSES,
)
from app.core.errors import AppError


ALLOWED_TRANSITIONS: dict[OnboardingStatus, frozenset[OnboardingStatus]] = {
    OnboardingStatus.PENDING: frozenset({
        OnboardingStatus.IN_PROGRESS,
        OnboardingStatus.IN_REVIEW,
        OnboardingStatus.APPROVED,
        OnboardingStatus.REJECTED,
        OnboardingStatus.EXPIRED,
        OnboardingStatus.CANCELLED,
    }),
    OnboardingStatus.IN_PROGRESS: frozenset({
        OnboardingStatus.IN_REVIEW,
        OnboardingStatus.APPROVED,
        OnboardingStatus.REJECTED,
        OnboardingStatus.EXPIRED,
        OnboardingStatus.CANCELLED,
    }),
    OnboardingStatus.IN_REVIEW: frozenset({
        OnboardingStatus.APPROVED,
        OnboardingStatus.REJECTED,
        OnboardingStatus.EXPIRED,
    }),
    OnboardingStatus.APPROVED: frozenset(),
    OnboardingStatus.REJECTED: frozenset(),
    OnboardingStatus.EXPIRED: frozenset(),
    OnboardingStatus.CANCELLED: frozenset(),
}

_IDENTITY_STATUS_MAP: dict[str, OnboardingStatus] = {
    MetaMapIdentityStatus.VERIFIED.value: OnboardingStatus.APPROVED,
    MetaMapIdentityStatus.REJECTED.value: OnboardingStatus.REJECTED,
    MetaMapIdentityStatus.REVIEW_NEEDED.value: OnboardingStatus.IN_REVIEW,
    MetaMapIdentityStatus.DELETED.value: OnboardingStatus.CANCELLED,
}


def is_terminal(status: OnboardingStatus | str) -> bool:
    return OnboardingStatus(status) in TERMINAL_ONBOARDING_STATUSES


def can_transition(
    current: OnboardingStatus | str, target: OnboardingStatus | str,
) -> bool:
    """True if current -> target is allowed (same status counts as allowed)."""
    current = OnboardingStatus(current)
    target = OnboardingStatus(target)
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def assert_transition(
    current: OnboardingStatus | str, target: OnboardingStatus | str,
) -> None:
    """Raise AppError (422) if current -> target is not allowed."""
    if not can_transition(current, target):
        raise AppError.unprocessable_entity(
            f"Cannot move onboarding from '{OnboardingStatus(current).value}' "
            f"to '{OnboardingStatus(target).value}'",
            code="INVALID_TRANSITION",
            details={
                "from": OnboardingStatus(current).value,
                "to": OnboardingStatus(target).value,
            },
        )


def status_for_event(
    event_name: str, identity_status: str | None = None,
) -> OnboardingStatus | None:
    """Map a MetaMap webhook event to the onboarding status it implies.

    Returns None for informational events (step_completed, unknown names,
    completed/updated events without a recognised identityStatus).
    """
    if event_name == MetaMapEvent.VERIFICATION_STARTED.value:
        return OnboardingStatus.IN_PROGRESS
    if event_name == MetaMapEvent.VERIFICATION_INPUTS_COMPLETED.value:
        return OnboardingStatus.IN_REVIEW
    if event_name == MetaMapEvent.VERIFICATION_EXPIRED.value:
        return OnboardingStatus.EXPIRED
    if event_name in (
        MetaMapEvent.VERIFICATION_COMPLETED.value,
        MetaMapEvent.VERIFICATION_UPDATED.value,
    ):
        return _IDENTITY_STATUS_MAP.get(identity_status or "")
    return None
