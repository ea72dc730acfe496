"""Onboarding Rules — transition table and MetaMap event mapping.

Tests cover:
    - Terminal statuses have no way out
    - Same-status transitions are allowed (webhook redelivery)
    - in_review cannot be cancelled
    - Event + identityStatus → target status
"""

import pytest

from app.core.domain_types import (
    OnboardingStatus, TERMINAL_ONBOARDING_STATUSES, ACTIVE_ONBOARDING_STATUSES,
)
from app.core.errors import AppError
from app.core.onboarding_rules import (
    ALLOWED_TRANSITIONS, assert_transition, can_transition, is_terminal,
    status_for_event,
)


def test_every_status_has_a_transition_entry():
    assert set(ALLOWED_TRANSITIONS) == set(OnboardingStatus)


def test_active_and_terminal_partition_statuses():
    assert ACTIVE_ONBOARDING_STATUSES | TERMINAL_ONBOARDING_STATUSES == set(OnboardingStatus)
    assert not ACTIVE_ONBOARDING_STATUSES & TERMINAL_ONBOARDING_STATUSES


@pytest.mark.parametrize("status", sorted(TERMINAL_ONBOARDING_STATUSES))
def test_terminal_statuses_have_no_outgoing_transitions(status):
    assert is_terminal(status)
    for target in OnboardingStatus:
        if target != status:
            assert not can_transition(status, target)


def test_same_status_is_allowed():
    assert can_transition("approved", "approved")
    assert can_transition(OnboardingStatus.PENDING, OnboardingStatus.PENDING)


def test_pending_can_jump_straight_to_a_decision():
    assert can_transition("pending", "approved")
    assert can_transition("pending", "rejected")


def test_in_review_cannot_go_back_or_be_cancelled():
    assert not can_transition("in_review", "in_progress")
    assert not can_transition("in_review", "cancelled")
    assert can_transition("in_review", "approved")


def test_assert_transition_raises_422_with_details():
    with pytest.raises(AppError) as exc_info:
        assert_transition("approved", OnboardingStatus.IN_PROGRESS)
    err = exc_info.value
    assert err.http_status == 422
    assert err.code == "INVALID_TRANSITION"
    assert err.details == {"from": "approved", "to": "in_progress"}


def test_assert_transition_accepts_valid_move():
    assert_transition("pending", "in_progress")


@pytest.mark.parametrize("event_name, identity_status, expected", [
    ("verification_started", None, OnboardingStatus.IN_PROGRESS),
    ("verification_inputs_completed", None, OnboardingStatus.IN_REVIEW),
    ("verification_expired", None, OnboardingStatus.EXPIRED),
    ("verification_completed", "verified", OnboardingStatus.APPROVED),
    ("verification_completed", "rejected", OnboardingStatus.REJECTED),
    ("verification_updated", "reviewNeeded", OnboardingStatus.IN_REVIEW),
    ("verification_updated", "deleted", OnboardingStatus.CANCELLED),
])
def test_status_for_event(event_name, identity_status, expected):
    assert status_for_event(event_name, identity_status) == expected


def test_informational_events_map_to_none():
    assert status_for_event("step_completed") is None
    assert status_for_event("something_new") is None
    assert status_for_event("verification_completed") is None
    assert status_for_event("verification_updated", "unknown") is None
