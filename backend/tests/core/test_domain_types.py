"""Domain Types — enum values shared with the database and the provider."""

from uuid import uuid4

from app.core.domain_types import (
    UserId, OnboardingId, UserStatus, DocumentType, OnboardingStatus,
    MetaMapEvent, VerificationHandle,
)


def test_identity_types_wrap_uuid():
    uid = uuid4()
    assert UserId(uid) == uid
    assert OnboardingId(uid) == uid


def test_enums_compare_equal_to_db_strings():
    assert UserStatus.ACTIVE == "active"
    assert OnboardingStatus.IN_REVIEW == "in_review"
    assert DocumentType("cpf") is DocumentType.CPF


def test_onboarding_has_seven_statuses():
    assert len(OnboardingStatus) == 7


def test_metamap_event_names():
    assert MetaMapEvent("verification_inputs_completed") is MetaMapEvent.VERIFICATION_INPUTS_COMPLETED


def test_verification_handle_defaults():
    handle = VerificationHandle("ver-1")
    assert handle.identity_id is None
    assert handle.url is None
