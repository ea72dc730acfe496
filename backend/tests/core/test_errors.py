"""AppError — named constructors, HTTP mapping and the response envelope."""

import pytest

from app.core.errors import AppError, ErrorCategory, ErrorSeverity


@pytest.mark.parametrize("error, status, category", [
    (AppError.bad_request("bad"), 400, ErrorCategory.VALIDATION),
    (AppError.unauthorized(), 401, ErrorCategory.AUTHENTICATION),
    (AppError.not_found("User", "u1"), 404, ErrorCategory.RESOURCE_NOT_FOUND),
    (AppError.conflict("dup"), 409, ErrorCategory.CONFLICT),
    (AppError.unprocessable_entity("rule"), 422, ErrorCategory.BUSINESS_RULE),
    (AppError.internal("oops"), 500, ErrorCategory.INTERNAL),
    (AppError.provider("metamap", "down"), 502, ErrorCategory.EXTERNAL_API),
    (AppError.database("refused", "commit"), 503, ErrorCategory.DATABASE),
])
def test_constructor_status_and_category(error, status, category):
    assert error.http_status == status
    assert error.category == category


def test_server_errors_are_critical():
    assert AppError.internal("x").severity == ErrorSeverity.CRITICAL
    assert AppError.conflict("x").severity == ErrorSeverity.ERROR


def test_unauthorized_is_only_a_warning():
    assert AppError.unauthorized().severity == ErrorSeverity.WARNING
    assert AppError.bad_request("x").severity == ErrorSeverity.ERROR


def test_not_found_details_name_the_resource():
    err = AppError.not_found("Onboarding", 42)
    assert err.message == "Onboarding '42' not found"
    assert err.details == {"resource": "Onboarding", "id": "42"}


def test_code_override():
    assert AppError.conflict("taken", code="EMAIL_TAKEN").code == "EMAIL_TAKEN"


def test_provider_details_include_retry_after():
    err = AppError.provider("metamap", "slow down", retry_after_ms=2000)
    assert err.details == {"provider": "metamap", "retry_after_ms": 2000}


def test_to_response_envelope():
    body = AppError.unprocessable_entity(
        "Blocked", code="USER_BLOCKED", details={"user_id": "u1"},
    ).to_response()
    error = body["error"]
    assert error["code"] == "USER_BLOCKED"
    assert error["message"] == "Blocked"
    assert error["category"] == "business_rule"
    assert error["severity"] == "error"
    assert error["details"] == {"user_id": "u1"}
    assert error["timestamp"].endswith("+00:00")


def test_internal_messages_are_not_public():
    err = AppError.database("password authentication failed for kyc", "commit")
    assert "password" not in err.to_response()["error"]["message"]
    assert "password" in err.message


def test_app_error_is_an_exception():
    with pytest.raises(AppError, match="User 'x' not found"):
        raise AppError.not_found("User", "x")
