"""Onboarding API — start, inspect and cancel KYC verifications.

Invariants:
    - POST /onboarding → 201 pending onboarding carrying the provider verification url
    - Eligibility order: user exists → not blocked → has document → no active
      onboarding → not already verified → attempts below the cap
    - A provider failure leaves nothing persisted
    - Cancel works only on non-terminal onboardings outside in_review
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.core.errors import AppError
from app.models.onboarding import Onboarding
from app.models.user import User


async def _start(client, user_id, **extra):
    return await client.post(
        "/api/v1/onboarding", json={"user_id": str(user_id), **extra},
    )


async def _insert_onboarding(test_db, user_id, status, attempt=1):
    onboarding = Onboarding(
        user_id=user_id, status=status, provider="metamap",
        verification_id=f"old-{attempt}", attempt=attempt,
    )
    test_db.add(onboarding)
    await test_db.commit()
    return onboarding


# ─── start ───────────────────────────────────────────────────────

async def test_start_onboarding_returns_201_pending(client, seed_user, fake_provider):
    res = await _start(client, seed_user.id, metadata={"channel": "web"})
    assert res.status_code == 201
    data = res.json()
    assert data["status"] == "pending"
    assert data["provider"] == "metamap"
    assert data["attempt"] == 1
    assert data["verification_id"] == "ver-0001"
    assert data["verification_url"] == "https://signup.metamap.test/verify/ver-0001"
    assert data["metadata"] == {"channel": "web"}
    assert data["completed_at"] is None


async def test_start_sends_ids_as_provider_metadata(client, seed_user, fake_provider):
    res = await _start(client, seed_user.id, metadata={"channel": "web"})
    [call] = fake_provider.calls
    assert call["flow_id"] == "test-flow"
    assert call["metadata"] == {
        "channel": "web",
        "user_id": str(seed_user.id),
        "onboarding_id": res.json()["id"],
    }


async def test_start_for_unknown_user_returns_404(client, fake_provider):
    res = await _start(client, uuid4())
    assert res.status_code == 404
    assert fake_provider.calls == []


async def test_start_for_blocked_user_returns_422(client, seed_user):
    await client.post(f"/api/v1/users/{seed_user.id}/block")
    res = await _start(client, seed_user.id)
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "USER_BLOCKED"


async def test_start_without_document_returns_422(client):
    created = await client.post(
        "/api/v1/users", json={"email": "nodoc@example.com", "full_name": "No Doc"},
    )
    res = await _start(client, created.json()["id"])
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "DOCUMENT_REQUIRED"


async def test_second_start_while_active_returns_409(client, seed_user):
    first = await _start(client, seed_user.id)
    res = await _start(client, seed_user.id)
    assert res.status_code == 409
    error = res.json()["error"]
    assert error["code"] == "ONBOARDING_ACTIVE"
    assert error["details"]["onboarding_id"] == first.json()["id"]


async def test_start_after_approval_returns_409(client, seed_user, test_db):
    await _insert_onboarding(test_db, seed_user.id, "approved")
    res = await _start(client, seed_user.id)
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "ALREADY_VERIFIED"


async def test_start_after_rejection_counts_attempts(client, seed_user, test_db):
    await _insert_onboarding(test_db, seed_user.id, "rejected", attempt=1)
    res = await _start(client, seed_user.id)
    assert res.status_code == 201
    assert res.json()["attempt"] == 2


async def test_start_beyond_max_attempts_returns_422(client, seed_user, test_db):
    for attempt in range(1, 4):
        await _insert_onboarding(test_db, seed_user.id, "expired", attempt=attempt)
    res = await _start(client, seed_user.id)
    assert res.status_code == 422
    error = res.json()["error"]
    assert error["code"] == "MAX_ATTEMPTS_REACHED"
    assert error["details"] == {"attempts": 3}


async def test_provider_failure_persists_nothing(client, seed_user, fake_provider, test_db):
    fake_provider.fail_with = AppError.provider(
        "metamap", "HTTP 503", code="PROVIDER_UNAVAILABLE",
    )
    res = await _start(client, seed_user.id)
    assert res.status_code == 502
    assert res.json()["error"]["code"] == "PROVIDER_UNAVAILABLE"

    count = await test_db.scalar(select(func.count()).select_from(Onboarding))
    assert count == 0


async def test_start_rejects_oversized_metadata(client, seed_user):
    metadata = {f"k{i}": i for i in range(21)}
    res = await _start(client, seed_user.id, metadata=metadata)
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


# ─── read ────────────────────────────────────────────────────────

async def test_get_onboarding(client, seed_user):
    started = await _start(client, seed_user.id)
    res = await client.get(f"/api/v1/onboarding/{started.json()['id']}")
    assert res.status_code == 200
    assert res.json()["user_id"] == str(seed_user.id)


async def test_get_unknown_onboarding_returns_404(client):
    res = await client.get(f"/api/v1/onboarding/{uuid4()}")
    assert res.status_code == 404
    assert res.json()["error"]["details"]["resource"] == "Onboarding"


async def test_list_user_onboardings(client, seed_user, test_db):
    await _insert_onboarding(test_db, seed_user.id, "rejected", attempt=1)
    await _start(client, seed_user.id)
    res = await client.get(f"/api/v1/users/{seed_user.id}/onboardings")
    assert res.status_code == 200
    assert sorted(o["attempt"] for o in res.json()["items"]) == [1, 2]


# ─── cancel ──────────────────────────────────────────────────────

async def test_cancel_pending_onboarding(client, seed_user):
    started = await _start(client, seed_user.id)
    res = await client.post(f"/api/v1/onboarding/{started.json()['id']}/cancel")
    assert res.status_code == 200
    data = res.json()
    assert data["status"] == "cancelled"
    assert data["failure_reason"] == "cancelled_by_user"
    assert data["completed_at"] is not None


async def test_cancel_terminal_onboarding_returns_422(client, seed_user, test_db):
    onboarding = await _insert_onboarding(test_db, seed_user.id, "rejected")
    res = await client.post(f"/api/v1/onboarding/{onboarding.id}/cancel")
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "ONBOARDING_CLOSED"


async def test_cancel_in_review_is_an_invalid_transition(client, seed_user, test_db):
    onboarding = await _insert_onboarding(test_db, seed_user.id, "in_review")
    res = await client.post(f"/api/v1/onboarding/{onboarding.id}/cancel")
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "INVALID_TRANSITION"


async def test_cancelled_onboarding_allows_a_new_attempt(client, seed_user):
    started = await _start(client, seed_user.id)
    await client.post(f"/api/v1/onboarding/{started.json()['id']}/cancel")
    res = await _start(client, seed_user.id)
    assert res.status_code == 201
    assert res.json()["attempt"] == 2


async def test_deleted_user_is_not_found(client, seed_user, test_db):
    user = await test_db.get(User, seed_user.id)
    user.status = "deleted"
    await test_db.commit()
    res = await _start(client, seed_user.id)
    assert res.status_code == 404


# ─── one active onboarding per user ──────────────────────────────

async def test_database_rejects_second_active_onboarding(seed_user, test_db):
    test_db.add(Onboarding(user_id=seed_user.id, status="pending", verification_id="a"))
    await test_db.commit()
    test_db.add(Onboarding(user_id=seed_user.id, status="in_progress", verification_id="b"))
    with pytest.raises(IntegrityError):
        await test_db.commit()


async def test_terminal_onboardings_do_not_count_as_active(seed_user, test_db):
    for i, status in enumerate(("rejected", "expired", "pending")):
        test_db.add(Onboarding(
            user_id=seed_user.id, status=status, verification_id=f"v{i}", attempt=i + 1,
        ))
    await test_db.commit()


async def test_start_losing_a_concurrent_race_returns_409(
    client, seed_user, fake_provider, test_session_factory, test_db,
):
    async def competing_start():
        async with test_session_factory() as other:
            other.add(Onboarding(
                user_id=seed_user.id, status="pending", verification_id="ver-race",
            ))
            await other.commit()

    fake_provider.during_call = competing_start
    res = await _start(client, seed_user.id)
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "ONBOARDING_ACTIVE"

    rows = await test_db.execute(
        select(Onboarding.verification_id, Onboarding.status)
        .where(Onboarding.user_id == seed_user.id)
    )
    assert rows.all() == [("ver-race", "pending")]
