"""Health probes and request correlation headers."""

import logging


async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["service"] == "kyc-onboarding-api"


async def test_readiness_with_database(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json() == {"status": "ready", "checks": {"database": "healthy"}}


async def test_readiness_without_database(client, monkeypatch):
    import app.infrastructure.database as db_module

    monkeypatch.setattr(db_module, "db_manager", None)
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "database_unavailable"


async def test_response_carries_generated_request_id(client):
    res = await client.get("/api/v1/health/")
    assert len(res.headers["x-request-id"]) == 32


async def test_incoming_request_id_is_echoed(client):
    res = await client.get("/api/v1/health/", headers={"X-Request-ID": "req-abc"})
    assert res.headers["x-request-id"] == "req-abc"


async def test_error_responses_carry_request_id(client):
    res = await client.get(
        "/api/v1/users/00000000-0000-0000-0000-000000000000",
        headers={"X-Request-ID": "req-404"},
    )
    assert res.status_code == 404
    assert res.headers["x-request-id"] == "req-404"


# ─── request logging ─────────────────────────────────────────────

async def test_skipped_path_emits_no_request_log(client, caplog):
    with caplog.at_level(logging.INFO, logger="app.http"):
        res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert [r for r in caplog.records if r.name == "app.http"] == []


async def test_client_error_is_logged_as_warning_with_extras(client, caplog):
    path = "/api/v1/users/00000000-0000-0000-0000-000000000000"
    with caplog.at_level(logging.INFO, logger="app.http"):
        await client.get(path, headers={"X-Request-ID": "req-log"})

    [record] = [r for r in caplog.records if r.name == "app.http"]
    assert record.levelno == logging.WARNING
    assert record.getMessage() == f"GET {path} 404"
    assert record.method == "GET"
    assert record.path == path
    assert record.status_code == 404
    assert record.request_id == "req-log"
    assert record.duration_ms >= 0


async def test_success_is_logged_at_info(client, caplog):
    with caplog.at_level(logging.INFO, logger="app.http"):
        await client.get("/api/v1/health/ready")
    [record] = [r for r in caplog.records if r.name == "app.http"]
    assert record.levelno == logging.INFO
    assert record.status_code == 200
