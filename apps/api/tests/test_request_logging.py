"""Tests for request logging and PII-safe log context."""

import logging

import pytest

from freelance_os.core.structured_logging import build_log_context


def test_build_log_context_drops_empty_values():
    context = build_log_context(user_id="u1", route="/clients/{client_id}", status_code=200)
    assert context == {"user_id": "u1", "route": "/clients/{client_id}", "status_code": 200}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/auth/me", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_request_id_is_generated(client):
    response = await client.get("/auth/me")
    assert len(response.headers["X-Request-ID"]) == 32


@pytest.mark.asyncio
async def test_request_log_uses_route_template(authed_client, caplog):
    created = (await authed_client.post("/clients", json={"first_name": "Ada"})).json()

    with caplog.at_level(logging.INFO, logger="freelance_os.requests"):
        await authed_client.get(f"/clients/{created['id']}")

    record = next(r for r in caplog.records if r.name == "freelance_os.requests")
    assert record.getMessage() == "GET /clients/{client_id} 200"
    assert created["id"] not in record.getMessage()
    assert record.user_id
