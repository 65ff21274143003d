"""API tests for clients, notes, credentials, snippets and proposals."""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import Text, select, type_coerce

from freelance_os.db.models import Credential


# =============================================================================
# Clients
# =============================================================================

@pytest.mark.asyncio
async def test_client_crud_and_search(authed_client):
    response = await authed_client.post(
        "/clients",
        json={"first_name": "Ada", "last_name": "Lovelace", "company": "Engines Ltd", "email": "ada@example.com"},
    )
    assert response.status_code == 201
    ada = response.json()
    assert ada["full_name"] == "Ada Lovelace"
    assert ada["status"] == "active"

    await authed_client.post("/clients", json={"first_name": "Grace", "status": "lead"})

    found = (await authed_client.get("/clients", params={"search": "engines"})).json()
    assert [c["id"] for c in found] == [ada["id"]]

    leads = (await authed_client.get("/clients", params={"status": "lead"})).json()
    assert [c["first_name"] for c in leads] == ["Grace"]

    response = await authed_client.patch(f"/clients/{ada['id']}", json={"phone": "+44 20 7946 0000"})
    assert response.status_code == 200
    assert response.json()["phone"] == "+44 20 7946 0000"
    assert response.json()["company"] == "Engines Ltd"

    response = await authed_client.delete(f"/clients/{ada['id']}")
    assert response.status_code == 204
    assert (await authed_client.get(f"/clients/{ada['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_deleting_client_keeps_linked_notes(authed_client):
    client = (await authed_client.post("/clients", json={"first_name": "Ada"})).json()
    note = (await authed_client.post(
        "/notes",
        json={"title": "Kickoff", "client_id": client["id"]},
    )).json()

    await authed_client.delete(f"/clients/{client['id']}")

    response = await authed_client.get(f"/notes/{note['id']}")
    assert response.status_code == 200
    assert response.json()["client_id"] is None


# =============================================================================
# Notes
# =============================================================================

@pytest.mark.asyncio
async def test_note_content_is_sanitized(authed_client):
    response = await authed_client.post(
        "/notes",
        json={
            "title": "Call",
            "type": "meeting",
            "content": '<p onclick="x()">Agenda<script>alert(1)</script></p>',
            "tags": [" scope ", "scope", ""],
        },
    )
    assert response.status_code == 201
    note = response.json()
    assert note["content"] == "<p>Agenda</p>"
    assert note["tags"] == ["scope"]

    await authed_client.post("/notes", json={"title": "Stack"})
    meetings = (await authed_client.get("/notes", params={"type": "meeting"})).json()
    assert [n["title"] for n in meetings] == ["Call"]


@pytest.mark.asyncio
async def test_note_requires_csrf_header(authed_client):
    response = await authed_client.post(
        "/notes",
        json={"title": "Call"},
        headers={"X-Requested-With": ""},
    )
    assert response.status_code == 403


# =============================================================================
# Credentials
# =============================================================================

@pytest.mark.asyncio
async def test_credential_password_encrypted_at_rest(authed_client, db):
    response = await authed_client.post(
        "/credentials",
        json={"service_name": "Hosting", "type": "ssh", "username": "root", "password": "hunter2"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["password"] == "hunter2"
    assert data["type"] == "ssh"

    stored = type_coerce(Credential.__table__.c.password, Text)
    raw = db.execute(
        select(stored).where(Credential.id == uuid.UUID(data["id"]))
    ).scalar_one()
    assert raw is not None
    assert raw.startswith("enc:")
    assert "hunter2" not in raw

    filtered = (await authed_client.get("/credentials", params={"type": "web"})).json()
    assert filtered == []


# =============================================================================
# Snippets
# =============================================================================

@pytest.mark.asyncio
async def test_snippet_filters_and_favorites(authed_client):
    first = (await authed_client.post(
        "/snippets",
        json={"title": "Debounce", "code": "def debounce(): ...", "language": "Python", "tags": ["utils"]},
    )).json()
    await authed_client.post(
        "/snippets",
        json={"title": "Fetch wrapper", "code": "export const f = 1", "language": "typescript"},
    )

    assert first["language"] == "python"
    assert (await authed_client.get("/snippets/languages")).json() == ["python", "typescript"]

    tagged = (await authed_client.get("/snippets", params={"tag": "utils"})).json()
    assert [s["title"] for s in tagged] == ["Debounce"]

    response = await authed_client.post(f"/snippets/{first['id']}/favorite")
    assert response.status_code == 200
    assert response.json()["is_favorite"] is True

    favorites = (await authed_client.get("/snippets", params={"favorites": "true"})).json()
    assert [s["id"] for s in favorites] == [first["id"]]

    listed = (await authed_client.get("/snippets")).json()
    assert listed[0]["id"] == first["id"]


# =============================================================================
# Proposals
# =============================================================================

LINE_ITEMS = [
    {"name": "Design", "quantity": "2", "unit_price": "1.250,00"},
    {"name": "Build", "quantity": "1", "unit_price": 3000},
]


@pytest.mark.asyncio
async def test_quote_computes_totals(authed_client):
    response = await authed_client.post(
        "/proposals/quote",
        json={"line_items": LINE_ITEMS, "tax_rate": "0.20"},
    )
    assert response.status_code == 200
    totals = {k: Decimal(v) for k, v in response.json().items()}
    assert totals == {"subtotal": Decimal("5500"), "tax": Decimal("1100"), "total": Decimal("6600")}


@pytest.mark.asyncio
async def test_proposal_amount_follows_line_items(authed_client):
    response = await authed_client.post(
        "/proposals",
        json={"title": "Redesign", "line_items": LINE_ITEMS, "content": "<p>Scope</p><img src=x>"},
    )
    assert response.status_code == 201
    proposal = response.json()
    assert Decimal(proposal["amount"]) == Decimal("6600")
    assert proposal["content"] == "<p>Scope</p>"
    assert proposal["status"] == "draft"

    response = await authed_client.patch(f"/proposals/{proposal['id']}", json={"tax_rate": "0"})
    assert Decimal(response.json()["amount"]) == Decimal("5500")

    response = await authed_client.post(f"/proposals/{proposal['id']}/send")
    assert response.status_code == 200
    assert response.json()["status"] == "sent"
    assert response.json()["sent_at"] is not None


@pytest.mark.asyncio
async def test_proposal_without_line_items_keeps_amount(authed_client):
    response = await authed_client.post("/proposals", json={"title": "Retainer", "amount": "900"})
    proposal = response.json()
    assert Decimal(proposal["amount"]) == Decimal("900")
    assert Decimal(proposal["totals"]["total"]) == Decimal("900")
