"""Tests for sign-up, sign-in and session handling."""

import pytest

from freelance_os.core.deps import COOKIE_NAME
from freelance_os.core.security import create_session_token


def _cookie_header(response) -> dict:
    # Session cookies are Secure outside dev, so send them explicitly over http
    return {"Cookie": f"{COOKIE_NAME}={response.cookies[COOKIE_NAME]}"}


@pytest.mark.asyncio
async def test_signup_sets_session(client):
    response = await client.post(
        "/auth/signup",
        json={"email": "Ada@Example.com", "password": "analytical", "display_name": " Ada "},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "ada@example.com"
    assert data["display_name"] == "Ada"
    assert data["google_connected"] is False

    set_cookie = response.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie

    me = await client.get("/auth/me", headers=_cookie_header(response))
    assert me.status_code == 200
    assert me.json()["email"] == "ada@example.com"


@pytest.mark.asyncio
async def test_signup_duplicate_email(client, test_user):
    response = await client.post(
        "/auth/signup",
        json={"email": test_user.email.upper(), "password": "analytical", "display_name": "Dup"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_signup_requires_csrf_header(client):
    response = await client.post(
        "/auth/signup",
        json={"email": "ada@example.com", "password": "analytical", "display_name": "Ada"},
        headers={"X-Requested-With": ""},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_signin(client, test_user):
    response = await client.post(
        "/auth/signin",
        json={"email": test_user.email, "password": "correct-horse"},
    )
    assert response.status_code == 200
    assert response.json()["user_id"] == str(test_user.id)
    assert COOKIE_NAME in response.cookies


@pytest.mark.asyncio
async def test_signin_wrong_password(client, test_user):
    response = await client.post(
        "/auth/signin",
        json={"email": test_user.email, "password": "battery-staple"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_signin_unknown_email_same_error(client):
    response = await client.post(
        "/auth/signin",
        json={"email": "nobody@example.com", "password": "whatever"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_signin_inactive_user(client, db, test_user):
    test_user.is_active = False
    db.commit()

    response = await client.post(
        "/auth/signin",
        json={"email": test_user.email, "password": "correct-horse"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_session(client):
    response = await client.get("/auth/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client):
    response = await client.get("/auth/me", headers={"Cookie": f"{COOKIE_NAME}=not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_signout_revokes_outstanding_tokens(authed_client, test_auth):
    response = await authed_client.post("/auth/signout")
    assert response.status_code == 204

    # The old token no longer validates even if a client kept it
    response = await authed_client.get(
        "/auth/me",
        headers={"Cookie": f"{COOKIE_NAME}={test_auth.token}"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Session revoked"


@pytest.mark.asyncio
async def test_data_is_scoped_to_owner(client, db, test_user):
    from freelance_os.db.models import Client, User

    mine = Client(user_id=test_user.id, first_name="Mine")
    other = User(email="other@example.com", password_hash=None, display_name="Other")
    db.add_all([mine, other])
    db.commit()

    token = create_session_token(other.id, other.token_version)
    response = await client.get(
        f"/clients/{mine.id}",
        headers={"Cookie": f"{COOKIE_NAME}={token}"},
    )
    assert response.status_code == 404

    listed = await client.get("/clients", headers={"Cookie": f"{COOKIE_NAME}={token}"})
    assert listed.json() == []
