"""End-to-end credential lifecycle over HTTP."""

import pytest

from lovedev.domain.events.user_events import TOPIC_EMAIL_RESET_PASSWORD, TOPIC_EMAIL_VERIFY
from tests.factories import STRONG_PASSWORD, create_user, fake_registration

API = "/api/v1"


async def _login(client, email, password=STRONG_PASSWORD):
    return await client.post(f"{API}/auth/login", json={"email": email, "password": password})


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_register_verify_login_refresh_logout(async_client, event_publisher):
    """A new account goes from registration to an authenticated session and back out."""
    body = fake_registration()

    registered = await async_client.post(f"{API}/auth/register", json=body)
    assert registered.status_code == 201
    profile = registered.json()["data"]
    assert profile["email"] == body["email"]
    assert profile["status"] == "INACTIVE"
    assert profile["emailVerified"] is False
    assert profile["roles"] == ["ROLE_USER"]
    assert "accessToken" not in registered.json()["data"]
    assert "passwordHash" not in profile

    early = await _login(async_client, body["email"])
    assert early.status_code == 403
    assert early.json()["errorCode"] == "email_not_verified"

    [event] = event_publisher.get_published_events(TOPIC_EMAIL_VERIFY)
    verified = await async_client.get(
        f"{API}/auth/verify-email", params={"token": event.data["verificationToken"]}
    )
    assert verified.status_code == 200
    assert verified.json()["data"]["status"] == "ACTIVE"

    login = await _login(async_client, body["email"])
    assert login.status_code == 200
    tokens = login.json()["data"]
    assert tokens["tokenType"] == "Bearer"
    assert tokens["expiresIn"] == 15 * 60 * 1000
    assert tokens["user"]["lastLoginAt"] is not None

    me = await async_client.get(f"{API}/users/me", headers=_bearer(tokens["accessToken"]))
    assert me.status_code == 200
    assert me.json()["data"]["primaryRole"] == "ROLE_USER"
    assert me.json()["data"]["permissions"] == []

    refreshed = await async_client.post(
        f"{API}/auth/refresh", json={"refreshToken": tokens["refreshToken"]}
    )
    assert refreshed.status_code == 200
    assert refreshed.json()["data"]["refreshToken"] == tokens["refreshToken"]

    logout = await async_client.post(
        f"{API}/auth/logout", json={"refreshToken": tokens["refreshToken"]}
    )
    assert logout.status_code == 200
    assert logout.json()["success"] is True

    again = await async_client.post(
        f"{API}/auth/refresh", json={"refreshToken": tokens["refreshToken"]}
    )
    assert again.status_code == 401
    assert again.json()["errorCode"] == "refresh_token_expired_or_revoked"


@pytest.mark.asyncio
async def test_duplicate_registration_conflicts(async_client):
    body = fake_registration()
    await async_client.post(f"{API}/auth/register", json=body)

    response = await async_client.post(f"{API}/auth/register", json=body)

    assert response.status_code == 409
    assert response.json()["errorCode"] == "email_already_exists"


@pytest.mark.asyncio
async def test_weak_password_lists_every_broken_rule(async_client):
    response = await async_client.post(
        f"{API}/auth/register", json=fake_registration(password="password")
    )

    assert response.status_code == 400
    body = response.json()
    assert body["errorCode"] == "password_policy_violation"
    assert {error["field"] for error in body["fieldErrors"]} == {"password"}
    assert len(body["fieldErrors"]) == 3


@pytest.mark.asyncio
async def test_malformed_body_is_a_validation_error(async_client):
    response = await async_client.post(
        f"{API}/auth/login", json={"email": "not-an-email", "password": "x"}
    )

    assert response.status_code == 400
    body = response.json()
    assert body["errorCode"] == "validation_error"
    assert body["fieldErrors"][0]["field"] == "email"
    assert body["path"] == f"{API}/auth/login"


@pytest.mark.asyncio
async def test_login_failures_do_not_reveal_which_emails_exist(async_client, db_session):
    user = await create_user(db_session)

    unknown = await _login(async_client, "nobody@example.com")
    wrong = await _login(async_client, user.email, "WrongPass1!")

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json()["message"] == wrong.json()["message"]
    assert unknown.json()["errorCode"] == wrong.json()["errorCode"] == "invalid_credentials"


@pytest.mark.asyncio
async def test_protected_route_requires_a_token(async_client):
    response = await async_client.get(f"{API}/users/me")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["errorCode"] == "unauthorized"


@pytest.mark.asyncio
async def test_refresh_token_is_not_accepted_as_bearer(async_client, db_session):
    user = await create_user(db_session)
    tokens = (await _login(async_client, user.email)).json()["data"]

    response = await async_client.get(f"{API}/users/me", headers=_bearer(tokens["refreshToken"]))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_access_token_is_rejected(async_client, db_session, clock):
    user = await create_user(db_session)
    tokens = (await _login(async_client, user.email)).json()["data"]

    clock.advance(minutes=15, seconds=1)
    response = await async_client.get(f"{API}/users/me", headers=_bearer(tokens["accessToken"]))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(async_client):
    response = await async_client.get(f"{API}/users/me", headers={"X-Correlation-ID": "req-42"})

    assert response.headers["X-Correlation-ID"] == "req-42"


@pytest.mark.asyncio
async def test_password_reset_over_http(async_client, db_session, event_publisher):
    user = await create_user(db_session)
    tokens = (await _login(async_client, user.email)).json()["data"]

    missing = await async_client.post(
        f"{API}/auth/forgot-password", json={"email": "nobody@example.com"}
    )
    assert missing.status_code == 404

    requested = await async_client.post(f"{API}/auth/forgot-password", json={"email": user.email})
    assert requested.status_code == 200
    [event] = event_publisher.get_published_events(TOPIC_EMAIL_RESET_PASSWORD)

    reset = await async_client.post(
        f"{API}/auth/reset-password",
        json={"token": event.data["token"], "newPassword": "NewPass1!"},
    )
    assert reset.status_code == 200

    assert (await _login(async_client, user.email)).status_code == 401
    assert (await _login(async_client, user.email, "NewPass1!")).status_code == 200
    stale = await async_client.post(
        f"{API}/auth/refresh", json={"refreshToken": tokens["refreshToken"]}
    )
    assert stale.status_code == 401


@pytest.mark.asyncio
async def test_resend_verification_is_throttled(async_client, clock):
    body = fake_registration()
    await async_client.post(f"{API}/auth/register", json=body)

    too_soon = await async_client.post(
        f"{API}/auth/resend-verification", json={"email": body["email"]}
    )
    assert too_soon.status_code == 429
    assert too_soon.json()["errorCode"] == "too_soon"

    clock.advance(minutes=6)
    resent = await async_client.post(
        f"{API}/auth/resend-verification", json={"email": body["email"]}
    )
    assert resent.status_code == 200


@pytest.mark.asyncio
async def test_verify_with_unknown_token(async_client):
    response = await async_client.get(f"{API}/auth/verify-email", params={"token": "nope"})

    assert response.status_code == 401
    assert response.json()["errorCode"] == "token_invalid"


@pytest.mark.asyncio
async def test_change_password_over_http(async_client, db_session):
    user = await create_user(db_session)
    tokens = (await _login(async_client, user.email)).json()["data"]
    url = f"{API}/users/me/password"

    anonymous = await async_client.put(
        url, json={"currentPassword": STRONG_PASSWORD, "newPassword": "NewPass1!"}
    )
    assert anonymous.status_code == 401

    wrong = await async_client.put(
        url,
        json={"currentPassword": "WrongPass1!", "newPassword": "NewPass1!"},
        headers=_bearer(tokens["accessToken"]),
    )
    assert wrong.status_code == 400
    assert wrong.json()["errorCode"] == "invalid_current_password"

    weak = await async_client.put(
        url,
        json={"currentPassword": STRONG_PASSWORD, "newPassword": "weak"},
        headers=_bearer(tokens["accessToken"]),
    )
    assert weak.status_code == 400
    assert {error["field"] for error in weak.json()["fieldErrors"]} == {"newPassword"}

    changed = await async_client.put(
        url,
        json={"currentPassword": STRONG_PASSWORD, "newPassword": "NewPass1!"},
        headers=_bearer(tokens["accessToken"]),
    )
    assert changed.status_code == 200
    assert changed.json()["success"] is True

    assert (await _login(async_client, user.email)).status_code == 401
    assert (await _login(async_client, user.email, "NewPass1!")).status_code == 200
