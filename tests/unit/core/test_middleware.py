from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from lovedev.core.middleware import configure_middleware, resolve_identity
from lovedev.domain.value_objects.identity import LocalUser, ServicePrincipal


def test_access_token_resolves_to_local_user(token_codec):
    """A valid access token yields a user identity carrying its roles."""
    user_id = uuid4()
    token = token_codec.issue_access_token(user_id, ["ROLE_USER", "ROLE_MANAGER"])

    identity = resolve_identity(f"Bearer {token}", token_codec)

    assert isinstance(identity, LocalUser)
    assert identity.user_id == user_id
    assert identity.authorities == frozenset({"ROLE_USER", "ROLE_MANAGER"})
    assert identity.has_role("MANAGER")


def test_service_token_resolves_to_service_principal(token_codec):
    token = token_codec.issue_service_token("notification-service")

    identity = resolve_identity(f"Bearer {token}", token_codec)

    assert isinstance(identity, ServicePrincipal)
    assert identity.principal == "notification-service"
    assert identity.authorities == frozenset()


def test_refresh_token_is_not_a_bearer_credential(token_codec):
    value = token_codec.issue_refresh_token_value(uuid4())

    assert resolve_identity(f"Bearer {value}", token_codec) is None


@pytest.mark.parametrize(
    "header",
    [None, "", "Bearer ", "Basic dXNlcjpwYXNz", "bearer abc", "Bearer not.a.jwt", "Token abc"],
)
def test_unusable_headers_resolve_to_nothing(token_codec, header):
    assert resolve_identity(header, token_codec) is None


def test_expired_access_token_resolves_to_nothing(token_codec, clock):
    token = token_codec.issue_access_token(uuid4(), ["ROLE_USER"])
    clock.advance(minutes=16)

    assert resolve_identity(f"Bearer {token}", token_codec) is None


def _probe_app(token_codec) -> FastAPI:
    app = FastAPI()
    app.state.token_codec = token_codec
    configure_middleware(app)

    @app.get("/probe")
    async def probe(request: Request):
        identity = request.state.identity
        return {
            "principal": identity.principal if identity else None,
            "correlationId": request.state.correlation_id,
        }

    return app


@pytest.mark.asyncio
async def test_middleware_attaches_identity_and_correlation_id(token_codec):
    user_id = uuid4()
    token = token_codec.issue_access_token(user_id, ["ROLE_USER"])
    transport = ASGITransport(app=_probe_app(token_codec))

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get(
            "/probe",
            headers={"Authorization": f"Bearer {token}", "X-Correlation-ID": "abc-123"},
        )

    assert response.status_code == 200
    assert response.json() == {"principal": str(user_id), "correlationId": "abc-123"}
    assert response.headers["X-Correlation-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_middleware_generates_correlation_id(token_codec):
    transport = ASGITransport(app=_probe_app(token_codec))

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/probe")

    body = response.json()
    assert body["principal"] is None
    assert body["correlationId"]
    assert response.headers["X-Correlation-ID"] == body["correlationId"]


@pytest.mark.asyncio
async def test_middleware_fails_open_when_the_codec_breaks():
    """A codec error leaves the request anonymous instead of failing it."""
    codec = MagicMock()
    codec.validate.side_effect = RuntimeError("boom")
    transport = ASGITransport(app=_probe_app(codec))

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/probe", headers={"Authorization": "Bearer anything"})

    assert response.status_code == 200
    assert response.json()["principal"] is None
