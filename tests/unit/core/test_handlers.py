import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, Field
from sqlalchemy.exc import OperationalError

from lovedev.core.exceptions import (
    AccountBannedError,
    AlreadyVerifiedError,
    ConfigurationError,
    DuplicateEmailError,
    FieldError,
    InvalidCredentialsError,
    PermissionDeniedError,
    RoleNotFoundError,
    TooSoonError,
    ValidationError,
)
from lovedev.core.handlers import register_exception_handlers


class Credentials(BaseModel):
    email: str
    password: str = Field(min_length=1)


ERRORS = {
    "credentials": InvalidCredentialsError(),
    "banned": AccountBannedError(),
    "denied": PermissionDeniedError(),
    "role": RoleNotFoundError("Role not found: ROLE_X"),
    "duplicate": DuplicateEmailError(),
    "verified": AlreadyVerifiedError(),
    "soon": TooSoonError("Slow down"),
    "config": ConfigurationError("Default role ROLE_USER is not configured"),
    "database": OperationalError("SELECT 1", {}, Exception("connection refused")),
    "crash": RuntimeError("secret internals"),
    "policy": ValidationError(
        "Password does not meet the security requirements",
        code="password_policy_violation",
        field_errors=[FieldError(field="password", message="Password must contain at least one digit")],
    ),
}


@pytest.fixture
async def client():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/raise/{name}")
    async def raise_error(name: str):
        raise ERRORS[name]

    @app.post("/login")
    async def login(body: Credentials):
        return {"ok": True}

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, status_code, error_code",
    [
        ("credentials", 401, "invalid_credentials"),
        ("banned", 403, "account_banned"),
        ("denied", 403, "permission_denied"),
        ("role", 404, "role_not_found"),
        ("duplicate", 409, "email_already_exists"),
        ("verified", 400, "already_verified"),
        ("soon", 429, "too_soon"),
        ("config", 500, "configuration_error"),
        ("database", 500, "database_error"),
        ("crash", 500, "internal_error"),
    ],
)
async def test_errors_map_to_status_and_code(client, name, status_code, error_code):
    response = await client.get(f"/raise/{name}")

    assert response.status_code == status_code
    body = response.json()
    assert body["success"] is False
    assert body["errorCode"] == error_code
    assert body["status"] == status_code
    assert body["path"] == f"/raise/{name}"
    assert body["timestamp"]


@pytest.mark.asyncio
async def test_unexpected_errors_do_not_leak_details(client):
    for name in ("config", "database", "crash"):
        body = (await client.get(f"/raise/{name}")).json()
        assert body["message"] == "An unexpected error occurred"


@pytest.mark.asyncio
async def test_authentication_errors_challenge_for_a_bearer_token(client):
    response = await client.get("/raise/credentials")

    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["message"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_domain_validation_errors_list_fields(client):
    body = (await client.get("/raise/policy")).json()

    assert body["errorCode"] == "password_policy_violation"
    assert body["fieldErrors"] == [
        {
            "field": "password",
            "message": "Password must contain at least one digit",
            "rejectedValue": None,
        }
    ]


@pytest.mark.asyncio
async def test_request_validation_hides_secret_values(client):
    response = await client.post("/login", json={"email": 42, "password": ""})

    assert response.status_code == 400
    body = response.json()
    assert body["errorCode"] == "validation_error"
    fields = {error["field"]: error for error in body["fieldErrors"]}
    assert fields["email"]["rejectedValue"] == 42
    assert fields["password"]["rejectedValue"] is None


@pytest.mark.asyncio
async def test_unknown_route_uses_the_envelope(client):
    response = await client.get("/nowhere")

    assert response.status_code == 404
    assert response.json()["errorCode"] == "http_404"
