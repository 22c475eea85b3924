import uuid
from datetime import timedelta

import jwt
import pytest

from lovedev.core.exceptions import ConfigurationError, TokenInvalidError
from lovedev.domain.services.auth.token import TokenCodec
from tests.conftest import TEST_JWT_SECRET


@pytest.mark.parametrize(
    "roles",
    [
        ["ROLE_USER"],
        ["ROLE_ADMIN", "ROLE_MANAGER"],
        ["ROLE_EMPLOYEE", "ROLE_USER", "ROLE_CUSTOM_AUDITOR"],
    ],
)
def test_access_token_round_trip(token_codec, roles):
    subject = uuid.uuid4()
    token = token_codec.issue_access_token(subject, roles)

    assert token_codec.validate(token) is True
    assert token_codec.extract_subject(token) == str(subject)
    assert token_codec.extract_roles(token) == roles


def test_access_token_is_three_base64url_segments_with_required_claims(token_codec):
    token = token_codec.issue_access_token(uuid.uuid4(), ["USER"])

    assert token.count(".") == 2
    claims = jwt.decode(token, TEST_JWT_SECRET, algorithms=["HS256"], options={"verify_exp": False})
    assert {"sub", "iss", "iat", "exp", "roles"} <= claims.keys()
    assert claims["iss"] == "lovedev-api"
    assert claims["roles"] == "ROLE_USER"
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_same_inputs_and_clock_give_the_same_access_token(token_codec):
    subject = uuid.uuid4()
    assert token_codec.issue_access_token(subject, ["ROLE_USER"]) == token_codec.issue_access_token(
        subject, ["ROLE_USER"]
    )


def test_refresh_token_values_never_collide(token_codec):
    subject = uuid.uuid4()
    assert token_codec.issue_refresh_token_value(subject) != token_codec.issue_refresh_token_value(
        subject
    )


def test_zero_ttl_token_is_invalid(clock):
    codec = TokenCodec(secret=TEST_JWT_SECRET, access_token_ttl=timedelta(0), clock=clock)
    assert codec.validate(codec.issue_access_token(uuid.uuid4(), ["ROLE_USER"])) is False


def test_token_is_invalid_once_expired(token_codec, clock):
    token = token_codec.issue_access_token(uuid.uuid4(), ["ROLE_USER"])
    clock.advance(minutes=14, seconds=59)
    assert token_codec.validate(token) is True
    clock.advance(seconds=1)
    assert token_codec.validate(token) is False


@pytest.mark.parametrize("token", ["", None, "not-a-token", "a.b.c"])
def test_malformed_tokens_are_invalid(token_codec, token):
    assert token_codec.validate(token) is False


def test_tampered_token_is_invalid(token_codec):
    header, payload, signature = token_codec.issue_access_token(uuid.uuid4(), ["ROLE_USER"]).split(".")
    forged_signature = ("A" if signature[0] != "A" else "B") + signature[1:]
    assert token_codec.validate(f"{header}.{payload}.{forged_signature}") is False


def test_token_signed_with_another_key_is_invalid(token_codec, clock):
    other = TokenCodec(secret="another-signing-secret-of-32-bytes-or-more", clock=clock)
    assert token_codec.validate(other.issue_access_token(uuid.uuid4(), ["ROLE_USER"])) is False


def test_token_from_another_issuer_is_invalid(token_codec, clock):
    other = TokenCodec(secret=TEST_JWT_SECRET, issuer="someone-else", clock=clock)
    assert token_codec.validate(other.issue_access_token(uuid.uuid4(), ["ROLE_USER"])) is False


def test_service_token(token_codec, clock):
    token = token_codec.issue_service_token("notification-service")

    assert token_codec.validate(token) is True
    assert token_codec.is_service_token(token) is True
    assert token_codec.is_refresh_token(token) is False
    assert token_codec.extract_subject(token) == "notification-service"
    assert token_codec.extract_roles(token) == []

    clock.advance(minutes=5)
    assert token_codec.validate(token) is False


def test_refresh_token_value_is_marked_as_refresh(token_codec):
    value = token_codec.issue_refresh_token_value(uuid.uuid4())
    assert token_codec.is_refresh_token(value) is True
    assert token_codec.is_service_token(value) is False


def test_extract_roles_drops_blank_entries(token_codec):
    token = token_codec._sign("subject", timedelta(minutes=1), {"roles": "ROLE_A, ,ROLE_B,"})
    assert token_codec.extract_roles(token) == ["ROLE_A", "ROLE_B"]


def test_claims_of_garbage_raise_token_invalid(token_codec):
    with pytest.raises(TokenInvalidError):
        token_codec.claims("garbage")


@pytest.mark.parametrize("secret", ["", "too-short-secret"])
def test_short_secret_is_rejected_at_construction(secret):
    with pytest.raises(ConfigurationError):
        TokenCodec(secret=secret)
