import pytest

from lovedev.core.exceptions import ValidationError
from lovedev.utils.security import (
    generate_one_time_token,
    hash_password,
    password_policy_violations,
    validate_password_strength,
    verify_password,
)


@pytest.mark.parametrize("password", ["Password1!", "Zz9#abcd", "Longer-Passw0rd"])
def test_strong_passwords_pass(password):
    assert password_policy_violations(password) == []
    validate_password_strength(password)


@pytest.mark.parametrize(
    "password, broken",
    [
        ("Pa1!", "between"),
        ("password1!", "uppercase"),
        ("PASSWORD1!", "lowercase"),
        ("Password!!", "digit"),
        ("Password11", "special"),
        ("Aa1!" + "a" * 97, "between"),
        ("Aa1!" + "a" * 69, "72 bytes"),
        ("Aa1!" + "\u00e9" * 35, "72 bytes"),
    ],
)
def test_each_rule_is_reported(password, broken):
    problems = password_policy_violations(password)

    assert len(problems) == 1
    assert broken in problems[0]


def test_password_filling_the_bcrypt_input_is_accepted():
    assert password_policy_violations("Aa1!" + "a" * 68) == []


def test_policy_error_uses_the_given_field():
    with pytest.raises(ValidationError) as exc:
        validate_password_strength("weak", field="newPassword")

    assert exc.value.code == "password_policy_violation"
    assert {error.field for error in exc.value.field_errors} == {"newPassword"}


def test_hash_and_verify():
    hashed = hash_password("Password1!")

    assert hashed != "Password1!"
    assert hashed.startswith("$2b$")
    assert verify_password("Password1!", hashed)
    assert not verify_password("Password2!", hashed)
    assert not verify_password("Password1!", "")


def test_one_time_tokens_are_unique():
    tokens = {generate_one_time_token() for _ in range(50)}

    assert len(tokens) == 50
