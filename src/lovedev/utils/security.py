"""Security utilities for password hashing, password policy and one-time tokens.

Hashing uses passlib's bcrypt scheme. bcrypt is deliberately slow, so the
async helpers run it in a worker thread to keep the event loop responsive.
"""

import asyncio
import re
import uuid
from typing import List

from passlib.context import CryptContext

from lovedev.core.config.settings import (
    BCRYPT_WORK_FACTOR,
    PASSWORD_MAX_BYTES,
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
)
from lovedev.core.exceptions import FieldError, ValidationError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_WORK_FACTOR)

SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?/~`'\"\\"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        str: Bcrypt-hashed password
    """
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against its hash in constant time."""
    if not hashed_password:
        return False
    return pwd_context.verify(password, hashed_password)


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, hashed_password: str) -> bool:
    return await asyncio.to_thread(verify_password, password, hashed_password)


def password_policy_violations(password: str) -> List[str]:
    """Return the policy rules ``password`` breaks; empty when it is acceptable.

    Requirements:
        - Between PASSWORD_MIN_LENGTH and PASSWORD_MAX_LENGTH characters
        - At most PASSWORD_MAX_BYTES bytes once UTF-8 encoded
        - At least one uppercase letter
        - At least one lowercase letter
        - At least one digit
        - At least one special character
    """
    problems = []
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        problems.append(
            f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
        )
    elif len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        problems.append(f"Password must not be longer than {PASSWORD_MAX_BYTES} bytes")
    if not re.search(r"[A-Z]", password):
        problems.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        problems.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        problems.append("Password must contain at least one digit")
    if not any(c in SPECIAL_CHARACTERS for c in password):
        problems.append("Password must contain at least one special character")
    return problems


def validate_password_strength(password: str, field: str = "password") -> None:
    """Raise `ValidationError` with one field error per broken rule."""
    problems = password_policy_violations(password)
    if problems:
        raise ValidationError(
            "Password does not meet the security requirements",
            code="password_policy_violation",
            field_errors=[FieldError(field=field, message=problem) for problem in problems],
        )


def generate_one_time_token() -> str:
    """Opaque token for email verification and password reset links."""
    return str(uuid.uuid4())
