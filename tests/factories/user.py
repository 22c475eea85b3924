"""Factories for users, persisted through the real repositories."""

from __future__ import annotations

from typing import Any, Dict, Iterable

from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from lovedev.domain.entities.user import User, UserStatus
from lovedev.infrastructure.repositories.role_repository import RoleRepository
from lovedev.utils.security import hash_password

fake = Faker()

STRONG_PASSWORD = "Password1!"


def fake_registration(**overrides: Any) -> Dict[str, Any]:
    """A camelCase ``POST /auth/register`` body that passes validation."""
    body = {
        "email": fake.unique.email(),
        "password": STRONG_PASSWORD,
        "firstName": fake.first_name(),
        "lastName": fake.last_name(),
    }
    body.update(overrides)
    return body


async def create_user(
    session: AsyncSession,
    email: str | None = None,
    password: str = STRONG_PASSWORD,
    roles: Iterable[str] = ("ROLE_USER",),
    status: UserStatus = UserStatus.ACTIVE,
    email_verified: bool = True,
) -> User:
    """Persist and commit a user holding ``roles``, verified and active by default."""
    user = User(
        email=email or fake.unique.email(),
        password_hash=hash_password(password),
        first_name=fake.first_name(),
        last_name=fake.last_name(),
        status=status,
        email_verified=email_verified,
        roles=await RoleRepository(session).get_by_names(list(roles)),
    )
    session.add(user)
    await session.commit()
    return user
