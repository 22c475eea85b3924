"""Shared fixtures.

Environment variables are fixed before any ``lovedev`` module is imported,
because the settings singleton is built at import time.
"""

import os

TEST_JWT_SECRET = "test-signing-secret-with-at-least-32-bytes"

os.environ["APP_ENV"] = "test"
os.environ["JWT_SECRET"] = TEST_JWT_SECRET
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["EVENT_BUS_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TOKEN_CLEANUP_ENABLED"] = "false"
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["LOG_JSON"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from lovedev.core.application import create_application
from lovedev.domain.services.audit import AuditService
from lovedev.domain.services.auth.authentication import AuthenticationFlow
from lovedev.domain.services.auth.session import SessionManager
from lovedev.domain.services.auth.token import TokenCodec
from lovedev.domain.services.rbac.catalog import RoleCatalogService
from lovedev.domain.services.rbac.user_administration import UserAdministrationService
from lovedev.infrastructure.database.async_db import (
    build_engine,
    build_session_factory,
    create_db_and_tables,
)
from lovedev.infrastructure.database.seed import seed_system_roles
from lovedev.infrastructure.messaging.event_publisher import InMemoryEventPublisher
from lovedev.utils.security import pwd_context
from tests.utils.clock import FrozenClock


@pytest.fixture(scope="session", autouse=True)
def fast_password_hashing():
    """bcrypt at its minimum cost keeps the suite fast; the algorithm is unchanged."""
    pwd_context.update(bcrypt__rounds=4)
    yield


@pytest_asyncio.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://", echo=False)
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    factory = build_session_factory(engine)
    async with factory() as session:
        await seed_system_roles(session)
    return factory


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def token_codec(clock):
    return TokenCodec(secret=TEST_JWT_SECRET, clock=clock)


@pytest.fixture
def event_publisher():
    return InMemoryEventPublisher()


@pytest.fixture
def audit_service(session_factory):
    return AuditService(session_factory)


@pytest.fixture
def session_manager(db_session, token_codec):
    return SessionManager(db_session, token_codec)


@pytest.fixture
def auth_flow(db_session, token_codec, event_publisher, audit_service):
    return AuthenticationFlow(db_session, token_codec, event_publisher, audit_service=audit_service)


@pytest.fixture
def user_admin(db_session, token_codec, audit_service):
    return UserAdministrationService(db_session, token_codec, audit_service=audit_service)


@pytest.fixture
def role_catalog(db_session, audit_service):
    return RoleCatalogService(db_session, audit_service=audit_service)


@pytest.fixture
def app(engine, session_factory, event_publisher, token_codec):
    return create_application(
        engine=engine,
        session_factory=session_factory,
        event_publisher=event_publisher,
        token_codec=token_codec,
    )


@pytest_asyncio.fixture
async def async_client(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
