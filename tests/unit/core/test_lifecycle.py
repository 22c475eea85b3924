import pytest
from sqlalchemy import select

from lovedev.core.application import create_application
from lovedev.core.config.settings import settings
from lovedev.domain.entities.role import Role
from lovedev.infrastructure.database.async_db import build_engine, build_session_factory
from lovedev.infrastructure.messaging import InMemoryEventPublisher


@pytest.fixture
async def bare_engine():
    engine = build_engine("sqlite+aiosqlite://", echo=False)
    yield engine
    await engine.dispose()


@pytest.mark.asyncio
async def test_startup_creates_schema_and_seeds_roles(monkeypatch, bare_engine, token_codec):
    monkeypatch.setattr(settings, "DB_AUTO_CREATE", True)
    monkeypatch.setattr(settings, "TOKEN_CLEANUP_ENABLED", True)
    factory = build_session_factory(bare_engine)
    app = create_application(
        engine=bare_engine,
        session_factory=factory,
        event_publisher=InMemoryEventPublisher(),
        token_codec=token_codec,
    )

    async with app.router.lifespan_context(app):
        async with factory() as session:
            names = (await session.execute(select(Role.name).order_by(Role.name))).scalars().all()

    assert names == ["ROLE_ADMIN", "ROLE_EMPLOYEE", "ROLE_MANAGER", "ROLE_USER"]


@pytest.mark.asyncio
async def test_startup_fails_without_database(mocker, bare_engine, token_codec):
    mocker.patch("lovedev.core.lifecycle.check_database_health", return_value=False)
    app = create_application(
        engine=bare_engine, event_publisher=InMemoryEventPublisher(), token_codec=token_codec
    )

    with pytest.raises(RuntimeError, match="Database unavailable"):
        async with app.router.lifespan_context(app):
            pass
