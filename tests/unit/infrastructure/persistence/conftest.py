"""In-memory SQLite fixtures for repository tests."""

import pytest
import pytest_asyncio
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shelfgate.infrastructure.persistence.tables import book_idp_table, idp_table, metadata


def make_idp_row(code: str, **overrides) -> dict:
    row = {
        "code": code,
        "name": f"IdP {code}",
        "entity_id": None,
        "entry_point": f"https://idp.{code}.edu/sso",
        "logout_url": None,
        "idp_cert": "MIIC",
        "sp_key": "KEY",
        "sp_cert": "CERT",
        "language": None,
        "logo_src": None,
        "small_logo_src": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def idp_row():
    """Factory for idp table rows."""
    return make_idp_row


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        await conn.execute(insert(idp_table), [make_idp_row("uni1"), make_idp_row("uni2")])
        await conn.execute(
            insert(book_idp_table),
            [
                {"book_id": 1, "idp_code": "uni1"},
                {"book_id": 2, "idp_code": "uni1"},
                {"book_id": 5, "idp_code": "uni1"},
                {"book_id": 2, "idp_code": "uni2"},
                {"book_id": 8, "idp_code": "uni2"},
            ],
        )
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()
