import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.pool import StaticPool

from estoque.database import (
    async_database_url,
    build_engine,
    build_session_factory,
    create_tables,
    session_dependency,
)
from estoque.models import Company


@pytest.mark.parametrize("url, expected", [
    ("postgres://u:p@db.supabase.co:5432/postgres", "postgresql+asyncpg://u:p@db.supabase.co:5432/postgres"),
    ("postgresql://u:p@localhost/estoque", "postgresql+asyncpg://u:p@localhost/estoque"),
    ("postgresql+asyncpg://u:p@localhost/estoque", "postgresql+asyncpg://u:p@localhost/estoque"),
    ("sqlite+aiosqlite:///./estoque.db", "sqlite+aiosqlite:///./estoque.db"),
])
def test_async_database_url(url, expected):
    assert async_database_url(url) == expected


def test_in_memory_sqlite_shares_one_connection():
    engine = build_engine("sqlite+aiosqlite://", echo=False)
    file_engine = build_engine("sqlite+aiosqlite:///./estoque-test.db", echo=False)

    assert isinstance(engine.pool, StaticPool)
    assert not isinstance(file_engine.pool, StaticPool)


def test_session_dependency_commits_or_rolls_back():
    async def scenario():
        engine = build_engine("sqlite+aiosqlite://", echo=False)
        await create_tables(engine)
        dependency = session_dependency(build_session_factory(engine))

        ok = dependency()
        db = await ok.__anext__()
        db.add(Company(name="Cantina", email="cantina@teste.com"))
        with pytest.raises(StopAsyncIteration):
            await ok.__anext__()

        failing = dependency()
        db = await failing.__anext__()
        db.add(Company(name="Perdida", email="perdida@teste.com"))
        await db.flush()
        with pytest.raises(RuntimeError):
            await failing.athrow(RuntimeError("falha na rota"))

        check = dependency()
        db = await check.__anext__()
        names = (await db.execute(select(Company.name))).scalars().all()
        await check.aclose()
        await engine.dispose()
        return names

    assert asyncio.run(scenario()) == ["Cantina"]
