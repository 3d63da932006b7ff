"""
Estoque - Database Session
Engine e sessões assíncronas; SQLite em desenvolvimento e testes, Postgres (Supabase) em produção
"""
import logging
from typing import AsyncIterator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from estoque.core.config import settings

logger = logging.getLogger(__name__)

# Base para models
Base = declarative_base()


def async_database_url(url: str) -> str:
    """URLs postgres:// do Supabase passam a usar o driver asyncpg"""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def build_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    url = async_database_url(url or settings.DATABASE_URL)
    echo = settings.DEBUG if echo is None else echo
    parsed = make_url(url)

    if parsed.get_backend_name() == "sqlite":
        options = {"connect_args": {"check_same_thread": False}}
        if parsed.database in (None, "", ":memory:"):
            # banco em memória: uma única conexão compartilhada
            options["poolclass"] = StaticPool
        return create_async_engine(url, echo=echo, **options)

    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


def session_dependency(factory: async_sessionmaker):
    """Dependency com uma sessão por requisição: commit no sucesso, rollback em erro"""

    async def dependency() -> AsyncIterator[AsyncSession]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return dependency


async def create_tables(bind: AsyncEngine):
    # Importa os models para registrar as tabelas no metadata
    import estoque.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = build_engine()
AsyncSessionLocal = build_session_factory(engine)


# Dependency para injetar sessão do banco
get_db = session_dependency(AsyncSessionLocal)


async def init_db():
    """Inicializa banco de dados (cria tabelas)"""
    await create_tables(engine)
    logger.info(f"Tabelas verificadas/criadas ({engine.url.get_backend_name()})")
