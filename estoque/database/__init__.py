from .session import (
    Base,
    engine,
    AsyncSessionLocal,
    get_db,
    init_db,
    async_database_url,
    build_engine,
    build_session_factory,
    session_dependency,
    create_tables,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionLocal",
    "get_db",
    "init_db",
    "async_database_url",
    "build_engine",
    "build_session_factory",
    "session_dependency",
    "create_tables",
]
