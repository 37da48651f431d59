"""
Database configuration. Any async SQLAlchemy URL works; PostgreSQL in
production, SQLite (aiosqlite) for local runs and tests.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from slidemint.config import get_settings

_engine = None
_session_maker = None
_initialized = False


class Base(DeclarativeBase):
    pass


def build_engine(url: str) -> AsyncEngine:
    options = {"pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(pool_size=3, max_overflow=5)
    return create_async_engine(url, **options)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_engine():
    global _engine
    settings = get_settings()
    if _engine is None and settings.database_url:
        _engine = build_engine(settings.database_url)
        print(f"✓ Database engine created for: {settings.database_url[:50]}...")
    return _engine


def get_session_maker():
    global _session_maker
    if _session_maker is None:
        engine = get_engine()
        if engine:
            _session_maker = build_session_maker(engine)
    return _session_maker


async def create_tables(engine: AsyncEngine):
    # Table classes register on Base.metadata at import
    from slidemint import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> bool:
    """Create tables. Returns False when no database is configured."""
    global _initialized
    if _initialized:
        return True

    engine = get_engine()
    if not engine:
        print("✗ No database configured, using in-memory store")
        return False

    await create_tables(engine)
    _initialized = True
    print("✓ Database tables created")
    return True


async def dispose_engine():
    global _engine, _session_maker, _initialized
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None
    _initialized = False
