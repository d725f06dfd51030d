from typing import AsyncGenerator
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from .config import get_settings
from .models.base import Base

settings = get_settings()


def serialize_sqlite_writes(engine: AsyncEngine) -> None:
    """Start every SQLite transaction with BEGIN IMMEDIATE.

    The driver otherwise defers BEGIN until the first write, so a read of an
    iteration's working days holds no lock and SELECT ... FOR UPDATE is
    ignored. Taking the write lock up front serializes writers per database.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    engine = create_async_engine(database_url, echo=echo, future=True, **kwargs)
    if engine.dialect.name == "sqlite":
        serialize_sqlite_writes(engine)
    return engine


# Create async engine
engine = build_engine(settings.database_url, echo=settings.database_echo)

# Create session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def init_models() -> None:
    """Create all tables registered on the declarative base"""
    # Import models so they're registered
    from .models import access, availability, iteration, member, team  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Dependency to get database session
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
