import importlib
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..shared.models.base import Base
from ..shared.utils.logger import get_logger
from .config import Environment, settings

logger = get_logger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _enable_immediate_transactions(engine: AsyncEngine):
    """SQLite: take the write lock at BEGIN so concurrent writers queue up
    instead of failing with "database is locked" on lock promotion."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # stop the driver from emitting its own BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, **kwargs) -> AsyncEngine:
    if _is_sqlite(url):
        kwargs.setdefault("connect_args", {"timeout": 30})
        engine = create_async_engine(url, **kwargs)
        _enable_immediate_transactions(engine)
        return engine

    kwargs.setdefault("pool_size", 20)
    kwargs.setdefault("max_overflow", 10)
    kwargs.setdefault("pool_timeout", 30)
    kwargs.setdefault("pool_recycle", 3600)
    return create_async_engine(url, **kwargs)


# Modules with ORM models; imported before create_all and by alembic
MODEL_MODULES = [
    "app.domains.auth.models",
    "app.domains.connections.models",
    "app.domains.nucleus.models",
    "app.domains.chat.models",
    "app.domains.missions.models",
    "app.domains.places.models",
]


def import_models():
    for mod in MODEL_MODULES:
        importlib.import_module(mod)


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def get_db() -> AsyncIterator[AsyncSession]:
    """One unit of work: commit on success, rollback on any error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def configure(url: str, **kwargs):
    """Rebind the module-level engine and session factory (tests, scripts)."""
    global engine, AsyncSessionLocal
    engine = build_engine(url, **kwargs)
    AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine


async def init_db():
    import_models()
    if settings.ENVIRONMENT in (Environment.LOCAL, Environment.TEST):
        # Local/test: create tables directly
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    else:
        logger.info("Skipping auto table creation, migrations own the schema")


async def check_connection() -> bool:
    try:
        async with engine.connect():
            return True
    except Exception as e:
        logger.warning(f"Database check failed: {e}")
        return False
