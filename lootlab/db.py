from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from lootlab.load_secrets import database_backend
from lootlab.models.schemas import Base

if database_backend == "sqlite":
    from lootlab.create_sqlite_engine import engine
else:
    from lootlab.create_postgres_engine import engine

# Centralized session factory to avoid creating it in router modules.
Session = async_sessionmaker(
    autocommit=False,
    class_=AsyncSession,
    autoflush=True,
    expire_on_commit=False,
    bind=engine,
)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory with the same options as the module-level one."""
    return async_sessionmaker(
        autocommit=False,
        class_=AsyncSession,
        autoflush=True,
        expire_on_commit=False,
        bind=bind,
    )


async def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency handing the storage capability to a request."""
    return Session


async def create_table(bind: AsyncEngine = engine) -> None:
    """Create tables if they do not exist"""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
