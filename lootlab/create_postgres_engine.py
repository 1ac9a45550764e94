from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from lootlab.load_secrets import db_name, host, max_overflow, password, pool_size, port, user


def build_postgres_engine(**engine_kwargs) -> AsyncEngine:
    """Create the asyncpg engine. Connections come from the SQLAlchemy pool."""
    postgres_url = URL.create(
        "postgresql+asyncpg",
        username=user,
        password=password,
        host=host,
        port=int(port),
        database=db_name,
    )
    engine_kwargs.setdefault("pool_size", pool_size)
    engine_kwargs.setdefault("max_overflow", max_overflow)
    engine_kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(postgres_url, **engine_kwargs)


engine = build_postgres_engine()
