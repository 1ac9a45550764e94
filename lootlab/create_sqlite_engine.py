import pathlib

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from lootlab.load_secrets import sqlite_path


def build_sqlite_engine(path: str | pathlib.Path, **engine_kwargs) -> AsyncEngine:
    """Create an aiosqlite engine for the given database file.

    The busy timeout lets concurrent writers queue on the database lock
    instead of failing immediately.
    """
    sqlite_url = f"sqlite+aiosqlite:///{path}"
    return create_async_engine(
        url=sqlite_url, echo=False, connect_args={"timeout": 30}, **engine_kwargs
    )


file_path = pathlib.Path(sqlite_path)
if not file_path.is_absolute():
    file_path = pathlib.Path(__file__).parents[1] / file_path

engine = build_sqlite_engine(file_path)
