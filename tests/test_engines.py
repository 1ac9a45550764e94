import unittest

from lootlab.create_postgres_engine import build_postgres_engine
from lootlab.create_sqlite_engine import build_sqlite_engine


class BuildEngineTests(unittest.IsolatedAsyncioTestCase):
    async def test_postgres_engine_uses_asyncpg_and_pool_settings(self):
        engine = build_postgres_engine(pool_size=3, max_overflow=1)
        self.addAsyncCleanup(engine.dispose)

        self.assertEqual(engine.url.drivername, "postgresql+asyncpg")
        self.assertEqual(engine.pool.size(), 3)

    async def test_sqlite_engine_points_at_the_given_file(self):
        engine = build_sqlite_engine("/tmp/lootlab-test.sqlite3")
        self.addAsyncCleanup(engine.dispose)

        self.assertEqual(engine.url.drivername, "sqlite+aiosqlite")
        self.assertEqual(engine.url.database, "/tmp/lootlab-test.sqlite3")


if __name__ == "__main__":
    unittest.main()
