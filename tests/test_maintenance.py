import unittest
from datetime import datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy import func, select
from uuid6 import uuid7

from lootlab.crud import CreateData
from lootlab.models.schema_models import VerificationCodeSchema
from lootlab.models.schemas import VerificationCode
from lootlab.services.maintenance import purge_expired_codes, schedule_code_purge
from tests.helpers import DatabaseTestCase

NOW = datetime(2025, 3, 1, 0, 0, 0)


class PurgeExpiredCodesTests(DatabaseTestCase):
    async def add_code(self, created_at: datetime) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                await CreateData.add_verification_code(
                    VerificationCodeSchema(
                        code_id=uuid7(),
                        email="a@x.io",
                        code="123456",
                        expires_at=created_at + timedelta(minutes=10),
                        used=False,
                        origin_identifier="unknown",
                        created_at=created_at,
                    ),
                    session,
                )

    async def remaining(self) -> int:
        async with self.session_factory() as session:
            result = await session.execute(select(func.count()).select_from(VerificationCode))
            return result.scalar_one()

    async def test_deletes_only_rows_past_retention(self):
        await self.add_code(NOW - timedelta(days=31))
        await self.add_code(NOW - timedelta(days=29))
        await self.add_code(NOW - timedelta(minutes=1))

        deleted = await purge_expired_codes(self.session_factory, timedelta(days=30), now=NOW)

        self.assertEqual(deleted, 1)
        self.assertEqual(await self.remaining(), 2)

    async def test_retention_must_cover_the_rate_limit_window(self):
        with self.assertRaises(ValueError):
            await purge_expired_codes(self.session_factory, timedelta(minutes=30), now=NOW)


class ScheduleCodePurgeTests(unittest.TestCase):
    def test_disabled_by_default(self):
        scheduler = AsyncIOScheduler()
        self.assertFalse(schedule_code_purge(scheduler, None, 0))
        self.assertEqual(scheduler.get_jobs(), [])

    def test_registers_daily_job(self):
        scheduler = AsyncIOScheduler()
        self.assertTrue(schedule_code_purge(scheduler, None, 30))

        job = scheduler.get_job("purge_expired_codes")
        self.assertIsNotNone(job)
        self.assertEqual(job.trigger.interval, timedelta(hours=24))
        self.assertEqual(job.args[1], timedelta(days=30))


if __name__ == "__main__":
    unittest.main()
