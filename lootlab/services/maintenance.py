import logging
from datetime import datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lootlab.crud import DeleteData
from lootlab.domain.verification_rules import ISSUE_WINDOW
from lootlab.time_utils import utcnow


async def purge_expired_codes(
    session_factory: async_sessionmaker[AsyncSession], older_than: timedelta, now: datetime | None = None
) -> int:
    """Delete verification codes created before ``now - older_than``

    Args:
        session_factory (async_sessionmaker): Session factory bound to the database
        older_than (timedelta): Retention period, must exceed the issuance window

    Returns:
        int: Number of rows deleted
    """
    if older_than <= ISSUE_WINDOW:
        raise ValueError("Retention must be longer than the rate-limit window")

    cutoff = (now or utcnow()) - older_than
    async with session_factory() as session:
        async with session.begin():
            deleted = await DeleteData.delete_codes_created_before(cutoff, session)
    logging.info(f"Purged {deleted} verification codes created before {cutoff}")
    return deleted


def schedule_code_purge(
    scheduler: AsyncIOScheduler,
    session_factory: async_sessionmaker[AsyncSession],
    retention_days: int,
) -> bool:
    """Register the daily purge job. A retention of 0 keeps codes forever."""
    if retention_days <= 0:
        logging.info("Verification code purge disabled")
        return False

    scheduler.add_job(
        purge_expired_codes,
        "interval",
        hours=24,
        args=[session_factory, timedelta(days=retention_days)],
        id="purge_expired_codes",
        replace_existing=True,
    )
    return True
