import shutil
import tempfile
import unittest
from decimal import Decimal
from pathlib import Path
from uuid import UUID, uuid4

from sqlalchemy.pool import NullPool

from lootlab.create_sqlite_engine import build_sqlite_engine
from lootlab.crud import CreateData, ReadData
from lootlab.db import build_session_factory, create_table
from lootlab.exceptions import EmailDispatchError
from lootlab.models.schema_models import AccountSchema


class SequenceSource:
    """Uniform source that replays fixed draws."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        if not self.values:
            raise AssertionError("SequenceSource exhausted")
        self.calls += 1
        return self.values.pop(0)


class ConstantSource:
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


class FakeMailer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send(self, to_address: str, subject: str, html_body: str) -> None:
        if self.fail:
            raise EmailDispatchError()
        self.sent.append((to_address, subject, html_body))


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    """Runs each test against a fresh SQLite file database."""

    async def asyncSetUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()
        self.engine = build_sqlite_engine(Path(self.tmpdir) / "test.sqlite3", poolclass=NullPool)
        await create_table(self.engine)
        self.session_factory = build_session_factory(self.engine)

    async def asyncTearDown(self) -> None:
        await self.engine.dispose()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    async def add_account(self, balance, account_id: UUID | None = None) -> UUID:
        account_id = account_id or uuid4()
        async with self.session_factory() as session:
            async with session.begin():
                await CreateData.add_account(
                    AccountSchema(account_id=account_id, balance=Decimal(str(balance))), session
                )
        return account_id

    async def balance_of(self, account_id: UUID) -> Decimal:
        async with self.session_factory() as session:
            account = await ReadData.read_account(account_id, session)
        return account.balance

    async def round_count(self, account_id: UUID) -> int:
        async with self.session_factory() as session:
            return await ReadData.count_game_rounds(account_id, session)
