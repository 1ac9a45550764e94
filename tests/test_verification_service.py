import re
import unittest
from datetime import datetime, timedelta

from sqlalchemy import func, select
from uuid6 import uuid7

from lootlab.crud import CreateData
from lootlab.domain.verification_rules import generate_code
from lootlab.exceptions import (
    EmailDispatchError,
    InvalidInputError,
    RateLimitedError,
)
from lootlab.models.schema_models import VerificationCodeSchema
from lootlab.models.schemas import VerificationCode
from lootlab.services.verification_service import issue_code, validate_code
from tests.helpers import DatabaseTestCase, FakeMailer

CODE_PATTERN = re.compile(r">(\d{6})</h2>")


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class GenerateCodeTests(unittest.TestCase):
    def test_codes_are_six_digits(self):
        for _ in range(200):
            code = generate_code()
            self.assertEqual(len(code), 6)
            self.assertTrue(code.isdigit())


class VerificationServiceTests(DatabaseTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.clock = FrozenClock(datetime(2025, 1, 1, 12, 0, 0))
        self.mailer = FakeMailer()

    def last_sent_code(self) -> str:
        _, _, html_body = self.mailer.sent[-1]
        return CODE_PATTERN.search(html_body).group(1)

    async def code_rows(self, email: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                select(func.count()).select_from(VerificationCode).where(
                    VerificationCode.email == email
                )
            )
            return result.scalar_one()

    async def issue(self, email: str, origin: str = "203.0.113.7"):
        return await issue_code(self.session_factory, email, origin, self.mailer, clock=self.clock)

    async def validate(self, email: str, code: str):
        return await validate_code(self.session_factory, email, code, clock=self.clock)

    async def test_issue_sends_and_stores_a_code(self):
        result = await self.issue("a@x.io")

        self.assertEqual(result.expires_in_minutes, 10)
        self.assertEqual(len(self.mailer.sent), 1)
        to_address, subject, _ = self.mailer.sent[0]
        self.assertEqual(to_address, "a@x.io")
        self.assertEqual(subject, "Your Verification Code")
        self.assertRegex(self.last_sent_code(), r"^\d{6}$")
        self.assertEqual(await self.code_rows("a@x.io"), 1)

    async def test_implausible_email_is_rejected(self):
        for email in ("", "not-an-email"):
            with self.assertRaises(InvalidInputError):
                await self.issue(email)
        self.assertEqual(self.mailer.sent, [])

    async def test_fourth_code_within_an_hour_is_rate_limited(self):
        for _ in range(3):
            await self.issue("a@x.io")

        with self.assertRaises(RateLimitedError):
            await self.issue("a@x.io")
        self.assertEqual(await self.code_rows("a@x.io"), 3)
        self.assertEqual(len(self.mailer.sent), 3)

    async def test_email_limit_resets_after_the_window(self):
        for _ in range(3):
            await self.issue("a@x.io")
        self.clock.advance(timedelta(hours=1, seconds=1))

        await self.issue("a@x.io")
        self.assertEqual(await self.code_rows("a@x.io"), 4)

    async def test_email_limit_ignores_case_and_surrounding_spaces(self):
        for email in ("a@x.io", "A@x.io", " a@X.IO "):
            await self.issue(email)

        with self.assertRaises(RateLimitedError):
            await self.issue("A@X.io\t")
        self.assertEqual(await self.code_rows("a@x.io"), 3)
        self.assertEqual([to for to, _, _ in self.mailer.sent], ["a@x.io"] * 3)

    async def test_validation_normalizes_the_address(self):
        await self.issue("a@x.io")
        code = self.last_sent_code()

        result = await self.validate(" A@X.io ", code)
        self.assertTrue(result.valid)

    async def test_origin_limit_spans_addresses(self):
        for i in range(5):
            await self.issue(f"user{i}@x.io", origin="198.51.100.1")

        with self.assertRaisesRegex(RateLimitedError, "location"):
            await self.issue("user5@x.io", origin="198.51.100.1")
        await self.issue("user5@x.io", origin="198.51.100.2")

    async def test_code_is_single_use(self):
        await self.issue("a@x.io")
        code = self.last_sent_code()

        first = await self.validate("a@x.io", code)
        second = await self.validate("a@x.io", code)

        self.assertTrue(first.valid)
        self.assertFalse(second.valid)
        self.assertEqual(second.reason, "Invalid or expired code")

    async def test_wrong_code_and_wrong_email_are_invalid(self):
        await self.issue("a@x.io")
        code = self.last_sent_code()
        wrong = f"{(int(code) + 1) % 1000000:06d}"

        self.assertFalse((await self.validate("a@x.io", wrong)).valid)
        self.assertFalse((await self.validate("b@x.io", code)).valid)
        self.assertTrue((await self.validate("a@x.io", code)).valid)

    async def test_expired_code_is_invalid(self):
        await self.issue("a@x.io")
        code = self.last_sent_code()
        self.clock.advance(timedelta(minutes=10))

        result = await self.validate("a@x.io", code)
        self.assertFalse(result.valid)
        self.assertEqual(result.reason, "Invalid or expired code")

    async def test_missing_fields_are_invalid_input(self):
        with self.assertRaises(InvalidInputError):
            await self.validate("", "123456")
        with self.assertRaises(InvalidInputError):
            await self.validate("a@x.io", "")

    async def test_validation_is_limited_by_recent_rows(self):
        now = self.clock()
        async with self.session_factory() as session:
            async with session.begin():
                for i in range(6):
                    await CreateData.add_verification_code(
                        VerificationCodeSchema(
                            code_id=uuid7(),
                            email="a@x.io",
                            code=f"{i:06d}",
                            expires_at=now + timedelta(minutes=10),
                            used=False,
                            origin_identifier=f"192.0.2.{i}",
                            created_at=now - timedelta(minutes=i),
                        ),
                        session,
                    )

        with self.assertRaises(RateLimitedError):
            await self.validate("a@x.io", "000000")

        # The oldest row leaves the five-minute window.
        self.clock.advance(timedelta(seconds=1))
        result = await self.validate("a@x.io", "000000")
        self.assertTrue(result.valid)

    async def test_failed_dispatch_keeps_the_row(self):
        self.mailer = FakeMailer(fail=True)

        with self.assertRaises(EmailDispatchError):
            await self.issue("a@x.io")
        self.assertEqual(await self.code_rows("a@x.io"), 1)


if __name__ == "__main__":
    unittest.main()
