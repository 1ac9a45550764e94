"""Verification code issuance and validation.

- Issuance is limited per email and per origin over a trailing hour.
- Validation is limited per email over a trailing five minutes and flips a
  code's ``used`` flag at most once.
- Rows are never deleted here; they feed the rate limits and the audit trail.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from uuid6 import uuid7

from lootlab.crud import CreateData, ReadData, UpdateData
from lootlab.domain.verification_rules import (
    ATTEMPT_WINDOW,
    CODE_TTL,
    ISSUE_WINDOW,
    VERIFICATION_SUBJECT,
    attempts_over_limit,
    email_over_limit,
    expiry_for,
    generate_code,
    is_plausible_email,
    normalize_email,
    origin_over_limit,
    render_verification_email,
)
from lootlab.exceptions import (
    InvalidInputError,
    InvalidOrExpiredError,
    RateLimitedError,
    StorageError,
)
from lootlab.models.schema_models import VerificationCodeSchema
from lootlab.services.email_dispatch import Mailer
from lootlab.time_utils import utcnow

Clock = Callable[[], datetime]


@dataclass
class IssueResult:
    expires_in_minutes: int


@dataclass
class ValidationResult:
    valid: bool
    reason: str | None = None


async def issue_code(
    session_factory: async_sessionmaker[AsyncSession],
    email: str,
    origin_identifier: str,
    mailer: Mailer,
    clock: Clock = utcnow,
) -> IssueResult:
    """Generate, store and email a one-time code

    Args:
        session_factory (async_sessionmaker): Storage capability for this request
        email (str): Address to verify
        origin_identifier (str): Client network origin, used for the second limit
        mailer (Mailer): Email collaborator
        clock (Clock): Source of "now"

    Raises:
        InvalidInputError: The address is not plausible
        RateLimitedError: Either issuance limit is exhausted
        StorageError: The code could not be stored
        EmailDispatchError: The code was stored but the email failed

    Returns:
        IssueResult: Minutes until the code expires
    """
    email = normalize_email(email)
    if not is_plausible_email(email):
        raise InvalidInputError("Invalid email address")

    now = clock()
    since = now - ISSUE_WINDOW
    code = generate_code()
    verification_code = VerificationCodeSchema(
        code_id=uuid7(),
        email=email,
        code=code,
        expires_at=expiry_for(now),
        used=False,
        origin_identifier=origin_identifier,
        created_at=now,
    )

    try:
        async with session_factory() as session:
            async with session.begin():
                recent_codes = await ReadData.count_codes_for_email(email, since, session)
                if email_over_limit(recent_codes):
                    logging.info(f"Issuance limit reached for {email}")
                    raise RateLimitedError(
                        "Too many verification codes requested. Please try again later."
                    )

                origin_codes = await ReadData.count_codes_for_origin(
                    origin_identifier, since, session
                )
                if origin_over_limit(origin_codes):
                    logging.info(f"Issuance limit reached for origin {origin_identifier}")
                    raise RateLimitedError(
                        "Too many requests from your location. Please try again later."
                    )

                await CreateData.add_verification_code(verification_code, session)
    except SQLAlchemyError as e:
        logging.error(f"Database error: {e}")
        raise StorageError("Failed to store verification code") from e

    # The row is committed; a failed dispatch still counts against the limits.
    await mailer.send(email, VERIFICATION_SUBJECT, render_verification_email(code))
    logging.info(f"Verification code sent to {email}")

    return IssueResult(expires_in_minutes=int(CODE_TTL.total_seconds() // 60))


async def validate_code(
    session_factory: async_sessionmaker[AsyncSession],
    email: str,
    code: str,
    clock: Clock = utcnow,
) -> ValidationResult:
    """Check a submitted code and consume it on success

    Wrong, reused and expired codes all produce the same reason.

    Raises:
        InvalidInputError: Email or code missing
        RateLimitedError: Too many verification rows for this email recently
        StorageError: The lookup or the used-flag update failed
    """
    email = normalize_email(email)
    if not email or not code:
        raise InvalidInputError("Email and code are required")

    now = clock()
    try:
        async with session_factory() as session:
            async with session.begin():
                recent_rows = await ReadData.count_codes_for_email(
                    email, now - ATTEMPT_WINDOW, session
                )
                if attempts_over_limit(recent_rows):
                    raise RateLimitedError("Too many attempts. Please try again later.")

                verification_code = await ReadData.read_latest_valid_code(
                    email, code, now, session
                )
                if verification_code is None:
                    logging.info(f"Verification failed for email: {email}")
                    return ValidationResult(valid=False, reason=InvalidOrExpiredError.default_message)

                consumed = await UpdateData.mark_code_used(verification_code.code_id, session)
                if not consumed:
                    logging.info(f"Code already consumed for email: {email}")
                    return ValidationResult(valid=False, reason=InvalidOrExpiredError.default_message)
    except SQLAlchemyError as e:
        logging.error(f"Error marking code as used: {e}")
        raise StorageError("Failed to verify code") from e

    logging.info(f"Code verified successfully for email: {email}")
    return ValidationResult(valid=True)
