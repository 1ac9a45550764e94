"""CRUD helpers for accounts, game rounds and verification codes.

None of these commit. Callers own the transaction boundary, usually with
``session.begin()`` in the service layer, and errors propagate to them.
"""

from datetime import datetime
from decimal import Decimal
from typing import List
from uuid import UUID

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lootlab.models.schema_models import (
    AccountSchema,
    GameRoundSchema,
    VerificationCodeSchema,
)
from lootlab.models.schemas import Account, GameRound, VerificationCode
from lootlab.time_utils import utcnow


class CreateData:
    @staticmethod
    async def add_account(account: AccountSchema, session: AsyncSession) -> None:
        """Add a new account with its opening balance

        Args:
            account (AccountSchema): Account id and opening balance
            session (AsyncSession): Session inside an open transaction
        """
        new_account = Account(
            account_id=account.account_id,
            balance=account.balance,
            created_at=account.created_at or utcnow(),
        )
        session.add(new_account)
        await session.flush()

    @staticmethod
    async def add_game_round(game_round: GameRoundSchema, session: AsyncSession) -> None:
        """Append a game round row

        Args:
            game_round (GameRoundSchema): The settled round
            session (AsyncSession): Session inside an open transaction
        """
        new_round = GameRound(
            round_id=game_round.round_id,
            account_id=game_round.account_id,
            game_type=game_round.game_type,
            stake_amount=game_round.stake_amount,
            payout_amount=game_round.payout_amount,
            outcome_detail=game_round.outcome_detail,
            idempotency_key=game_round.idempotency_key,
            created_at=game_round.created_at,
        )
        session.add(new_round)
        await session.flush()

    @staticmethod
    async def add_verification_code(
        verification_code: VerificationCodeSchema, session: AsyncSession
    ) -> None:
        new_code = VerificationCode(
            code_id=verification_code.code_id,
            email=verification_code.email,
            code=verification_code.code,
            expires_at=verification_code.expires_at,
            used=verification_code.used,
            origin_identifier=verification_code.origin_identifier,
            created_at=verification_code.created_at,
        )
        session.add(new_code)
        await session.flush()


class ReadData:
    @staticmethod
    async def read_account(account_id: UUID, session: AsyncSession) -> AccountSchema | None:
        stmt = select(Account).where(Account.account_id == account_id)
        result = await session.execute(stmt)
        result = result.scalars().first()
        if result is None:
            return None
        return AccountSchema.model_validate(result)

    @staticmethod
    async def read_game_round_by_key(
        account_id: UUID, idempotency_key: str, session: AsyncSession
    ) -> GameRoundSchema | None:
        """Read the round an account already settled under an idempotency key

        Args:
            account_id (UUID): Owner of the round
            idempotency_key (str): Key supplied by the client with the request

        Returns:
            GameRoundSchema | None: The recorded round, None if the key is new
        """
        stmt = select(GameRound).where(
            GameRound.account_id == account_id,
            GameRound.idempotency_key == idempotency_key,
        )
        result = await session.execute(stmt)
        result = result.scalars().first()
        if result is None:
            return None
        return GameRoundSchema.model_validate(result)

    @staticmethod
    async def read_game_rounds(
        account_id: UUID, session: AsyncSession, limit: int = 20
    ) -> List[GameRoundSchema]:
        """Read the most recent rounds of an account, newest first"""
        stmt = (
            select(GameRound)
            .where(GameRound.account_id == account_id)
            .order_by(desc(GameRound.created_at), desc(GameRound.round_id))
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [GameRoundSchema.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def count_game_rounds(account_id: UUID, session: AsyncSession) -> int:
        stmt = select(func.count()).select_from(GameRound).where(
            GameRound.account_id == account_id
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def count_codes_for_email(email: str, since: datetime, session: AsyncSession) -> int:
        stmt = select(func.count()).select_from(VerificationCode).where(
            VerificationCode.email == email,
            VerificationCode.created_at >= since,
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def count_codes_for_origin(
        origin_identifier: str, since: datetime, session: AsyncSession
    ) -> int:
        stmt = select(func.count()).select_from(VerificationCode).where(
            VerificationCode.origin_identifier == origin_identifier,
            VerificationCode.created_at >= since,
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def read_latest_valid_code(
        email: str, code: str, now: datetime, session: AsyncSession
    ) -> VerificationCodeSchema | None:
        """Read the newest unused, unexpired code matching email and code exactly

        Args:
            email (str): Email the code was sent to
            code (str): Code submitted by the client
            now (datetime): Current time, naive UTC

        Returns:
            VerificationCodeSchema | None: Matching row, None if nothing is usable
        """
        stmt = (
            select(VerificationCode)
            .where(
                VerificationCode.email == email,
                VerificationCode.code == code,
                VerificationCode.used.is_(False),
                VerificationCode.expires_at > now,
            )
            .order_by(desc(VerificationCode.created_at))
            .limit(1)
        )
        result = await session.execute(stmt)
        result = result.scalars().first()
        if result is None:
            return None
        return VerificationCodeSchema.model_validate(result)


class UpdateData:
    @staticmethod
    async def apply_balance_delta(
        account_id: UUID, stake: Decimal, payout: Decimal, session: AsyncSession
    ) -> Decimal | None:
        """Debit the stake and credit the payout in a single conditional update

        The balance check is part of the UPDATE itself, so two concurrent
        settlements can never both spend the same funds.

        Args:
            account_id (UUID): Account to settle against
            stake (Decimal): Amount debited
            payout (Decimal): Amount credited

        Returns:
            Decimal | None: New balance, None if the account is missing or cannot cover the stake
        """
        stmt = (
            update(Account)
            .where(Account.account_id == account_id, Account.balance >= stake)
            .values(balance=Account.balance - stake + payout)
            .returning(Account.balance)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def mark_code_used(code_id: UUID, session: AsyncSession) -> bool:
        """Flip used false -> true. Returns False if another request got there first."""
        stmt = (
            update(VerificationCode)
            .where(VerificationCode.code_id == code_id, VerificationCode.used.is_(False))
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1


class DeleteData:
    @staticmethod
    async def delete_codes_created_before(cutoff: datetime, session: AsyncSession) -> int:
        stmt = delete(VerificationCode).where(VerificationCode.created_at < cutoff)
        result = await session.execute(stmt)
        return result.rowcount
