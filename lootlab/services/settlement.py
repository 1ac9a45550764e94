"""Settlement recorder.

- Owns the transaction that moves money: the balance delta and the game
  round row land together or not at all.
- The conditional balance update is the only authoritative balance check.
"""

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from uuid6 import uuid7

from lootlab.crud import CreateData, ReadData, UpdateData
from lootlab.exceptions import InsufficientBalanceError, InvalidInputError, StorageError
from lootlab.models.schema_models import GameRoundSchema
from lootlab.time_utils import utcnow


async def record_game(
    session_factory: async_sessionmaker[AsyncSession],
    account_id: UUID,
    game_type: str,
    stake: Decimal,
    payout: Decimal,
    detail: dict,
    *,
    idempotency_key: str | None = None,
    created_at: datetime | None = None,
) -> GameRoundSchema:
    """Apply ``balance - stake + payout`` and append the round in one transaction.

    Args:
        session_factory (async_sessionmaker): Storage capability for this request
        account_id (UUID): Account being settled
        game_type (str): lottery | chest:<tier> | scratch | runner
        stake (Decimal): Amount debited
        payout (Decimal): Amount credited, 0 on a loss
        detail (dict): Game specific result payload, must contain ``won``
        idempotency_key (str | None): Client key that makes retries safe

    Raises:
        InsufficientBalanceError: The account is missing or cannot cover the stake
        StorageError: The transaction failed and was rolled back

    Returns:
        GameRoundSchema: The recorded round (an earlier one on an idempotent retry)
    """
    game_round = GameRoundSchema(
        round_id=uuid7(),
        account_id=account_id,
        game_type=game_type,
        stake_amount=stake,
        payout_amount=payout,
        outcome_detail=detail,
        idempotency_key=idempotency_key,
        created_at=created_at or utcnow(),
    )

    try:
        async with session_factory() as session:
            async with session.begin():
                if idempotency_key is not None:
                    existing = await ReadData.read_game_round_by_key(
                        account_id, idempotency_key, session
                    )
                    if existing is not None:
                        check_replay(existing, game_type, stake)
                        logging.info(
                            f"Replaying round {existing.round_id} for idempotency key {idempotency_key}"
                        )
                        return existing

                new_balance = await UpdateData.apply_balance_delta(
                    account_id, stake, payout, session
                )
                if new_balance is None:
                    raise InsufficientBalanceError()

                await CreateData.add_game_round(game_round, session)
    except IntegrityError as e:
        if idempotency_key is None:
            logging.error(f"Game recording error: {e}")
            raise StorageError() from e
        # A concurrent request with the same key won the insert.
        existing = await _read_round_by_key(session_factory, account_id, idempotency_key)
        if existing is None:
            logging.error(f"Game recording error: {e}")
            raise StorageError() from e
        check_replay(existing, game_type, stake)
        return existing
    except SQLAlchemyError as e:
        logging.error(f"Game recording error: {e}")
        raise StorageError() from e

    logging.info(
        f"Settled {game_type} for {account_id}: stake={stake} payout={payout} balance={new_balance}"
    )
    return game_round


def check_replay(existing: GameRoundSchema, game_type: str, stake: Decimal) -> None:
    """A key may only be replayed by the same wager: same game, same stake.

    Raises:
        InvalidInputError: The key was already used for a different request
    """
    if existing.game_type != game_type or existing.stake_amount != stake:
        logging.info(
            f"Idempotency key reused: recorded {existing.game_type}/{existing.stake_amount}, "
            f"requested {game_type}/{stake}"
        )
        raise InvalidInputError("Idempotency key already used for a different request")


async def _read_round_by_key(
    session_factory: async_sessionmaker[AsyncSession], account_id: UUID, idempotency_key: str
) -> GameRoundSchema | None:
    try:
        async with session_factory() as session:
            return await ReadData.read_game_round_by_key(account_id, idempotency_key, session)
    except SQLAlchemyError as e:
        logging.error(f"Failed to read round for idempotency key: {e}")
        raise StorageError() from e
