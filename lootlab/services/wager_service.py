"""Wager engine: validate -> price -> pre-check -> outcome -> settle.

Routers call this module and never touch sessions or random sources directly.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable
from uuid import UUID

import numpy as np
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lootlab.crud import ReadData
from lootlab.domain.game_rules import (
    lottery_stake,
    resolve_chest_tier,
    runner_stake,
    scratch_stake,
)
from lootlab.domain.outcomes import (
    Outcome,
    UniformSource,
    chest_outcome,
    lottery_outcome,
    runner_outcome,
    scratch_outcome,
)
from lootlab.exceptions import InsufficientBalanceError, InvalidInputError, StorageError
from lootlab.models.dc_models import GameTypeModel
from lootlab.models.schema_models import GameRoundSchema
from lootlab.services.settlement import check_replay, record_game


@dataclass
class WagerPlan:
    """A validated wager: what it costs and how to resolve it."""

    game_type: str
    stake: Decimal
    resolve: Callable[[UniformSource], Outcome]


@dataclass
class SettlementResult:
    game_round: GameRoundSchema

    @property
    def won(self) -> bool:
        return self.game_round.won

    @property
    def payout(self) -> Decimal:
        return self.game_round.payout_amount

    @property
    def stake(self) -> Decimal:
        return self.game_round.stake_amount

    @property
    def detail(self) -> dict:
        return self.game_round.outcome_detail


def plan_wager(game_type: GameTypeModel, params: dict) -> WagerPlan:
    """Validate game parameters and price the wager server side.

    Args:
        game_type (GameTypeModel): Which game is being played
        params (dict): Validated request fields, snake_case

    Raises:
        InvalidInputError: Parameters are out of range or the tier was tampered with

    Returns:
        WagerPlan: Game type tag, stake and the outcome resolver
    """
    try:
        if game_type == GameTypeModel.lottery:
            ticket_count = int(params["ticket_count"])
            stake = lottery_stake(ticket_count)
            return WagerPlan(
                "lottery", stake, lambda rng: lottery_outcome(stake, ticket_count, rng)
            )

        if game_type == GameTypeModel.chest:
            tier = resolve_chest_tier(
                params["tier_name"], params["tier_price"], params["max_multiplier"]
            )
            return WagerPlan(
                f"chest:{tier.name}", tier.price, lambda rng: chest_outcome(tier, rng)
            )

        if game_type == GameTypeModel.scratch:
            card_count = int(params.get("card_count", 1))
            stake = scratch_stake(card_count)
            return WagerPlan(
                "scratch", stake, lambda rng: scratch_outcome(stake, card_count, rng)
            )

        if game_type == GameTypeModel.runner:
            time_played = Decimal(params["time_played"])
            score = Decimal(params["score"])
            stake = runner_stake(time_played, score)
            return WagerPlan(
                "runner", stake, lambda rng: runner_outcome(stake, time_played, score)
            )
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        raise InvalidInputError(str(e) if isinstance(e, ValueError) else None) from e

    raise InvalidInputError(f"Unknown game type: {game_type}")


class WagerEngine:
    def __init__(self, rng: UniformSource | None = None):
        # Draws stay on the server; tests inject fixed sequences.
        self.rng: UniformSource = rng if rng is not None else np.random.default_rng()

    async def settle(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        account_id: UUID,
        game_type: GameTypeModel,
        params: dict,
        idempotency_key: str | None = None,
    ) -> SettlementResult:
        """Settle one wager for an authenticated account

        Args:
            session_factory (async_sessionmaker): Storage capability for this request
            account_id (UUID): Identity resolved by the bearer authentication
            game_type (GameTypeModel): Game being played
            params (dict): Request fields for the game
            idempotency_key (str | None): Optional client retry key

        Returns:
            SettlementResult: Won/payout as read back from the recorded round
        """
        plan = plan_wager(game_type, params)

        if idempotency_key is not None:
            existing = await self._read_existing_round(
                session_factory, account_id, idempotency_key
            )
            if existing is not None:
                check_replay(existing, plan.game_type, plan.stake)
                return SettlementResult(existing)

        balance = await self._read_balance(session_factory, account_id)
        if balance is None or balance < plan.stake:
            logging.info(f"Insufficient balance for {account_id}: stake={plan.stake}")
            raise InsufficientBalanceError()

        try:
            outcome = plan.resolve(self.rng)
        except ArithmeticError as e:
            logging.info(f"Outcome out of range for {plan.game_type}: {e}")
            raise InvalidInputError() from e

        game_round = await record_game(
            session_factory,
            account_id,
            plan.game_type,
            plan.stake,
            outcome.payout,
            outcome.detail,
            idempotency_key=idempotency_key,
        )
        return SettlementResult(game_round)

    async def play_lottery(self, session_factory, account_id: UUID, ticket_count: int, **kwargs):
        return await self.settle(
            session_factory, account_id, GameTypeModel.lottery,
            {"ticket_count": ticket_count}, **kwargs,
        )

    async def play_chest(
        self, session_factory, account_id: UUID, tier_name: str,
        tier_price: Decimal, max_multiplier: Decimal, **kwargs,
    ):
        return await self.settle(
            session_factory, account_id, GameTypeModel.chest,
            {"tier_name": tier_name, "tier_price": tier_price, "max_multiplier": max_multiplier},
            **kwargs,
        )

    async def play_scratch(self, session_factory, account_id: UUID, card_count: int = 1, **kwargs):
        return await self.settle(
            session_factory, account_id, GameTypeModel.scratch,
            {"card_count": card_count}, **kwargs,
        )

    async def play_runner(
        self, session_factory, account_id: UUID, time_played: Decimal, score: Decimal, **kwargs
    ):
        return await self.settle(
            session_factory, account_id, GameTypeModel.runner,
            {"time_played": time_played, "score": score}, **kwargs,
        )

    @staticmethod
    async def _read_balance(
        session_factory: async_sessionmaker[AsyncSession], account_id: UUID
    ) -> Decimal | None:
        try:
            async with session_factory() as session:
                account = await ReadData.read_account(account_id, session)
        except SQLAlchemyError as e:
            logging.error(f"Failed to read balance: {e}")
            raise StorageError() from e
        if account is None:
            return None
        return account.balance

    @staticmethod
    async def _read_existing_round(
        session_factory: async_sessionmaker[AsyncSession], account_id: UUID, idempotency_key: str
    ) -> GameRoundSchema | None:
        try:
            async with session_factory() as session:
                return await ReadData.read_game_round_by_key(account_id, idempotency_key, session)
        except SQLAlchemyError as e:
            logging.error(f"Failed to read round for idempotency key: {e}")
            raise StorageError() from e
