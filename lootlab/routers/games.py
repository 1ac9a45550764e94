import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lootlab.authentication.bearer_authentication import bearer_auth
from lootlab.converter import DataConverter
from lootlab.crud import ReadData
from lootlab.db import get_session_factory
from lootlab.exceptions import StorageError
from lootlab.models.dc_models import (
    BalanceModel,
    ChestRequestModel,
    ChestResultModel,
    GameResultModel,
    GameRoundListModel,
    GameTypeModel,
    LotteryRequestModel,
    RunnerRequestModel,
    RunnerResultModel,
    ScratchRequestModel,
)
from lootlab.services.wager_service import WagerEngine

game_router = APIRouter(tags=["Games"])
data_converter = DataConverter()
wager_engine = WagerEngine()


async def get_wager_engine() -> WagerEngine:
    return wager_engine


class GameAPI:
    @staticmethod
    @game_router.post("/play-lottery", response_model=GameResultModel)
    async def play_lottery(
        request: LotteryRequestModel,
        account_id: UUID = Depends(bearer_auth.check_bearer_token),
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        engine: WagerEngine = Depends(get_wager_engine),
        idempotency_key: str | None = Header(default=None),
    ):
        """Buy lottery tickets at 10 each and settle the draw

        Args:
            request (LotteryRequestModel): ticketCount, 1 to 100
            account_id (UUID): Caller resolved from the bearer token
        """
        result = await engine.settle(
            session_factory,
            account_id,
            GameTypeModel.lottery,
            request.model_dump(),
            idempotency_key=idempotency_key,
        )
        return data_converter.convert_round_to_result(result.game_round)

    @staticmethod
    @game_router.post("/play-chest", response_model=ChestResultModel)
    async def play_chest(
        request: ChestRequestModel,
        account_id: UUID = Depends(bearer_auth.check_bearer_token),
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        engine: WagerEngine = Depends(get_wager_engine),
        idempotency_key: str | None = Header(default=None),
    ):
        """Open a chest. Price and multiplier must match the server's tier table."""
        result = await engine.settle(
            session_factory,
            account_id,
            GameTypeModel.chest,
            request.model_dump(),
            idempotency_key=idempotency_key,
        )
        return data_converter.convert_round_to_result(result.game_round)

    @staticmethod
    @game_router.post("/play-scratch", response_model=GameResultModel)
    async def play_scratch(
        request: ScratchRequestModel | None = None,
        account_id: UUID = Depends(bearer_auth.check_bearer_token),
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        engine: WagerEngine = Depends(get_wager_engine),
        idempotency_key: str | None = Header(default=None),
    ):
        request = request or ScratchRequestModel()
        result = await engine.settle(
            session_factory,
            account_id,
            GameTypeModel.scratch,
            request.model_dump(),
            idempotency_key=idempotency_key,
        )
        return data_converter.convert_round_to_result(result.game_round)

    @staticmethod
    @game_router.post("/play-runner", response_model=RunnerResultModel)
    async def play_runner(
        request: RunnerRequestModel,
        account_id: UUID = Depends(bearer_auth.check_bearer_token),
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        engine: WagerEngine = Depends(get_wager_engine),
        idempotency_key: str | None = Header(default=None),
    ):
        """Settle a finished runner session

        Args:
            request (RunnerRequestModel): timePlayed (0, 60] and a non-negative score
        """
        result = await engine.settle(
            session_factory,
            account_id,
            GameTypeModel.runner,
            request.model_dump(),
            idempotency_key=idempotency_key,
        )
        return data_converter.convert_round_to_result(result.game_round)


class AccountAPI:
    @staticmethod
    @game_router.get("/balance", response_model=BalanceModel)
    async def get_balance(
        account_id: UUID = Depends(bearer_auth.check_bearer_token),
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    ):
        try:
            async with session_factory() as session:
                account = await ReadData.read_account(account_id, session)
        except SQLAlchemyError as e:
            logging.error(f"Failed to read balance: {e}")
            raise StorageError() from e
        balance = account.balance if account is not None else 0
        return BalanceModel(balance=float(balance))

    @staticmethod
    @game_router.get("/game-rounds", response_model=GameRoundListModel)
    async def get_game_rounds(
        limit: int = Query(default=20, ge=1, le=100),
        account_id: UUID = Depends(bearer_auth.check_bearer_token),
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    ):
        """Most recent rounds of the caller, newest first"""
        try:
            async with session_factory() as session:
                rounds = await ReadData.read_game_rounds(account_id, session, limit)
        except SQLAlchemyError as e:
            logging.error(f"Failed to read game rounds: {e}")
            raise StorageError() from e
        return GameRoundListModel(
            rounds=[data_converter.convert_round_to_history(r) for r in rounds]
        )
