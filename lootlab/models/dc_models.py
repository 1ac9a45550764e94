from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class GameTypeModel(str, Enum):
    lottery = "lottery"
    chest = "chest"
    scratch = "scratch"
    runner = "runner"


# ==== Requests ================================================================
# Only the enumerated fields are accepted; anything else is rejected.


class LotteryRequestModel(BaseModel):
    ticket_count: int = Field(alias="ticketCount")

    class Config:
        populate_by_name = True
        extra = "forbid"


class ChestRequestModel(BaseModel):
    tier_name: str = Field(alias="tierName")
    tier_price: Decimal = Field(alias="tierPrice")  # cross-checked against the tier table
    max_multiplier: Decimal = Field(alias="maxMultiplier")

    class Config:
        populate_by_name = True
        extra = "forbid"


class ScratchRequestModel(BaseModel):
    card_count: int = Field(default=1, alias="cardCount")

    class Config:
        populate_by_name = True
        extra = "forbid"


class RunnerRequestModel(BaseModel):
    time_played: Decimal = Field(alias="timePlayed")
    score: Decimal

    class Config:
        populate_by_name = True
        extra = "forbid"


class VerificationRequestModel(BaseModel):
    email: str = ""

    class Config:
        extra = "forbid"


class VerifyCodeRequestModel(BaseModel):
    email: str = ""
    code: str = ""

    class Config:
        extra = "forbid"


# ==== Responses ===============================================================


class GameResultModel(BaseModel):
    won: bool
    payout: float
    round_id: UUID = Field(alias="roundId")

    class Config:
        populate_by_name = True


class ChestResultModel(GameResultModel):
    prize_amount: float = Field(alias="prizeAmount")
    prize_type: str = Field(alias="prizeType")


class RunnerResultModel(GameResultModel):
    total_cost: float = Field(alias="totalCost")


class BalanceModel(BaseModel):
    balance: float


class GameRoundModel(BaseModel):
    round_id: UUID = Field(alias="roundId")
    game_type: str = Field(alias="gameType")
    stake: float
    payout: float
    won: bool
    result: dict
    created_at: datetime = Field(alias="createdAt")

    class Config:
        populate_by_name = True


class GameRoundListModel(BaseModel):
    rounds: List[GameRoundModel]


class VerificationSentModel(BaseModel):
    success: bool = True
    message: str = "Verification code sent"
    expires_in_minutes: int = Field(alias="expiresInMinutes")

    class Config:
        populate_by_name = True


class VerifyCodeResultModel(BaseModel):
    valid: bool
    error: Optional[str] = None
