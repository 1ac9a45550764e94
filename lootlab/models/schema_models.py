from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class AccountSchema(BaseModel):
    account_id: UUID
    balance: Decimal
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class GameRoundSchema(BaseModel):
    round_id: UUID
    account_id: UUID
    game_type: str
    stake_amount: Decimal
    payout_amount: Decimal
    outcome_detail: dict
    idempotency_key: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True

    @property
    def won(self) -> bool:
        return bool(self.outcome_detail.get("won", False))


class VerificationCodeSchema(BaseModel):
    code_id: UUID
    email: str
    code: str
    expires_at: datetime
    used: bool
    origin_identifier: str
    created_at: datetime

    class Config:
        from_attributes = True
