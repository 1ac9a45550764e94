from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.schema import Column, ForeignKey, Index, UniqueConstraint
from sqlalchemy.types import JSON, Boolean, DateTime, Numeric, String, Uuid
from uuid6 import uuid7

from lootlab.time_utils import utcnow


class Base(DeclarativeBase):
    pass


class Account(Base):
    __tablename__ = "accounts"
    account_id = Column(Uuid, primary_key=True)
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)

    game_rounds = relationship(
        "GameRound",
        back_populates="account",
        order_by="GameRound.created_at",
    )


class GameRound(Base):
    """Append-only record of one settled wager."""

    __tablename__ = "game_rounds"
    __table_args__ = (
        UniqueConstraint("account_id", "idempotency_key", name="uq_game_rounds_idempotency"),
        Index("ix_game_rounds_account_created", "account_id", "created_at"),
    )
    round_id = Column(Uuid, primary_key=True, default=uuid7)
    account_id = Column(Uuid, ForeignKey("accounts.account_id"), nullable=False)
    game_type = Column(String, nullable=False)  # lottery | chest:<tier> | scratch | runner
    stake_amount = Column(Numeric(14, 2), nullable=False)
    payout_amount = Column(Numeric(14, 2), nullable=False)
    outcome_detail = Column(JSON, nullable=False)
    idempotency_key = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    account = relationship("Account", back_populates="game_rounds")


class VerificationCode(Base):
    __tablename__ = "verification_codes"
    __table_args__ = (
        Index("ix_verification_codes_email_created", "email", "created_at"),
        Index("ix_verification_codes_origin_created", "origin_identifier", "created_at"),
    )
    code_id = Column(Uuid, primary_key=True, default=uuid7)
    email = Column(String, nullable=False)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    origin_identifier = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)
