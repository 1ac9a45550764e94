"""Outcome generators, one per game type.

Each generator is a pure function of the validated stake parameters and a
uniform random source. The source is only ever read on the server and its
draws are never sent to the client before the round is resolved.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

from lootlab.domain.game_rules import ChestTier, to_money

LOTTERY_WIN_THRESHOLD = Decimal("0.7")  # 30% win rate
CHEST_WIN_THRESHOLD = Decimal("0.5")  # 50% win rate
SCRATCH_WIN_THRESHOLD = Decimal("0.6")  # 40% win rate

LOTTERY_MIN_MULTIPLIER = Decimal("2")
LOTTERY_MULTIPLIER_SPAN = Decimal("3")
CHEST_MIN_MULTIPLIER = Decimal("0.5")
SCRATCH_MIN_MULTIPLIER = Decimal("1.5")
SCRATCH_MULTIPLIER_SPAN = Decimal("4")
RUNNER_SCORE_DIVISOR = Decimal("10")

# Prize bands, as a fraction of the tier's max multiplier.
CHEST_TOP_BAND = Decimal("0.8")
CHEST_MID_BAND = Decimal("0.5")


class UniformSource(Protocol):
    """Anything that yields uniform draws in [0, 1).

    numpy's ``Generator`` satisfies this; tests pass fixed sequences.
    """

    def random(self) -> float: ...


@dataclass
class Outcome:
    won: bool
    payout: Decimal
    detail: dict = field(default_factory=dict)


def _draw(rng: UniformSource) -> Decimal:
    return Decimal(str(float(rng.random())))


def lottery_outcome(stake: Decimal, ticket_count: int, rng: UniformSource) -> Outcome:
    won = _draw(rng) > LOTTERY_WIN_THRESHOLD
    payout = Decimal("0")
    if won:
        payout = stake * (LOTTERY_MIN_MULTIPLIER + _draw(rng) * LOTTERY_MULTIPLIER_SPAN)
    return Outcome(
        won=won,
        payout=to_money(payout),
        detail={"tickets": ticket_count, "won": won},
    )


def chest_prize_type(multiplier: Decimal, max_multiplier: Decimal) -> str:
    """Label a chest prize by how close it came to the tier's max multiplier."""
    if multiplier > max_multiplier * CHEST_TOP_BAND:
        return "USDT"
    if multiplier > max_multiplier * CHEST_MID_BAND:
        return "BTC"
    return "Bonus Coins"


def chest_outcome(tier: ChestTier, rng: UniformSource) -> Outcome:
    """Open a chest of the given tier.

    Args:
        tier (ChestTier): Server-side tier definition
        rng (UniformSource): Uniform random source

    Returns:
        Outcome: won flag, payout and a detail payload with the prize type
    """
    won = _draw(rng) > CHEST_WIN_THRESHOLD
    payout = Decimal("0")
    multiplier = Decimal("0")
    prize_type = "Nothing"
    if won:
        multiplier = CHEST_MIN_MULTIPLIER + _draw(rng) * tier.max_multiplier
        payout = tier.price * multiplier
        prize_type = chest_prize_type(multiplier, tier.max_multiplier)
    return Outcome(
        won=won,
        payout=to_money(payout),
        detail={
            "chest_type": tier.name,
            "prize": "win" if won else "lose",
            "prize_type": prize_type,
            "multiplier": float(multiplier),
            "won": won,
        },
    )


def scratch_outcome(price: Decimal, card_count: int, rng: UniformSource) -> Outcome:
    won = _draw(rng) > SCRATCH_WIN_THRESHOLD
    payout = Decimal("0")
    if won:
        payout = price * (SCRATCH_MIN_MULTIPLIER + _draw(rng) * SCRATCH_MULTIPLIER_SPAN)
    payout = to_money(payout)
    return Outcome(
        won=won,
        payout=payout,
        detail={"cards": card_count, "prize": float(payout), "won": won},
    )


def runner_outcome(stake: Decimal, time_played: Decimal, score: Decimal) -> Outcome:
    """Runner payout is score / 10; the round counts as won when it beats the cost.

    There is no randomness here. The score is reported by the client and
    cannot be verified further, so the payout is only as honest as the score.
    """
    payout = to_money(Decimal(score) / RUNNER_SCORE_DIVISOR)
    won = payout > stake
    return Outcome(
        won=won,
        payout=payout,
        detail={"score": float(score), "time_played": float(time_played), "won": won},
    )
