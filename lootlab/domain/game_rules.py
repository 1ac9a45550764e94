"""Wager rules that are independent from HTTP and DB.

Validation and stake calculation for every game type. All prices and
multipliers come from the tables in this module; client-supplied numbers are
only compared against them.

Rule of thumb:
- OK: validation, stake math, fixed price tables.
- Not OK: touching DB sessions, FastAPI, datetime.now(), random draws.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")

LOTTERY_TICKET_PRICE = Decimal("10")
SCRATCH_CARD_PRICE = Decimal("20")
RUNNER_COST_PER_SECOND = Decimal("1")

MIN_TICKET_COUNT = 1
MAX_TICKET_COUNT = 100
MIN_CARD_COUNT = 1
MAX_CARD_COUNT = 100
MAX_RUNNER_TIME = Decimal("60")
# Payout is score / 10 and has to fit the Numeric(14, 2) balance columns.
MAX_RUNNER_SCORE = Decimal("1000000000")


@dataclass(frozen=True)
class ChestTier:
    name: str
    price: Decimal
    max_multiplier: Decimal


CHEST_TIERS = {
    tier.name: tier
    for tier in (
        ChestTier("Bronze Chest", Decimal("100"), Decimal("3")),
        ChestTier("Silver Chest", Decimal("500"), Decimal("5")),
        ChestTier("Gold Chest", Decimal("1000"), Decimal("8")),
        ChestTier("Diamond Chest", Decimal("5000"), Decimal("15")),
    )
}


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize an amount to cents."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def lottery_stake(ticket_count: int) -> Decimal:
    if ticket_count < MIN_TICKET_COUNT or ticket_count > MAX_TICKET_COUNT:
        raise ValueError(
            f"Invalid ticket count. Must be between {MIN_TICKET_COUNT} and {MAX_TICKET_COUNT}"
        )
    return to_money(LOTTERY_TICKET_PRICE * ticket_count)


def resolve_chest_tier(
    tier_name: str, tier_price: Decimal, max_multiplier: Decimal
) -> ChestTier:
    """Look up a chest tier and cross-check the client's copy of its constants.

    Args:
        tier_name (str): Name of the tier, e.g. "Silver Chest"
        tier_price (Decimal): Price the client believes the tier costs
        max_multiplier (Decimal): Multiplier the client believes the tier has

    Returns:
        ChestTier: The server-side tier definition
    """
    tier = CHEST_TIERS.get(tier_name)
    if (
        tier is None
        or Decimal(tier_price) != tier.price
        or Decimal(max_multiplier) != tier.max_multiplier
    ):
        raise ValueError("Invalid tier data")
    return tier


def scratch_stake(card_count: int) -> Decimal:
    if card_count < MIN_CARD_COUNT or card_count > MAX_CARD_COUNT:
        raise ValueError(
            f"Invalid card count. Must be between {MIN_CARD_COUNT} and {MAX_CARD_COUNT}"
        )
    return to_money(SCRATCH_CARD_PRICE * card_count)


def runner_stake(time_played: Decimal, score: Decimal) -> Decimal:
    """Cost of a runner session; a session must have lasted some time."""
    time_played = Decimal(time_played)
    score = Decimal(score)
    if (
        not time_played.is_finite()
        or not score.is_finite()
        or time_played <= 0
        or time_played > MAX_RUNNER_TIME
        or score < 0
        or score > MAX_RUNNER_SCORE
    ):
        raise ValueError("Invalid game data")
    return to_money(time_played * RUNNER_COST_PER_SECOND)
