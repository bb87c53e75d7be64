"""Arbitrary-precision numeric helpers.

All monetary amounts travel through the pipeline as base-10 strings. They are
parsed with :func:`parse_decimal`, combined under :data:`DECIMAL_CONTEXT`, and
rendered back with :func:`format_decimal`.

Parsing is total: malformed input becomes zero instead of raising. This keeps
a block alive when one event carries garbage, at the cost of silently masking
that garbage in the aggregates.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Context, Decimal, InvalidOperation
from typing import Sequence

from polymarket_orderbook.core.domain.types import TradeSide, TraderType

# 100 significant digits covers any uint256 sum and leaves room for the
# quotients taken by prices and averages.
DECIMAL_CONTEXT = Context(prec=100, rounding=ROUND_HALF_EVEN)

ZERO = Decimal(0)
SECONDS_PER_DAY = 86_400
COLLATERAL_DECIMALS = 6

LARGE_TRADE_THRESHOLD = Decimal(10_000)
HIGH_FREQUENCY_TRADE_COUNT = 100
MARKET_MAKER_MARKET_COUNT = 5

_VOLATILITY_SCALE = Decimal("1e-10")

# ---------------------------------------------------------------------------
# Parsing / formatting
# ---------------------------------------------------------------------------


def parse_decimal(value: object) -> Decimal:
    """Parse ``value`` into a finite Decimal, defaulting to zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)

    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        return ZERO

    return parsed if parsed.is_finite() else ZERO


def parse_int(value: object) -> int:
    """Parse a base-10 integer, defaulting to zero."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip(), 10)
    except ValueError:
        return 0


def format_decimal(value: Decimal) -> str:
    """Render a Decimal in plain notation without exponent or trailing zeros."""
    if not value.is_finite() or value.is_zero():
        return "0"
    return format(value.normalize(DECIMAL_CONTEXT), "f")


def add_decimal_strings(current: str, increment: object) -> str:
    """Return ``current + increment`` as a decimal string."""
    total = DECIMAL_CONTEXT.add(parse_decimal(current), parse_decimal(increment))
    return format_decimal(total)


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator.is_zero():
        return ZERO
    return DECIMAL_CONTEXT.divide(numerator, denominator)


# ---------------------------------------------------------------------------
# Event-level derivations
# ---------------------------------------------------------------------------


def calculate_price(maker_amount: object, taker_amount: object) -> Decimal:
    """Price of a fill as maker amount per taker amount; zero when taker is zero."""
    return safe_divide(parse_decimal(maker_amount), parse_decimal(taker_amount))


def determine_trade_side(
    maker_asset_id: object,
    taker_asset_id: object,
    maker_amount: object = None,
    taker_amount: object = None,
) -> TradeSide:
    """Classify a fill by the parity of its asset ids.

    Collateral ids are conventionally even and outcome-token ids odd, so a
    maker giving an even id for an odd id is buying outcome tokens. The amounts
    are accepted for signature compatibility and do not affect the result.
    """
    del maker_amount, taker_amount

    maker_parity = parse_int(maker_asset_id) % 2
    taker_parity = parse_int(taker_asset_id) % 2

    if (maker_parity, taker_parity) == (0, 1):
        return "buy"
    if (maker_parity, taker_parity) == (1, 0):
        return "sell"
    return "unknown"


def generate_order_id(tx_hash: str, order_hash: str) -> str:
    return f"{tx_hash}-{order_hash}"


def generate_match_id(tx_hash: str, ordinal: int) -> str:
    return f"{tx_hash}-{ordinal}"


def normalize_asset_id(asset_id: object) -> str:
    """Canonical base-10 form of an asset id (market key)."""
    return str(parse_int(asset_id))


def extract_condition_id(asset_id: object) -> str:
    return f"condition_{normalize_asset_id(asset_id)}"


def timestamp_to_day(timestamp: int) -> int:
    return timestamp // SECONDS_PER_DAY


# ---------------------------------------------------------------------------
# Aggregate derivations
# ---------------------------------------------------------------------------


def calculate_average_trade_size(total_volume: Decimal, trade_count: int) -> Decimal:
    if trade_count <= 0:
        return ZERO
    return DECIMAL_CONTEXT.divide(total_volume, Decimal(trade_count))


def bigint_to_scaled_decimal(value: object, decimals: int = COLLATERAL_DECIMALS) -> Decimal:
    """Scale a raw integer amount down by ``10**decimals``."""
    return DECIMAL_CONTEXT.scaleb(parse_decimal(value), -decimals)


def classify_trader_type(
    trade_count: int,
    total_volume: Decimal,
    unique_markets: int,
) -> TraderType:
    """Classify a trader from activity, average size and market breadth."""
    avg_trade_size = calculate_average_trade_size(total_volume, trade_count)

    if trade_count >= HIGH_FREQUENCY_TRADE_COUNT and unique_markets >= MARKET_MAKER_MARKET_COUNT:
        return "market_maker"
    if avg_trade_size >= LARGE_TRADE_THRESHOLD:
        return "whale"
    if unique_markets >= MARKET_MAKER_MARKET_COUNT:
        return "arbitrageur"
    return "retail"


# ---------------------------------------------------------------------------
# Analytics helpers
#
# Not wired into the aggregators yet: the fields they would feed (volatility,
# 24h price change, liquidity score, alerts) are still declared as zero.
# ---------------------------------------------------------------------------


def calculate_percentage_change(old_value: Decimal, new_value: Decimal) -> Decimal:
    if old_value.is_zero():
        return ZERO
    change = DECIMAL_CONTEXT.divide(DECIMAL_CONTEXT.subtract(new_value, old_value), old_value)
    return DECIMAL_CONTEXT.multiply(change, Decimal(100))


def _mean(values: Sequence[Decimal]) -> Decimal:
    total = ZERO
    for v in values:
        total = DECIMAL_CONTEXT.add(total, v)
    return DECIMAL_CONTEXT.divide(total, Decimal(len(values)))


def _sum_squared_deviations(values: Sequence[Decimal], mean: Decimal) -> Decimal:
    total = ZERO
    for v in values:
        deviation = DECIMAL_CONTEXT.subtract(v, mean).quantize(_VOLATILITY_SCALE, context=DECIMAL_CONTEXT)
        total = DECIMAL_CONTEXT.add(total, DECIMAL_CONTEXT.multiply(deviation, deviation))
    return total


def calculate_volatility(prices: Sequence[Decimal]) -> Decimal:
    """Population standard deviation of ``prices``; zero below two samples."""
    if len(prices) < 2:
        return ZERO

    mean = _mean(prices)
    variance = DECIMAL_CONTEXT.divide(_sum_squared_deviations(prices, mean), Decimal(len(prices)))
    return variance.sqrt(DECIMAL_CONTEXT)


def calculate_liquidity_score(total_volume: Decimal, spread: Decimal, depth: Decimal) -> Decimal:
    if spread.is_zero() or depth.is_zero():
        return ZERO
    return DECIMAL_CONTEXT.divide(DECIMAL_CONTEXT.multiply(total_volume, depth), spread)


def detect_unusual_activity(
    current_volume: Decimal,
    historical_avg: Decimal,
    threshold_multiplier: float,
) -> bool:
    threshold = DECIMAL_CONTEXT.multiply(historical_avg, Decimal(str(threshold_multiplier)))
    return current_volume > threshold


def calculate_sharpe_ratio(returns: Sequence[Decimal], risk_free_rate: Decimal) -> Decimal:
    """Excess mean return over sample standard deviation."""
    if not returns:
        return ZERO

    mean_return = _mean(returns)
    excess_return = DECIMAL_CONTEXT.subtract(mean_return, risk_free_rate)

    if len(returns) < 2:
        return excess_return

    variance = DECIMAL_CONTEXT.divide(
        _sum_squared_deviations(returns, mean_return),
        Decimal(len(returns) - 1),
    )
    std_dev = variance.sqrt(DECIMAL_CONTEXT)
    return safe_divide(excess_return, std_dev)
