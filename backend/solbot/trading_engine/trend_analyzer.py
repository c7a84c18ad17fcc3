"""
Price trend analysis over 1h / 24h / 7d horizons.

Advisory only: the result is logged next to each decision but never changes
it, and a failure here must not abort the trading cycle.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence

from solbot.trading_engine.types import PriceSample, TrendDirection, TrendSnapshot

logger = logging.getLogger(__name__)

HORIZON_1H = timedelta(hours=1)
HORIZON_24H = timedelta(hours=24)
HORIZON_7D = timedelta(days=7)


def price_at(history: Sequence[PriceSample], cutoff: datetime) -> Optional[Decimal]:
    """Price of the most recent sample taken at or before cutoff."""
    best: Optional[PriceSample] = None
    for sample in history:
        if sample.timestamp <= cutoff and (best is None or sample.timestamp > best.timestamp):
            best = sample
    return best.base_in_quote if best is not None else None


def direction(current_price: Decimal, past_price: Optional[Decimal]) -> Optional[TrendDirection]:
    if past_price is None:
        return None
    if current_price > past_price:
        return TrendDirection.UP
    if current_price < past_price:
        return TrendDirection.DOWN
    return TrendDirection.STABLE


def population_variance(prices: List[Decimal]) -> Decimal:
    """Variance (not std dev) of prices; 0 for fewer than two samples."""
    if len(prices) < 2:
        return Decimal("0")
    count = Decimal(len(prices))
    mean = sum(prices, Decimal("0")) / count
    return sum(((p - mean) * (p - mean) for p in prices), Decimal("0")) / count


def window_volatility(history: Sequence[PriceSample], now: datetime, horizon: timedelta) -> Decimal:
    start = now - horizon
    prices = [s.base_in_quote for s in history if start < s.timestamp <= now]
    return population_variance(prices)


def analyze(history: Sequence[PriceSample], now: datetime, current_price: Decimal) -> TrendSnapshot:
    """
    Classify price direction and dispersion for each horizon.

    Args:
        history: Price samples in any order
        now: Reference time (same tz-awareness as the sample timestamps)
        current_price: SOL price in USDC right now

    Returns:
        TrendSnapshot; horizons without an old enough sample are left empty
    """
    price_1h = price_at(history, now - HORIZON_1H)
    price_24h = price_at(history, now - HORIZON_24H)
    price_7d = price_at(history, now - HORIZON_7D)

    return TrendSnapshot(
        price_1h_ago=price_1h,
        price_24h_ago=price_24h,
        price_7d_ago=price_7d,
        direction_1h=direction(current_price, price_1h),
        direction_24h=direction(current_price, price_24h),
        direction_7d=direction(current_price, price_7d),
        volatility_1h=window_volatility(history, now, HORIZON_1H),
        volatility_24h=window_volatility(history, now, HORIZON_24H),
    )


def safe_analyze(
    history: Sequence[PriceSample], now: datetime, current_price: Decimal
) -> Optional[TrendSnapshot]:
    """analyze() that logs and returns None instead of raising."""
    try:
        trend = analyze(history, now, current_price)
    except Exception as e:
        logger.error(f"Failed to get price trend: {e}")
        return None

    logger.info(
        f"Price trend - 1h: {trend.direction_1h}, 24h: {trend.direction_24h}, 7d: {trend.direction_7d}"
    )
    return trend
