"""
Trade decision policy.

Fires when SOL has risen at least 1% over the price recorded at the last
executed trade, whichever asset is held. Trend data is logged alongside the
decision and reserved for future rules.
"""

import logging
from decimal import Decimal
from typing import Optional

from solbot.trading_engine.types import Position, TrendSnapshot

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = Decimal("1.01")


def should_trade(
    position: Position,
    current_price: Decimal,
    last_trade_price: Optional[Decimal],
    trend: Optional[TrendSnapshot] = None,
    threshold: Decimal = DEFAULT_THRESHOLD,
) -> bool:
    """
    Decide whether the current cycle swaps.

    Args:
        position: Held asset (does not change the rule)
        current_price: SOL price in USDC
        last_trade_price: Price recorded at the last executed trade, if any
        trend: Advisory trend snapshot
        threshold: Minimum current/last ratio

    Returns:
        True only with a baseline and current >= last * threshold
    """
    if last_trade_price is None:
        logger.info(f"No last trade price while holding {position.symbol}, skipping")
        return False

    fire = current_price >= last_trade_price * threshold
    if trend is not None:
        logger.debug(
            f"Decision inputs: position={position.symbol}, current={current_price}, "
            f"last={last_trade_price}, trend_1h={trend.direction_1h}, trend_24h={trend.direction_24h}"
        )
    return fire
