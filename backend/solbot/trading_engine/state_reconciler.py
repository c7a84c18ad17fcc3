"""
Rehydrates trading state from persisted records on process start.

Always completes: missing or unreadable records fall back to defaults so
the engine never starts with an unknown position.
"""

import logging
from typing import Optional

from solbot.trading_engine.types import (
    PriceSample,
    ProfitRecord,
    TradeRecord,
    TradingState,
)

logger = logging.getLogger(__name__)


def rehydrate(
    latest_trade: Optional[TradeRecord],
    latest_profit: Optional[ProfitRecord],
    latest_price: Optional[PriceSample] = None,
) -> TradingState:
    """
    Build a TradingState from the most recent records.

    Position and last trade price come from the latest trade, counters
    from the latest profit record. The price sample is only logged.
    """
    state = TradingState()

    if latest_trade is not None:
        state.position = latest_trade.position_after
        state.last_trade_price = latest_trade.price_at_trade
        logger.info(
            f"Loaded position from latest trading session: {state.position.symbol}, "
            f"price: {state.last_trade_price}"
        )

    if latest_profit is not None:
        state.cumulative_profit = latest_profit.cumulative_profit
        state.total_trades = latest_profit.total_trades
        state.winning_trades = latest_profit.winning_trades
        state.losing_trades = latest_profit.losing_trades
        logger.info(
            f"Loaded trading state: {state.total_trades} trades, {state.cumulative_profit} USDC profit"
        )

    if latest_price is not None:
        logger.info(f"Latest recorded SOL price: {latest_price.base_in_quote} ({latest_price.timestamp})")

    return state


async def load(repository) -> TradingState:
    """Read the latest records from the repository and rehydrate."""
    latest_trade = None
    latest_profit = None
    latest_price = None

    try:
        latest_trade = await repository.get_latest_trading_session()
    except Exception as e:
        logger.error(f"Failed to load latest trading session, defaulting position: {e}")

    try:
        latest_profit = await repository.get_latest_profit_tracking()
    except Exception as e:
        logger.error(f"Failed to load profit tracking, defaulting counters: {e}")

    try:
        latest_price = await repository.get_latest_price()
    except Exception as e:
        logger.error(f"Failed to load latest price: {e}")

    return rehydrate(latest_trade, latest_profit, latest_price)
