"""
Profit accounting for settled trades.

Profit is always expressed in USDC:
- SELL_BASE: (realized - last_trade_price) * SOL sold
- BUY_BASE:  (last_trade_price - realized) * SOL bought

Counters keep winning_trades + losing_trades <= total_trades; a trade with
exactly zero profit counts only toward total_trades.
"""

import logging
from decimal import Decimal
from typing import Optional

from solbot.trading_engine.types import TradeAction, TradingState

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def compute_profit(
    last_trade_price: Decimal, realized_price: Decimal, amount_moved: Decimal, action: TradeAction
) -> Decimal:
    if action == TradeAction.SELL_BASE:
        return (realized_price - last_trade_price) * amount_moved
    return (last_trade_price - realized_price) * amount_moved


def settle(
    state: TradingState,
    realized_price: Decimal,
    amount_moved: Decimal,
    action: TradeAction = TradeAction.SELL_BASE,
) -> Optional[Decimal]:
    """
    Record a settled trade on the state.

    Args:
        state: Trading state, updated in place
        realized_price: USDC per SOL from balance deltas
        amount_moved: SOL leg of the swap
        action: Direction of the swap

    Returns:
        Profit in USDC, or None for the first trade (no baseline)
    """
    state.total_trades += 1

    if state.last_trade_price is None:
        logger.info("No previous trade price, profit undefined for this trade")
        return None

    profit = compute_profit(state.last_trade_price, realized_price, amount_moved, action)
    state.cumulative_profit += profit

    if profit > ZERO:
        state.winning_trades += 1
    elif profit < ZERO:
        state.losing_trades += 1

    logger.info(
        f"Settled {action.value}: profit={profit} USDC, cumulative={state.cumulative_profit} USDC "
        f"({state.winning_trades}W/{state.losing_trades}L of {state.total_trades})"
    )
    return profit


def roi_percentage(state: TradingState, capital: Decimal) -> Decimal:
    """Cumulative profit as a percentage of capital; 0 without capital."""
    if capital <= ZERO:
        return ZERO
    return state.cumulative_profit / capital * Decimal("100")
