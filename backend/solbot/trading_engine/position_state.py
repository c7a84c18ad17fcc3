"""
Position state machine.

The only place allowed to change which asset the wallet holds. A position
change happens once per confirmed swap, as the last step of the cycle.
"""

import logging
from decimal import Decimal

from solbot.exceptions import InvalidTransition
from solbot.trading_engine.types import Position, TradeAction, TradingState

logger = logging.getLogger(__name__)

# Action that exits each held asset, and where it leads
TRANSITIONS = {
    Position.HOLDING_QUOTE: (TradeAction.BUY_BASE, Position.HOLDING_BASE),
    Position.HOLDING_BASE: (TradeAction.SELL_BASE, Position.HOLDING_QUOTE),
}


class PositionStateMachine:
    """Wraps a TradingState and guards its position transitions."""

    def __init__(self, state: TradingState):
        self.state = state

    @property
    def position(self) -> Position:
        return self.state.position

    def next_action(self) -> TradeAction:
        return TRANSITIONS[self.state.position][0]

    def target_position(self) -> Position:
        return TRANSITIONS[self.state.position][1]

    def apply_trade(self, action: TradeAction, price: Decimal) -> Position:
        """
        Commit a confirmed swap.

        Raises:
            InvalidTransition: action doesn't exit the held asset
        """
        expected, target = TRANSITIONS[self.state.position]
        if action != expected:
            raise InvalidTransition(
                f"Cannot {action.value} while holding {self.state.position.symbol}"
            )

        before = self.state.position
        self.state.position = target
        self.state.last_trade_price = price
        logger.info(f"Position {before.symbol} -> {target.symbol} @ {price}")
        return target
