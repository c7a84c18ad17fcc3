"""
Router dependencies, overridden in main.py once the engine is built.
"""

from solbot.services.trade_repository import TradeRepository
from solbot.trading_engine.trading_cycle import TradingCycle


def get_trading_cycle() -> TradingCycle:
    """Get trading cycle - will be overridden in main.py"""
    raise NotImplementedError("Must override trading_cycle dependency")


def get_repository() -> TradeRepository:
    """Get trade repository - will be overridden in main.py"""
    raise NotImplementedError("Must override repository dependency")
