"""
Database Models

SQLAlchemy ORM models for the trading bot's durable records:
- PriceHistory: one oracle sample per trading cycle
- TradingSession: one row per executed swap
- ProfitTracking: cumulative profit counters after each settled trade

Decimal amounts are stored as strings so no precision is lost in SQLite;
solbot.services.record_codec converts rows to and from domain types.
"""

from sqlalchemy import Column, DateTime, Integer, String

from solbot.database import Base


class PriceHistory(Base):
    __tablename__ = "price_history"

    id = Column(String, primary_key=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    sol_price_usdc = Column(String, nullable=False)
    usdc_price_sol = Column(String, nullable=False)
    data_source = Column(String, nullable=False, default="Jupiter")
    trading_session_id = Column(String, nullable=True)


class TradingSession(Base):
    """An executed swap (position change)."""
    __tablename__ = "trading_sessions"

    id = Column(String, primary_key=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    position_before = Column(String, nullable=False)  # "SOL" / "USDC"
    position_after = Column(String, nullable=False)
    action = Column(String, nullable=False)  # BUY_SOL / SELL_SOL

    # Balances
    sol_balance_before = Column(String, nullable=False)
    usdc_balance_before = Column(String, nullable=False)
    sol_balance_after = Column(String, nullable=False)
    usdc_balance_after = Column(String, nullable=False)

    # Execution
    price_at_trade = Column(String, nullable=False)
    slippage = Column(String, nullable=True)
    gas_fee = Column(String, nullable=True)
    signature = Column(String, nullable=True)

    # Profit
    profit_loss = Column(String, nullable=True)
    cumulative_profit = Column(String, nullable=True)


class ProfitTracking(Base):
    __tablename__ = "profit_tracking"

    id = Column(String, primary_key=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    trading_session_id = Column(String, nullable=False)
    profit_loss_usdc = Column(String, nullable=False)
    cumulative_profit_usdc = Column(String, nullable=False)
    roi_percentage = Column(String, nullable=False)
    total_trades = Column(Integer, nullable=False, default=0)
    winning_trades = Column(Integer, nullable=False, default=0)
    losing_trades = Column(Integer, nullable=False, default=0)
