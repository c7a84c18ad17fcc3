"""
Trading record schemas.

Decimal amounts are serialized as strings so no precision is lost on the
wire.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from solbot.trading_engine.types import (
    PriceSample,
    TradeRecord,
    TradingPerformance,
    TradingState,
)


def _str(value) -> Optional[str]:
    return str(value) if value is not None else None


class PriceHistoryResponse(BaseModel):
    id: str
    timestamp: datetime
    sol_price_usdc: str
    usdc_price_sol: str
    data_source: str

    @classmethod
    def from_sample(cls, sample: PriceSample) -> "PriceHistoryResponse":
        return cls(
            id=sample.id,
            timestamp=sample.timestamp,
            sol_price_usdc=str(sample.base_in_quote),
            usdc_price_sol=str(sample.quote_in_base),
            data_source=sample.source,
        )


class TradingSessionResponse(BaseModel):
    id: str
    timestamp: datetime
    position_before: str
    position_after: str
    action: str
    sol_balance_before: str
    usdc_balance_before: str
    sol_balance_after: str
    usdc_balance_after: str
    price_at_trade: str
    slippage: Optional[str]
    gas_fee: Optional[str]
    profit_loss: Optional[str]
    cumulative_profit: Optional[str]
    signature: Optional[str]

    @classmethod
    def from_record(cls, record: TradeRecord) -> "TradingSessionResponse":
        return cls(
            id=record.id,
            timestamp=record.timestamp,
            position_before=record.position_before.symbol,
            position_after=record.position_after.symbol,
            action=record.action.value,
            sol_balance_before=str(record.base_balance_before),
            usdc_balance_before=str(record.quote_balance_before),
            sol_balance_after=str(record.base_balance_after),
            usdc_balance_after=str(record.quote_balance_after),
            price_at_trade=str(record.price_at_trade),
            slippage=_str(record.realized_slippage),
            gas_fee=_str(record.gas_fee),
            profit_loss=_str(record.profit_loss),
            cumulative_profit=_str(record.cumulative_profit_after),
            signature=record.signature,
        )


class PerformanceResponse(BaseModel):
    total_trades: int
    winning_trades: int
    losing_trades: int
    total_profit_loss: str
    total_gas_fees: str
    win_rate: str  # e.g. "66.67%"
    period_days: int

    @classmethod
    def from_performance(cls, performance: TradingPerformance) -> "PerformanceResponse":
        return cls(
            total_trades=performance.total_trades,
            winning_trades=performance.winning_trades,
            losing_trades=performance.losing_trades,
            total_profit_loss=str(performance.total_profit_loss),
            total_gas_fees=str(performance.total_gas_fees),
            win_rate=f"{performance.win_rate:.2f}%",
            period_days=performance.period_days,
        )


class TradingStateResponse(BaseModel):
    position: str
    last_trade_price: Optional[str]
    cumulative_profit: str
    total_trades: int
    winning_trades: int
    losing_trades: int

    @classmethod
    def from_state(cls, state: TradingState) -> "TradingStateResponse":
        return cls(**state.to_dict())
