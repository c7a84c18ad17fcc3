"""
Codec between ORM rows and trading engine record types.

The engine only sees typed dataclasses; string-encoded decimals and
position symbols stay on this side of the persistence boundary.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from solbot.models import PriceHistory, ProfitTracking, TradingSession
from solbot.trading_engine.types import (
    Position,
    PriceSample,
    ProfitRecord,
    TradeAction,
    TradeRecord,
)

logger = logging.getLogger(__name__)


def encode_decimal(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


def decode_decimal(value: Optional[str]) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(value)


def to_utc(ts: datetime) -> datetime:
    """SQLite drops tzinfo; every stored timestamp is UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def decode_position(symbol: str) -> Position:
    try:
        return Position.from_symbol(symbol)
    except ValueError:
        logger.warning(f"Unknown position '{symbol}' in trading session, defaulting to USDC")
        return Position.HOLDING_QUOTE


# =============================================================================
# Price history
# =============================================================================


def price_sample_to_row(sample: PriceSample, trading_session_id: Optional[str] = None) -> PriceHistory:
    return PriceHistory(
        id=sample.id,
        timestamp=to_utc(sample.timestamp),
        sol_price_usdc=encode_decimal(sample.base_in_quote),
        usdc_price_sol=encode_decimal(sample.quote_in_base),
        data_source=sample.source,
        trading_session_id=trading_session_id,
    )


def price_sample_from_row(row: PriceHistory) -> PriceSample:
    return PriceSample(
        id=row.id,
        timestamp=to_utc(row.timestamp),
        base_in_quote=Decimal(row.sol_price_usdc),
        quote_in_base=Decimal(row.usdc_price_sol),
        source=row.data_source,
    )


# =============================================================================
# Trading sessions
# =============================================================================


def trade_record_to_row(record: TradeRecord) -> TradingSession:
    return TradingSession(
        id=record.id,
        timestamp=to_utc(record.timestamp),
        position_before=record.position_before.symbol,
        position_after=record.position_after.symbol,
        action=record.action.value,
        sol_balance_before=encode_decimal(record.base_balance_before),
        usdc_balance_before=encode_decimal(record.quote_balance_before),
        sol_balance_after=encode_decimal(record.base_balance_after),
        usdc_balance_after=encode_decimal(record.quote_balance_after),
        price_at_trade=encode_decimal(record.price_at_trade),
        slippage=encode_decimal(record.realized_slippage),
        gas_fee=encode_decimal(record.gas_fee),
        signature=record.signature,
        profit_loss=encode_decimal(record.profit_loss),
        cumulative_profit=encode_decimal(record.cumulative_profit_after),
    )


def trade_record_from_row(row: TradingSession) -> TradeRecord:
    return TradeRecord(
        id=row.id,
        timestamp=to_utc(row.timestamp),
        position_before=decode_position(row.position_before),
        position_after=decode_position(row.position_after),
        action=TradeAction(row.action),
        base_balance_before=Decimal(row.sol_balance_before),
        base_balance_after=Decimal(row.sol_balance_after),
        quote_balance_before=Decimal(row.usdc_balance_before),
        quote_balance_after=Decimal(row.usdc_balance_after),
        price_at_trade=Decimal(row.price_at_trade),
        realized_slippage=decode_decimal(row.slippage),
        profit_loss=decode_decimal(row.profit_loss),
        cumulative_profit_after=decode_decimal(row.cumulative_profit),
        gas_fee=decode_decimal(row.gas_fee),
        signature=row.signature,
    )


# =============================================================================
# Profit tracking
# =============================================================================


def profit_record_to_row(record: ProfitRecord) -> ProfitTracking:
    return ProfitTracking(
        id=record.id,
        timestamp=to_utc(record.timestamp),
        trading_session_id=record.trade_id,
        profit_loss_usdc=encode_decimal(record.profit_loss),
        cumulative_profit_usdc=encode_decimal(record.cumulative_profit),
        roi_percentage=encode_decimal(record.roi_percentage),
        total_trades=record.total_trades,
        winning_trades=record.winning_trades,
        losing_trades=record.losing_trades,
    )


def profit_record_from_row(row: ProfitTracking) -> ProfitRecord:
    return ProfitRecord(
        id=row.id,
        timestamp=to_utc(row.timestamp),
        trade_id=row.trading_session_id,
        profit_loss=Decimal(row.profit_loss_usdc),
        cumulative_profit=Decimal(row.cumulative_profit_usdc),
        roi_percentage=Decimal(row.roi_percentage),
        total_trades=row.total_trades,
        winning_trades=row.winning_trades,
        losing_trades=row.losing_trades,
    )
