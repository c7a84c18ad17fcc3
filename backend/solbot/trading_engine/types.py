"""
Domain types shared across the trading engine.

All amounts and prices are Decimal. Prices are quoted as USDC per SOL
unless a field name says otherwise.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from solbot.constants import SOL, USDC


class Position(str, Enum):
    """Which asset the wallet currently holds as its working balance."""
    HOLDING_BASE = "HOLDING_BASE"
    HOLDING_QUOTE = "HOLDING_QUOTE"

    @property
    def symbol(self) -> str:
        return SOL if self is Position.HOLDING_BASE else USDC

    @classmethod
    def from_symbol(cls, symbol: str) -> "Position":
        if symbol == SOL:
            return cls.HOLDING_BASE
        if symbol == USDC:
            return cls.HOLDING_QUOTE
        raise ValueError(f"Unknown position symbol: {symbol}")


class TradeAction(str, Enum):
    BUY_BASE = "BUY_SOL"
    SELL_BASE = "SELL_SOL"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class SwapState(str, Enum):
    QUOTING = "QUOTING"
    BUILDING = "BUILDING"
    SIGNING = "SIGNING"
    SUBMITTING = "SUBMITTING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class SwapFailureReason(str, Enum):
    INSUFFICIENT_BALANCE = "insufficient_balance"
    QUOTE_UNAVAILABLE = "quote_unavailable"
    QUOTE_MALFORMED = "quote_malformed"
    BUILD_FAILED = "build_failed"
    UNSUPPORTED_TRANSACTION_FORMAT = "unsupported_transaction_format"
    STALE_BLOCKHASH = "stale_blockhash"
    SIGNING_FAILED = "signing_failed"
    SUBMISSION_FAILED = "submission_failed"


class TransactionFormat(str, Enum):
    LEGACY = "legacy"
    VERSIONED = "versioned"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    return str(uuid.uuid4())


@dataclass
class TradingState:
    """Single-owner trading state threaded through every cycle."""
    position: Position = Position.HOLDING_QUOTE
    last_trade_price: Optional[Decimal] = None
    cumulative_profit: Decimal = Decimal("0")
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position.symbol,
            "last_trade_price": str(self.last_trade_price) if self.last_trade_price is not None else None,
            "cumulative_profit": str(self.cumulative_profit),
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
        }


@dataclass(frozen=True)
class PriceSample:
    timestamp: datetime
    base_in_quote: Decimal  # 1 SOL in USDC
    quote_in_base: Decimal  # 1 USDC in SOL
    source: str
    id: str = field(default_factory=new_record_id)


@dataclass(frozen=True)
class TrendSnapshot:
    price_1h_ago: Optional[Decimal] = None
    price_24h_ago: Optional[Decimal] = None
    price_7d_ago: Optional[Decimal] = None
    direction_1h: Optional[TrendDirection] = None
    direction_24h: Optional[TrendDirection] = None
    direction_7d: Optional[TrendDirection] = None
    volatility_1h: Optional[Decimal] = None
    volatility_24h: Optional[Decimal] = None


@dataclass(frozen=True)
class BalanceSnapshot:
    base: Decimal  # SOL
    quote: Decimal  # USDC


@dataclass(frozen=True)
class BalanceMeasurement:
    action: "TradeAction"
    amount_moved_out: Decimal
    amount_moved_in: Decimal
    realized_price: Decimal  # USDC per SOL
    anomaly: bool = False

    @property
    def base_amount(self) -> Decimal:
        """SOL side of the swap, whichever direction it moved"""
        if self.action == TradeAction.SELL_BASE:
            return self.amount_moved_out
        return self.amount_moved_in


@dataclass(frozen=True)
class TradeRecord:
    timestamp: datetime
    position_before: Position
    position_after: Position
    action: TradeAction
    base_balance_before: Decimal
    base_balance_after: Decimal
    quote_balance_before: Decimal
    quote_balance_after: Decimal
    price_at_trade: Decimal
    realized_slippage: Optional[Decimal] = None
    profit_loss: Optional[Decimal] = None
    cumulative_profit_after: Optional[Decimal] = None
    gas_fee: Optional[Decimal] = None
    signature: Optional[str] = None
    id: str = field(default_factory=new_record_id)


@dataclass(frozen=True)
class ProfitRecord:
    timestamp: datetime
    trade_id: str
    profit_loss: Decimal
    cumulative_profit: Decimal
    roi_percentage: Decimal
    total_trades: int
    winning_trades: int
    losing_trades: int
    id: str = field(default_factory=new_record_id)


@dataclass(frozen=True)
class TradingPerformance:
    total_trades: int
    winning_trades: int
    losing_trades: int
    total_profit_loss: Decimal
    total_gas_fees: Decimal
    win_rate: Decimal
    period_days: int


@dataclass(frozen=True)
class Quote:
    """Priced, time-bounded offer returned by the quote endpoint."""
    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int
    slippage_bps: int
    price_impact_pct: Decimal
    route_labels: List[str]
    raw: Dict[str, Any]  # sent back verbatim when building the swap


@dataclass
class SwapResult:
    state: SwapState
    trail: List[SwapState] = field(default_factory=list)
    signature: Optional[str] = None
    quote: Optional[Quote] = None
    quoted_price: Optional[Decimal] = None
    transaction_format: Optional[TransactionFormat] = None
    failure_reason: Optional[SwapFailureReason] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.state == SwapState.CONFIRMED
