"""
Human-readable cycle summaries for the notifier.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from solbot.trading_engine.types import Position

TIME_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


def local_time(now: datetime, tz_name: str) -> datetime:
    return now.astimezone(ZoneInfo(tz_name))


def format_time(now: datetime, tz_name: str) -> str:
    return local_time(now, tz_name).strftime(TIME_FORMAT)


def _amount(value: Optional[Decimal]) -> str:
    if value is None:
        return "n/a"
    return f"{value:.4f}"


def trade_executed(
    position: Position,
    profit: Optional[Decimal],
    cumulative_profit: Decimal,
    now: datetime,
    tz_name: str,
    signature: Optional[str] = None,
) -> str:
    lines = [
        "😎 Trade executed!",
        f"Position: {position.symbol}",
        f"Profit: {_amount(profit)} USDC",
        f"Total: {_amount(cumulative_profit)} USDC",
    ]
    if signature:
        lines.append(f"Tx: {signature}")
    lines.append(f"Time: {format_time(now, tz_name)}")
    return "\n".join(lines)


def no_trade(price: Decimal, last_trade_price: Optional[Decimal], now: datetime, tz_name: str) -> str:
    return (
        "😌 No trade this cycle\n"
        f"SOL price: {_amount(price)} USDC\n"
        f"Last trade: {_amount(last_trade_price)} USDC\n"
        f"Time: {format_time(now, tz_name)}"
    )


def trade_error(error: str, now: datetime, tz_name: str) -> str:
    return f"🥺 Trading error...\n{error}\nTime: {format_time(now, tz_name)}"


def daily_high_low(high: Decimal, low: Decimal, now: datetime, tz_name: str) -> str:
    return (
        "📊 SOL price (last 24h)\n"
        f"High: {_amount(high)} USDC\n"
        f"Low: {_amount(low)} USDC\n"
        f"Time: {format_time(now, tz_name)}"
    )


def daily_report_due(now: datetime, last_report_date: Optional[date], tz_name: str) -> bool:
    """True on the first cycle of a new local day."""
    today = local_time(now, tz_name).date()
    return last_report_date is None or today > last_report_date
