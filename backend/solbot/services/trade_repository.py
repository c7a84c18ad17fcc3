"""
Trade Repository

Durable storage for price samples, executed swaps and profit tracking.
Callers in the trading engine treat every write as best-effort: a failed
write is logged and never rolls back a swap that already landed on-chain.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from solbot.models import PriceHistory, ProfitTracking, TradingSession
from solbot.services import record_codec
from solbot.trading_engine.types import (
    PriceSample,
    ProfitRecord,
    TradeRecord,
    TradingPerformance,
)

logger = logging.getLogger(__name__)

# Enough history to find a sample at least 7 days old
TREND_HISTORY_WINDOW = timedelta(days=8)


def _utc(now: Optional[datetime]) -> datetime:
    return record_codec.to_utc(now) if now is not None else datetime.now(timezone.utc)


class TradeRepository:
    """
    Async repository over the trading tables.

    Usage:
        repo = TradeRepository(async_session_maker)
        await repo.store_price_history(sample)
        latest = await repo.get_latest_trading_session()
    """

    def __init__(self, session_maker: async_sessionmaker):
        self._session_maker = session_maker

    # =========================================================================
    # Writes
    # =========================================================================

    async def _add(self, row) -> None:
        async with self._session_maker() as db:
            db.add(row)
            await db.commit()

    async def store_price_history(self, sample: PriceSample, trading_session_id: Optional[str] = None) -> None:
        await self._add(record_codec.price_sample_to_row(sample, trading_session_id))
        logger.info(f"Successfully stored price history: {sample.id}")

    async def store_trading_session(self, record: TradeRecord) -> None:
        await self._add(record_codec.trade_record_to_row(record))
        logger.info(f"Successfully stored trading session: {record.id}")

    async def store_profit_tracking(self, record: ProfitRecord) -> None:
        await self._add(record_codec.profit_record_to_row(record))
        logger.info(f"Successfully stored profit tracking: {record.id}")

    # =========================================================================
    # Latest records (state rehydration)
    # =========================================================================

    async def _latest(self, db: AsyncSession, model):
        result = await db.execute(select(model).order_by(desc(model.timestamp)).limit(1))
        return result.scalars().first()

    async def get_latest_trading_session(self) -> Optional[TradeRecord]:
        async with self._session_maker() as db:
            row = await self._latest(db, TradingSession)
            return record_codec.trade_record_from_row(row) if row else None

    async def get_latest_profit_tracking(self) -> Optional[ProfitRecord]:
        async with self._session_maker() as db:
            row = await self._latest(db, ProfitTracking)
            return record_codec.profit_record_from_row(row) if row else None

    async def get_latest_price(self) -> Optional[PriceSample]:
        async with self._session_maker() as db:
            row = await self._latest(db, PriceHistory)
            return record_codec.price_sample_from_row(row) if row else None

    # =========================================================================
    # History queries
    # =========================================================================

    async def get_price_history(self, hours: int = 24, now: Optional[datetime] = None) -> List[PriceSample]:
        """Samples newer than `hours` ago, newest first."""
        cutoff = _utc(now) - timedelta(hours=hours)
        async with self._session_maker() as db:
            result = await db.execute(
                select(PriceHistory)
                .where(PriceHistory.timestamp > cutoff)
                .order_by(desc(PriceHistory.timestamp))
            )
            return [record_codec.price_sample_from_row(r) for r in result.scalars().all()]

    async def get_trend_history(self, now: Optional[datetime] = None) -> List[PriceSample]:
        """Bounded history window for trend analysis."""
        return await self.get_price_history(
            hours=int(TREND_HISTORY_WINDOW.total_seconds() // 3600), now=now
        )

    async def get_daily_high_low(self, now: Optional[datetime] = None) -> Optional[Tuple[Decimal, Decimal]]:
        """(high, low) SOL price over the last 24 hours, None without samples."""
        samples = await self.get_price_history(hours=24, now=now)
        if not samples:
            return None
        prices = [s.base_in_quote for s in samples]
        return max(prices), min(prices)

    async def get_recent_trading_sessions(self, limit: int = 50) -> List[TradeRecord]:
        async with self._session_maker() as db:
            result = await db.execute(
                select(TradingSession).order_by(desc(TradingSession.timestamp)).limit(limit)
            )
            return [record_codec.trade_record_from_row(r) for r in result.scalars().all()]

    async def get_trading_performance(self, days: int = 30, now: Optional[datetime] = None) -> TradingPerformance:
        """
        Summarize swaps executed in the last `days` days.

        Wins/losses count only trades with a defined profit; win rate is
        winning / total * 100.
        """
        cutoff = _utc(now) - timedelta(days=days)
        async with self._session_maker() as db:
            result = await db.execute(
                select(TradingSession).where(TradingSession.timestamp > cutoff)
            )
            sessions = [record_codec.trade_record_from_row(r) for r in result.scalars().all()]

        total_trades = len(sessions)
        winning_trades = 0
        losing_trades = 0
        total_profit_loss = Decimal("0")
        total_gas_fees = Decimal("0")

        for session in sessions:
            if session.profit_loss is not None:
                total_profit_loss += session.profit_loss
                if session.profit_loss > 0:
                    winning_trades += 1
                elif session.profit_loss < 0:
                    losing_trades += 1
            if session.gas_fee is not None:
                total_gas_fees += session.gas_fee

        win_rate = (
            Decimal(winning_trades) / Decimal(total_trades) * Decimal("100")
            if total_trades > 0
            else Decimal("0")
        )

        return TradingPerformance(
            total_trades=total_trades,
            winning_trades=winning_trades,
            losing_trades=losing_trades,
            total_profit_loss=total_profit_loss,
            total_gas_fees=total_gas_fees,
            win_rate=win_rate,
            period_days=days,
        )

    # =========================================================================
    # Maintenance
    # =========================================================================

    async def cleanup_old_data(self, retention_days: int, now: Optional[datetime] = None) -> Dict[str, int]:
        """Delete rows older than the retention window from every table."""
        cutoff = _utc(now) - timedelta(days=retention_days)
        logger.info(f"Cleaning up data older than {retention_days} days")

        deleted: Dict[str, int] = {}
        async with self._session_maker() as db:
            for model in (PriceHistory, TradingSession, ProfitTracking):
                result = await db.execute(delete(model).where(model.timestamp < cutoff))
                deleted[model.__tablename__] = result.rowcount or 0
            await db.commit()

        for table, count in deleted.items():
            logger.info(f"Deleted {count} old documents from {table}")
        return deleted
