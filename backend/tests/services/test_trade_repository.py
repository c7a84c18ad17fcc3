"""
Tests for backend/solbot/services/trade_repository.py

Runs against an in-memory SQLite database.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from solbot.trading_engine.types import ProfitRecord, TradeAction


def _profit(timestamp, cumulative: str, total: int) -> ProfitRecord:
    return ProfitRecord(
        timestamp=timestamp,
        trade_id="t",
        profit_loss=Decimal("1"),
        cumulative_profit=Decimal(cumulative),
        roi_percentage=Decimal("0.1"),
        total_trades=total,
        winning_trades=total,
        losing_trades=0,
    )


class TestLatestRecords:
    """Tests for get_latest_* reads"""

    @pytest.mark.asyncio
    async def test_empty_database_returns_none(self, repository):
        """Edge case: nothing stored yet."""
        assert await repository.get_latest_trading_session() is None
        assert await repository.get_latest_profit_tracking() is None
        assert await repository.get_latest_price() is None

    @pytest.mark.asyncio
    async def test_latest_trade_by_timestamp(self, repository, make_trade, now):
        """Happy path: newest timestamp wins regardless of insert order."""
        await repository.store_trading_session(make_trade(timestamp=now, price="120"))
        await repository.store_trading_session(make_trade(timestamp=now - timedelta(hours=1), price="110"))

        latest = await repository.get_latest_trading_session()

        assert latest.price_at_trade == Decimal("120")

    @pytest.mark.asyncio
    async def test_trade_round_trip_preserves_decimals(self, repository, make_trade):
        """Happy path: Decimal precision survives storage."""
        trade = make_trade(
            price="151.123456789012",
            profit="-0.000001",
            gas_fee=Decimal("0.000005"),
            signature="abc",
        )
        await repository.store_trading_session(trade)

        loaded = await repository.get_latest_trading_session()

        assert loaded.price_at_trade == Decimal("151.123456789012")
        assert loaded.profit_loss == Decimal("-0.000001")
        assert loaded.gas_fee == Decimal("0.000005")
        assert loaded.realized_slippage is None
        assert loaded.action == TradeAction.SELL_BASE
        assert loaded.id == trade.id
        assert loaded.timestamp == trade.timestamp

    @pytest.mark.asyncio
    async def test_latest_profit_and_price(self, repository, make_sample, now):
        """Happy path: latest profit record and price sample."""
        await repository.store_profit_tracking(_profit(now - timedelta(hours=2), "5", 1))
        await repository.store_profit_tracking(_profit(now, "7", 2))
        await repository.store_price_history(make_sample("150", now))

        profit = await repository.get_latest_profit_tracking()
        price = await repository.get_latest_price()

        assert profit.cumulative_profit == Decimal("7")
        assert profit.total_trades == 2
        assert price.base_in_quote == Decimal("150")


class TestPriceHistory:
    """Tests for price history queries"""

    @pytest.mark.asyncio
    async def test_window_newest_first(self, repository, make_sample, now):
        """Happy path: only samples inside the window, newest first."""
        for hours, price in ((1, "101"), (5, "105"), (30, "130")):
            await repository.store_price_history(make_sample(price, now - timedelta(hours=hours)))

        samples = await repository.get_price_history(hours=24, now=now)

        assert [s.base_in_quote for s in samples] == [Decimal("101"), Decimal("105")]

    @pytest.mark.asyncio
    async def test_trend_history_reaches_past_seven_days(self, repository, make_sample, now):
        """Happy path: a sample slightly older than 7d is included."""
        await repository.store_price_history(make_sample("90", now - timedelta(days=7, hours=2)))
        await repository.store_price_history(make_sample("80", now - timedelta(days=10)))

        samples = await repository.get_trend_history(now)

        assert [s.base_in_quote for s in samples] == [Decimal("90")]

    @pytest.mark.asyncio
    async def test_daily_high_low(self, repository, make_sample, now):
        """Happy path: max/min over the last 24h."""
        for hours, price in ((1, "101"), (3, "99.5"), (12, "104.2"), (48, "200")):
            await repository.store_price_history(make_sample(price, now - timedelta(hours=hours)))

        assert await repository.get_daily_high_low(now) == (Decimal("104.2"), Decimal("99.5"))

    @pytest.mark.asyncio
    async def test_daily_high_low_empty(self, repository, now):
        """Edge case: no samples -> None."""
        assert await repository.get_daily_high_low(now) is None


class TestPerformance:
    """Tests for get_trading_performance()"""

    @pytest.mark.asyncio
    async def test_summary(self, repository, make_trade, now):
        """Happy path: wins/losses from defined profit, fees summed, win rate %."""
        await repository.store_trading_session(make_trade(timestamp=now, profit="10", gas_fee=Decimal("0.01")))
        await repository.store_trading_session(make_trade(timestamp=now, profit="-4", gas_fee=Decimal("0.02")))
        await repository.store_trading_session(make_trade(timestamp=now))
        await repository.store_trading_session(make_trade(timestamp=now - timedelta(days=40), profit="100"))

        perf = await repository.get_trading_performance(days=30, now=now)

        assert perf.total_trades == 3
        assert perf.winning_trades == 1
        assert perf.losing_trades == 1
        assert perf.total_profit_loss == Decimal("6")
        assert perf.total_gas_fees == Decimal("0.03")
        assert perf.win_rate == Decimal("1") / Decimal("3") * Decimal("100")
        assert perf.period_days == 30

    @pytest.mark.asyncio
    async def test_no_trades(self, repository, now):
        """Edge case: empty window has 0% win rate."""
        perf = await repository.get_trading_performance(days=30, now=now)
        assert perf.total_trades == 0
        assert perf.win_rate == Decimal("0")


class TestRecentSessionsAndCleanup:
    """Tests for get_recent_trading_sessions() and cleanup_old_data()"""

    @pytest.mark.asyncio
    async def test_recent_sessions_limit(self, repository, make_trade, now):
        """Happy path: newest first, limited."""
        for hours in range(5):
            await repository.store_trading_session(make_trade(timestamp=now - timedelta(hours=hours), price=str(100 + hours)))

        sessions = await repository.get_recent_trading_sessions(limit=2)

        assert [s.price_at_trade for s in sessions] == [Decimal("100"), Decimal("101")]

    @pytest.mark.asyncio
    async def test_cleanup_deletes_only_old_rows(self, repository, make_trade, make_sample, now):
        """Happy path: rows older than retention go, newer rows stay."""
        await repository.store_price_history(make_sample("100", now - timedelta(days=400)))
        await repository.store_price_history(make_sample("101", now - timedelta(days=1)))
        await repository.store_trading_session(make_trade(timestamp=now - timedelta(days=400)))
        await repository.store_profit_tracking(_profit(now - timedelta(days=400), "1", 1))

        deleted = await repository.cleanup_old_data(365, now=now)

        assert deleted == {"price_history": 1, "trading_sessions": 1, "profit_tracking": 1}
        assert (await repository.get_latest_price()).base_in_quote == Decimal("101")
        assert await repository.get_latest_trading_session() is None
