"""
Tests for backend/solbot/trading_engine/trend_analyzer.py
"""

from datetime import timedelta
from decimal import Decimal

from solbot.trading_engine.trend_analyzer import (
    analyze,
    population_variance,
    price_at,
    safe_analyze,
)
from solbot.trading_engine.types import TrendDirection


class TestAnalyze:
    """Tests for analyze()"""

    def test_empty_history(self, now):
        """Edge case: no samples gives absent prices/directions and zero volatility."""
        trend = analyze([], now, Decimal("100"))
        assert trend.price_1h_ago is None
        assert trend.price_24h_ago is None
        assert trend.price_7d_ago is None
        assert trend.direction_1h is None
        assert trend.direction_24h is None
        assert trend.direction_7d is None
        assert trend.volatility_1h == Decimal("0")
        assert trend.volatility_24h == Decimal("0")

    def test_directions_per_horizon(self, now, make_sample):
        """Happy path: up vs 1h, down vs 24h, stable vs 7d."""
        history = [
            make_sample("90", now - timedelta(hours=1)),
            make_sample("110", now - timedelta(hours=24)),
            make_sample("100", now - timedelta(days=7)),
        ]
        trend = analyze(history, now, Decimal("100"))
        assert trend.price_1h_ago == Decimal("90")
        assert trend.direction_1h == TrendDirection.UP
        assert trend.price_24h_ago == Decimal("110")
        assert trend.direction_24h == TrendDirection.DOWN
        assert trend.price_7d_ago == Decimal("100")
        assert trend.direction_7d == TrendDirection.STABLE

    def test_uses_most_recent_sample_at_or_before_cutoff(self, now, make_sample):
        """Edge case: the newest sample not after now-1h wins, regardless of order."""
        history = [
            make_sample("95", now - timedelta(hours=3)),
            make_sample("99", now - timedelta(minutes=30)),
            make_sample("97", now - timedelta(hours=1, minutes=5)),
        ]
        assert price_at(history, now - timedelta(hours=1)) == Decimal("97")

    def test_horizon_without_old_sample_absent(self, now, make_sample):
        """Edge case: only recent samples leaves 7d empty."""
        history = [make_sample("100", now - timedelta(hours=2))]
        trend = analyze(history, now, Decimal("101"))
        assert trend.direction_1h == TrendDirection.UP
        assert trend.price_7d_ago is None
        assert trend.direction_7d is None

    def test_volatility_is_population_variance_of_window(self, now, make_sample):
        """Happy path: 1h window holds 98/100/102 -> variance 8/3."""
        history = [
            make_sample("98", now - timedelta(minutes=50)),
            make_sample("100", now - timedelta(minutes=30)),
            make_sample("102", now),
            make_sample("500", now - timedelta(hours=2)),
        ]
        trend = analyze(history, now, Decimal("102"))
        assert trend.volatility_1h == Decimal("8") / Decimal("3")
        assert trend.volatility_24h > trend.volatility_1h


class TestPopulationVariance:
    """Tests for population_variance()"""

    def test_single_sample_zero(self):
        """Edge case: fewer than two samples is 0."""
        assert population_variance([Decimal("5")]) == Decimal("0")

    def test_known_variance(self):
        """Happy path: [2, 4, 4, 4, 5, 5, 7, 9] has variance 4."""
        prices = [Decimal(p) for p in (2, 4, 4, 4, 5, 5, 7, 9)]
        assert population_variance(prices) == Decimal("4")


class TestSafeAnalyze:
    """Tests for safe_analyze()"""

    def test_failure_returns_none(self, now):
        """Failure: a broken history degrades to None instead of raising."""
        assert safe_analyze([object()], now, Decimal("100")) is None

    def test_success_passes_through(self, now, make_sample):
        """Happy path: returns the snapshot."""
        trend = safe_analyze([make_sample("90", now - timedelta(hours=2))], now, Decimal("100"))
        assert trend.direction_1h == TrendDirection.UP
