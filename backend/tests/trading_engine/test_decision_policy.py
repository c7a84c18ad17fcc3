"""
Tests for backend/solbot/trading_engine/decision_policy.py

The rule: trade only with a baseline price and current >= last * 1.01,
whichever asset is held.
"""

from decimal import Decimal

import pytest

from solbot.trading_engine.decision_policy import should_trade
from solbot.trading_engine.types import Position, TrendDirection, TrendSnapshot


class TestShouldTradeScenarios:
    """Worked scenarios for the 1% threshold"""

    def test_no_last_trade_price_never_trades(self):
        """Edge case: first cycle with no baseline, price 100."""
        assert should_trade(Position.HOLDING_QUOTE, Decimal("100"), None) is False

    def test_exactly_at_threshold_trades(self):
        """Happy path: last 100, current 101 fires (inclusive)."""
        assert should_trade(Position.HOLDING_QUOTE, Decimal("101"), Decimal("100")) is True

    def test_just_under_threshold_does_not_trade(self):
        """Edge case: last 100, current 100.99 stays put."""
        assert should_trade(Position.HOLDING_QUOTE, Decimal("100.99"), Decimal("100")) is False

    def test_downward_move_does_not_trade(self):
        """Edge case: a drop never fires."""
        assert should_trade(Position.HOLDING_BASE, Decimal("80"), Decimal("100")) is False

    def test_flat_price_does_not_trade(self):
        """Edge case: unchanged price never fires."""
        assert should_trade(Position.HOLDING_BASE, Decimal("100"), Decimal("100")) is False


class TestShouldTradeProperties:
    """Properties that hold across inputs"""

    @pytest.mark.parametrize("current", ["0.01", "1", "100", "1000000"])
    def test_never_fires_without_baseline(self, current):
        """Edge case: no baseline means no trade at any price."""
        for position in Position:
            assert should_trade(position, Decimal(current), None) is False

    @pytest.mark.parametrize(
        "last,current",
        [("100", "101"), ("100", "100.99"), ("150.5", "152.005"), ("20", "19"), ("3", "3.03")],
    )
    def test_symmetric_across_positions(self, last, current):
        """Happy path: the decision does not depend on the held asset."""
        expected = Decimal(current) / Decimal(last) >= Decimal("1.01")
        assert should_trade(Position.HOLDING_BASE, Decimal(current), Decimal(last)) is expected
        assert should_trade(Position.HOLDING_QUOTE, Decimal(current), Decimal(last)) is expected

    def test_trend_does_not_change_result(self):
        """Edge case: a strongly down trend is logged but ignored."""
        trend = TrendSnapshot(
            direction_1h=TrendDirection.DOWN,
            direction_24h=TrendDirection.DOWN,
            direction_7d=TrendDirection.DOWN,
        )
        assert should_trade(Position.HOLDING_QUOTE, Decimal("101"), Decimal("100"), trend) is True

    def test_custom_threshold(self):
        """Edge case: configured threshold replaces the 1% default."""
        assert should_trade(
            Position.HOLDING_QUOTE, Decimal("101"), Decimal("100"), threshold=Decimal("1.02")
        ) is False
