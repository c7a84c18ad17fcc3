"""
Shared test fixtures for solbot backend tests.

Provides reusable fixtures for:
- Async database engine/session maker (in-memory SQLite)
- Trade repository bound to the in-memory database
- Sample domain records
- A retry executor that records its sleeps instead of waiting
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from solbot.trading_engine.retry import RetryExecutor
from solbot.trading_engine.types import (
    Position,
    PriceSample,
    TradeAction,
    TradeRecord,
)

# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def async_engine():
    """Create an in-memory async SQLite engine for testing."""
    from solbot.database import Base
    from solbot import models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_maker(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def repository(session_maker):
    from solbot.services.trade_repository import TradeRepository

    return TradeRepository(session_maker)


# ---------------------------------------------------------------------------
# Retry executor with a fake clock
# ---------------------------------------------------------------------------


class RecordingSleep:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float):
        self.delays.append(seconds)


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def retry(fake_sleep):
    return RetryExecutor(max_attempts=3, initial_delay=0.5, sleep=fake_sleep)


# ---------------------------------------------------------------------------
# Sample records
# ---------------------------------------------------------------------------


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_sample():
    def _make(price: str, timestamp: datetime = NOW, **kwargs) -> PriceSample:
        price_dec = Decimal(price)
        return PriceSample(
            timestamp=timestamp,
            base_in_quote=price_dec,
            quote_in_base=Decimal("1") / price_dec,
            source="Jupiter",
            **kwargs,
        )

    return _make


@pytest.fixture
def make_trade():
    def _make(
        timestamp: datetime = NOW,
        action: TradeAction = TradeAction.SELL_BASE,
        price: str = "100",
        profit: str = None,
        **kwargs,
    ) -> TradeRecord:
        selling = action == TradeAction.SELL_BASE
        defaults = dict(
            timestamp=timestamp,
            position_before=Position.HOLDING_BASE if selling else Position.HOLDING_QUOTE,
            position_after=Position.HOLDING_QUOTE if selling else Position.HOLDING_BASE,
            action=action,
            base_balance_before=Decimal("10") if selling else Decimal("0"),
            base_balance_after=Decimal("0") if selling else Decimal("10"),
            quote_balance_before=Decimal("0") if selling else Decimal("1000"),
            quote_balance_after=Decimal("1000") if selling else Decimal("0"),
            price_at_trade=Decimal(price),
            profit_loss=Decimal(profit) if profit is not None else None,
        )
        defaults.update(kwargs)
        return TradeRecord(**defaults)

    return _make
