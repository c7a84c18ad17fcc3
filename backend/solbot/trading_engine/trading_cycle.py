"""
Trading Cycle

One externally triggered decision cycle:

1. Rehydrate state on the first cycle, then delete records past the
   retention window
2. Sample the oracle price and store it
3. Read balances, analyze trend (advisory), decide; a no-trade cycle is
   still summarized to the notifier
4. Swap, reconcile balances, settle profit, commit the position change
5. Store the trade/profit records and notify

Only one cycle runs at a time; a trigger that arrives mid-cycle is rejected
with CycleInProgressError rather than queued. TradingState is only replaced
after a confirmed swap, so a failed cycle leaves it untouched.
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, Optional

from solders.pubkey import Pubkey

from solbot.constants import SOL, USDC
from solbot.exceptions import AppError, CycleInProgressError
from solbot.services import cycle_report
from solbot.services.shutdown_manager import ShutdownInProgress, ShutdownManager
from solbot.trading_engine import state_reconciler
from solbot.trading_engine.balance_reconciler import BalanceReconciler
from solbot.trading_engine.decision_policy import DEFAULT_THRESHOLD, should_trade
from solbot.trading_engine.position_state import PositionStateMachine
from solbot.trading_engine.price_oracle import PriceOracle
from solbot.trading_engine.profit_accountant import roi_percentage, settle
from solbot.trading_engine.retry import RetryExecutor
from solbot.trading_engine.swap_executor import SwapExecutor
from solbot.trading_engine.trend_analyzer import safe_analyze
from solbot.trading_engine.types import (
    BalanceMeasurement,
    BalanceSnapshot,
    PriceSample,
    ProfitRecord,
    SwapResult,
    TradeAction,
    TradeRecord,
    TradingState,
    TrendSnapshot,
    utc_now,
)

logger = logging.getLogger(__name__)


class CycleStatus(str, Enum):
    NO_TRADE = "no_trade"
    TRADED = "traded"
    SWAP_FAILED = "swap_failed"
    ERROR = "error"


@dataclass
class CycleOutcome:
    status: CycleStatus
    price: Optional[PriceSample] = None
    trend: Optional[TrendSnapshot] = None
    swap: Optional[SwapResult] = None
    measurement: Optional[BalanceMeasurement] = None
    trade: Optional[TradeRecord] = None
    profit: Optional[Decimal] = None
    error: Optional[str] = None


class TradingCycle:
    """
    Owns the TradingState and runs decision cycles against it.

    Usage:
        cycle = TradingCycle.from_settings(settings, repository, notifier)
        await cycle.ensure_state()
        outcome = await cycle.run_once()
    """

    def __init__(
        self,
        oracle: PriceOracle,
        swap_executor: SwapExecutor,
        balances: BalanceReconciler,
        repository,
        retry: RetryExecutor,
        notifier=None,
        shutdown: Optional[ShutdownManager] = None,
        threshold: Decimal = DEFAULT_THRESHOLD,
        retention_days: int = 365,
        tz_name: str = "Asia/Tokyo",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.oracle = oracle
        self.swap_executor = swap_executor
        self.balances = balances
        self.repository = repository
        self.retry = retry
        self.notifier = notifier
        self.shutdown = shutdown or ShutdownManager()
        self.threshold = threshold
        self.retention_days = retention_days
        self.tz_name = tz_name
        self.clock = clock

        self.state: Optional[TradingState] = None
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._last_report_date: Optional[date] = cycle_report.local_time(clock(), tz_name).date()
        self._closers = []

    @classmethod
    def from_settings(cls, settings, repository, notifier=None, shutdown=None) -> "TradingCycle":
        """Wire the engine to the live Jupiter and Solana endpoints."""
        from solbot.exchange_clients.jupiter_client import JupiterClient
        from solbot.exchange_clients.solana_client import SolanaRpcClient, SolanaWallet

        retry = RetryExecutor(
            max_attempts=settings.retry_max_attempts,
            initial_delay=settings.retry_initial_delay,
        )
        wallet = SolanaWallet(settings.wallet_private_key)
        jupiter = JupiterClient(
            settings.jupiter_api_url,
            timeout=settings.http_timeout_seconds,
            compute_unit_price_micro_lamports=settings.compute_unit_price_micro_lamports,
        )
        rpc = SolanaRpcClient(settings.solana_rpc_url, timeout=settings.http_timeout_seconds)
        oracle = PriceOracle(jupiter, retry, {SOL: settings.sol_mint, USDC: settings.usdc_mint})

        cycle = cls(
            oracle=oracle,
            swap_executor=SwapExecutor(
                oracle,
                jupiter,
                rpc,
                wallet,
                retry,
                slippage_bps=settings.slippage_bps,
                fee_reserve=settings.sol_fee_reserve,
                submit_timeout=settings.submit_timeout_seconds,
            ),
            balances=BalanceReconciler(rpc, retry, wallet.pubkey, Pubkey.from_string(settings.usdc_mint)),
            repository=repository,
            retry=retry,
            notifier=notifier,
            shutdown=shutdown,
            threshold=settings.trade_threshold,
            retention_days=settings.data_retention_days,
            tz_name=settings.display_timezone,
        )
        cycle._closers = [jupiter.close, rpc.close]
        logger.info(f"Trading cycle ready for wallet {wallet.pubkey}")
        return cycle

    async def close(self):
        for close in self._closers:
            try:
                await close()
            except Exception as e:
                logger.warning(f"Error closing client: {e}")

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def ensure_state(self) -> TradingState:
        """Rehydrate once, before the first decision."""
        if self.state is None:
            self.state = await state_reconciler.load(self.repository)
        return self.state

    async def run_once(self) -> CycleOutcome:
        """
        Run one cycle to completion.

        Raises:
            CycleInProgressError: another cycle holds the wallet
        """
        if self._lock.locked():
            raise CycleInProgressError()
        async with self._lock:
            outcome = await self._run()
            await self._maybe_send_daily_report()
            return outcome

    def start_background(self) -> asyncio.Task:
        """
        Schedule run_once() without waiting for it.

        Raises:
            CycleInProgressError: a cycle is running or already scheduled
        """
        if self.is_running or (self._task is not None and not self._task.done()):
            raise CycleInProgressError()
        self._task = asyncio.create_task(self._run_logged())
        return self._task

    async def _run_logged(self) -> Optional[CycleOutcome]:
        try:
            outcome = await self.run_once()
        except Exception as e:
            logger.exception(f"Trading cycle crashed: {e}")
            return None
        logger.info(f"Trading cycle finished: {outcome.status.value}")
        return outcome

    # =========================================================================
    # Cycle steps
    # =========================================================================

    async def _run(self) -> CycleOutcome:
        state = await self.ensure_state()
        await self._cleanup()

        try:
            sample = await self.oracle.get_prices()
        except AppError as e:
            return await self._fail(f"Failed to get current prices: {e}")

        await self._persist(lambda: self.repository.store_price_history(sample), "store price history")

        try:
            before = await self.balances.snapshot()
        except AppError as e:
            return await self._fail(f"Failed to read balances: {e}", price=sample)

        now = self.clock()
        trend = safe_analyze(await self._trend_history(now), now, sample.base_in_quote)

        current_price = sample.base_in_quote
        if not should_trade(state.position, current_price, state.last_trade_price, trend, self.threshold):
            logger.info("No trading opportunity found")
            await self._notify(cycle_report.no_trade(current_price, state.last_trade_price, now, self.tz_name))
            return CycleOutcome(status=CycleStatus.NO_TRADE, price=sample, trend=trend)

        action = PositionStateMachine(state).next_action()
        logger.info(f"Executing {action.value} at {current_price} (last trade {state.last_trade_price})")

        try:
            async with self.shutdown.swap_in_flight():
                result = await self.swap_executor.execute(action, before)
        except ShutdownInProgress as e:
            return await self._fail(str(e), price=sample, trend=trend)

        if not result.succeeded:
            reason = result.failure_reason.value if result.failure_reason else "unknown"
            return await self._fail(
                f"Swap {action.value} failed ({reason}): {result.error}",
                status=CycleStatus.SWAP_FAILED,
                price=sample,
                trend=trend,
                swap=result,
            )

        return await self._commit(state, action, sample, trend, result, before)

    async def _commit(
        self,
        state: TradingState,
        action: TradeAction,
        sample: PriceSample,
        trend: Optional[TrendSnapshot],
        result: SwapResult,
        before: BalanceSnapshot,
    ) -> CycleOutcome:
        """Account for a confirmed swap. The swap is irreversible from here on."""
        try:
            after = await self.balances.snapshot()
        except AppError as e:
            logger.error(f"Failed to read balances after swap {result.signature}: {e}")
            after = before

        measurement = self.balances.measure(before, after, action)
        gas_fee = await self.balances.transaction_fee(result.signature)

        scratch = dataclasses.replace(state)
        position_before = scratch.position
        if measurement.anomaly:
            logger.warning(f"Skipping profit settlement for {result.signature}: balance anomaly")
            scratch.total_trades += 1
            profit = None
        else:
            profit = settle(scratch, measurement.realized_price, measurement.base_amount, action)

        PositionStateMachine(scratch).apply_trade(action, sample.base_in_quote)
        self.state = scratch

        slippage = None
        if not measurement.anomaly and result.quoted_price is not None:
            slippage = measurement.realized_price - result.quoted_price

        now = self.clock()
        trade = TradeRecord(
            timestamp=now,
            position_before=position_before,
            position_after=scratch.position,
            action=action,
            base_balance_before=before.base,
            base_balance_after=after.base,
            quote_balance_before=before.quote,
            quote_balance_after=after.quote,
            price_at_trade=sample.base_in_quote,
            realized_slippage=slippage,
            profit_loss=profit,
            cumulative_profit_after=scratch.cumulative_profit,
            gas_fee=gas_fee,
            signature=result.signature,
        )
        await self._persist(lambda: self.repository.store_trading_session(trade), "store trading session")

        if profit is not None:
            capital = after.quote + after.base * sample.base_in_quote
            record = ProfitRecord(
                timestamp=now,
                trade_id=trade.id,
                profit_loss=profit,
                cumulative_profit=scratch.cumulative_profit,
                roi_percentage=roi_percentage(scratch, capital),
                total_trades=scratch.total_trades,
                winning_trades=scratch.winning_trades,
                losing_trades=scratch.losing_trades,
            )
            await self._persist(lambda: self.repository.store_profit_tracking(record), "store profit tracking")

        message = cycle_report.trade_executed(
            scratch.position, profit, scratch.cumulative_profit, now, self.tz_name, result.signature
        )
        logger.info(message)
        await self._notify(message)

        return CycleOutcome(
            status=CycleStatus.TRADED,
            price=sample,
            trend=trend,
            swap=result,
            measurement=measurement,
            trade=trade,
            profit=profit,
        )

    async def _fail(self, error: str, status: CycleStatus = CycleStatus.ERROR, **fields) -> CycleOutcome:
        logger.error(f"Trading error: {error}")
        await self._notify(cycle_report.trade_error(error, self.clock(), self.tz_name))
        return CycleOutcome(status=status, error=error, **fields)

    # =========================================================================
    # Best-effort collaborators
    # =========================================================================

    async def _persist(self, operation: Callable[[], Awaitable[None]], name: str):
        try:
            await self.retry.execute(operation, name)
        except Exception as e:
            logger.error(f"Failed to {name}: {e}")

    async def _trend_history(self, now: datetime):
        try:
            return await self.repository.get_trend_history(now)
        except Exception as e:
            logger.error(f"Failed to load price history: {e}")
            return []

    async def _cleanup(self):
        try:
            await self.repository.cleanup_old_data(self.retention_days, now=self.clock())
        except Exception as e:
            logger.error(f"Failed to cleanup old data: {e}")

    async def _notify(self, message: str):
        if self.notifier is None:
            return
        try:
            await self.notifier.send_message(message)
        except Exception as e:
            logger.error(f"Failed to send notification: {e}")

    async def _maybe_send_daily_report(self):
        now = self.clock()
        if not cycle_report.daily_report_due(now, self._last_report_date, self.tz_name):
            return
        self._last_report_date = cycle_report.local_time(now, self.tz_name).date()

        try:
            high_low = await self.repository.get_daily_high_low(now)
        except Exception as e:
            logger.error(f"Failed to send daily price update: {e}")
            return
        if high_low is None:
            return
        high, low = high_low
        await self._notify(cycle_report.daily_high_low(high, low, now, self.tz_name))
