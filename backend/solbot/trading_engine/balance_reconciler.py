"""
On-chain balance reconciliation for executed swaps.

Quoted and realized amounts can diverge under slippage, so the realized
price is taken from actual balance deltas read before and after the swap.
Balance reads go through the retry executor.
"""

import logging
from decimal import Decimal
from typing import Optional

from solbot.exceptions import BalanceAnomaly
from solbot.trading_engine.retry import RetryExecutor
from solbot.trading_engine.types import BalanceMeasurement, BalanceSnapshot, TradeAction

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def measure(before: BalanceSnapshot, after: BalanceSnapshot, action: TradeAction) -> BalanceMeasurement:
    """
    Amounts moved by a swap and the realized price in USDC per SOL.

    SELL_BASE spends SOL and receives USDC; BUY_BASE spends USDC and
    receives SOL. When either leg is zero or negative (balance read
    anomaly) the realized price is reported as 0 with anomaly=True.
    """
    if action == TradeAction.SELL_BASE:
        moved_out = before.base - after.base
        moved_in = after.quote - before.quote
        base_leg, quote_leg = moved_out, moved_in
    else:
        moved_out = before.quote - after.quote
        moved_in = after.base - before.base
        base_leg, quote_leg = moved_in, moved_out

    anomaly = moved_out <= ZERO or base_leg <= ZERO or quote_leg <= ZERO
    if anomaly:
        error = BalanceAnomaly(
            f"{action.value}: non-positive balance delta (out={moved_out}, in={moved_in})"
        )
        logger.warning(f"Balance anomaly, realized price set to 0: {error}")
        realized = ZERO
    else:
        realized = quote_leg / base_leg

    return BalanceMeasurement(
        action=action,
        amount_moved_out=moved_out,
        amount_moved_in=moved_in,
        realized_price=realized,
        anomaly=anomaly,
    )


class BalanceReconciler:
    """Reads SOL/USDC balances for the wallet and measures swap deltas."""

    def __init__(self, rpc_client, retry: RetryExecutor, owner, usdc_mint):
        self.rpc = rpc_client
        self.retry = retry
        self.owner = owner
        self.usdc_mint = usdc_mint

    async def snapshot(self) -> BalanceSnapshot:
        sol = await self.retry.execute(
            lambda: self.rpc.get_sol_balance(self.owner), "get SOL balance"
        )
        usdc = await self.retry.execute(
            lambda: self.rpc.get_token_balance(self.owner, self.usdc_mint), "get USDC balance"
        )
        logger.info(f"Balances: {sol} SOL, {usdc} USDC")
        return BalanceSnapshot(base=sol, quote=usdc)

    def measure(self, before: BalanceSnapshot, after: BalanceSnapshot, action: TradeAction) -> BalanceMeasurement:
        return measure(before, after, action)

    async def transaction_fee(self, signature: str) -> Optional[Decimal]:
        """Fee paid by the swap transaction; None when it can't be read."""
        try:
            return await self.retry.execute(
                lambda: self.rpc.get_transaction_fee(signature), "get transaction fee"
            )
        except Exception as e:
            logger.warning(f"Could not read fee for {signature}: {e}")
            return None
