"""
Price oracle backed by Jupiter quotes.

A price is the quote's out/in ratio, each side scaled by its token's
smallest-unit decimals (SOL 9, USDC 6).
"""

import logging
from decimal import Decimal
from typing import Dict, Optional

from solbot.constants import (
    MAX_VALID_PRICE,
    MIN_VALID_PRICE,
    PRICE_SOURCE,
    SOL,
    TOKEN_DECIMALS,
    USDC,
)
from solbot.exceptions import InvalidPriceError, QuoteMalformed
from solbot.trading_engine.retry import RetryExecutor
from solbot.trading_engine.types import PriceSample, Quote, utc_now

logger = logging.getLogger(__name__)


def quote_to_price(quote: Quote, from_decimals: int, to_decimals: int) -> Decimal:
    """Convert a quote into units of output asset per one input asset."""
    if quote.in_amount <= 0:
        raise QuoteMalformed(f"Quote inAmount must be positive, got {quote.in_amount}")
    in_ui = Decimal(quote.in_amount) / (Decimal(10) ** from_decimals)
    out_ui = Decimal(quote.out_amount) / (Decimal(10) ** to_decimals)
    return out_ui / in_ui


def validate_price(price: Decimal) -> None:
    """Reject prices outside (0, 1_000_000]."""
    if price <= MIN_VALID_PRICE:
        raise InvalidPriceError("Invalid price: must be greater than zero")
    if price > MAX_VALID_PRICE:
        raise InvalidPriceError("Invalid price: exceeds maximum allowed value")


class PriceOracle:
    """
    Current exchange rate between two mints.

    Every quote fetch runs through the retry executor; quote reads are
    idempotent so blind retry is safe.
    """

    def __init__(
        self,
        jupiter_client,
        retry: RetryExecutor,
        mints: Dict[str, str],
        decimals: Optional[Dict[str, int]] = None,
    ):
        self.jupiter = jupiter_client
        self.retry = retry
        self.mints = mints
        self.decimals = decimals or TOKEN_DECIMALS

    async def fetch_quote(self, from_asset: str, to_asset: str, amount: int, slippage_bps: int = 0) -> Quote:
        """Quote for `amount` smallest units of from_asset, retried."""
        return await self.retry.execute(
            lambda: self.jupiter.get_quote(
                self.mints[from_asset], self.mints[to_asset], amount, slippage_bps
            ),
            f"quote {from_asset}->{to_asset}",
        )

    async def get_price(self, from_asset: str, to_asset: str, notional_amount: int) -> Decimal:
        """
        Price of one from_asset in to_asset, sampled at notional_amount.

        Args:
            from_asset: Token symbol (SOL, USDC)
            to_asset: Token symbol
            notional_amount: Amount of from_asset in smallest units

        Raises:
            QuoteUnavailable / QuoteMalformed / RetryExhausted
        """
        quote = await self.fetch_quote(from_asset, to_asset, notional_amount)
        return quote_to_price(quote, self.decimals[from_asset], self.decimals[to_asset])

    async def get_prices(self) -> PriceSample:
        """Sample both directions for one unit of each asset."""
        sol_price = await self.get_price(SOL, USDC, 10 ** self.decimals[SOL])
        usdc_price = await self.get_price(USDC, SOL, 10 ** self.decimals[USDC])

        validate_price(sol_price)
        validate_price(usdc_price)

        logger.info(f"Current prices - SOL/USDC: {sol_price}, USDC/SOL: {usdc_price}")
        return PriceSample(
            timestamp=utc_now(),
            base_in_quote=sol_price,
            quote_in_base=usdc_price,
            source=PRICE_SOURCE,
        )
