"""
Tests for backend/solbot/trading_engine/price_oracle.py
"""

from decimal import Decimal

import pytest
from unittest.mock import AsyncMock, MagicMock

from solbot.constants import SOL, TOKEN_MINTS, USDC
from solbot.exceptions import InvalidPriceError, QuoteMalformed, QuoteUnavailable, RetryExhausted
from solbot.trading_engine.price_oracle import PriceOracle, quote_to_price, validate_price
from solbot.trading_engine.types import Quote


def make_quote(in_amount: int, out_amount: int, input_mint: str = "in", output_mint: str = "out") -> Quote:
    return Quote(
        input_mint=input_mint,
        output_mint=output_mint,
        in_amount=in_amount,
        out_amount=out_amount,
        slippage_bps=0,
        price_impact_pct=Decimal("0"),
        route_labels=[],
        raw={},
    )


class TestQuoteToPrice:
    """Tests for quote_to_price()"""

    def test_sol_to_usdc(self):
        """Happy path: 1 SOL (1e9 lamports) -> 150.25 USDC (150_250_000)."""
        assert quote_to_price(make_quote(10 ** 9, 150_250_000), 9, 6) == Decimal("150.25")

    def test_usdc_to_sol(self):
        """Happy path: 1 USDC -> 0.005 SOL."""
        assert quote_to_price(make_quote(10 ** 6, 5_000_000), 6, 9) == Decimal("0.005")

    def test_zero_in_amount_rejected(self):
        """Failure: zero input never divides."""
        with pytest.raises(QuoteMalformed):
            quote_to_price(make_quote(0, 100), 9, 6)


class TestValidatePrice:
    """Tests for validate_price()"""

    def test_normal_price_passes(self):
        """Happy path: typical SOL price is accepted."""
        validate_price(Decimal("150"))

    def test_upper_bound_inclusive(self):
        """Edge case: exactly 1,000,000 is still valid."""
        validate_price(Decimal("1000000"))

    @pytest.mark.parametrize("price", ["0", "-1", "1000000.01"])
    def test_out_of_range_rejected(self, price):
        """Failure: zero, negative and absurd prices are rejected."""
        with pytest.raises(InvalidPriceError):
            validate_price(Decimal(price))


class TestPriceOracle:
    """Tests for PriceOracle"""

    @pytest.mark.asyncio
    async def test_get_prices_samples_both_directions(self, retry):
        """Happy path: one quote per direction, zero slippage, one unit each."""
        jupiter = MagicMock()
        jupiter.get_quote = AsyncMock(
            side_effect=[make_quote(10 ** 9, 150_000_000), make_quote(10 ** 6, 6_666_666)]
        )
        oracle = PriceOracle(jupiter, retry, dict(TOKEN_MINTS))

        sample = await oracle.get_prices()

        assert sample.base_in_quote == Decimal("150")
        assert sample.quote_in_base == Decimal("0.006666666")
        assert sample.source == "Jupiter"
        first, second = jupiter.get_quote.await_args_list
        assert first.args == (TOKEN_MINTS[SOL], TOKEN_MINTS[USDC], 10 ** 9, 0)
        assert second.args == (TOKEN_MINTS[USDC], TOKEN_MINTS[SOL], 10 ** 6, 0)

    @pytest.mark.asyncio
    async def test_get_price_retries_outage(self, retry, fake_sleep):
        """Happy path: a 503 quote is retried."""
        jupiter = MagicMock()
        jupiter.get_quote = AsyncMock(
            side_effect=[QuoteUnavailable("down", status_code=503), make_quote(10 ** 9, 100_000_000)]
        )
        oracle = PriceOracle(jupiter, retry, dict(TOKEN_MINTS))

        assert await oracle.get_price(SOL, USDC, 10 ** 9) == Decimal("100")
        assert fake_sleep.delays == [0.5]

    @pytest.mark.asyncio
    async def test_get_price_client_error_not_retried(self, retry):
        """Failure: a 400 quote surfaces at once."""
        jupiter = MagicMock()
        jupiter.get_quote = AsyncMock(side_effect=QuoteUnavailable("bad", status_code=400))
        oracle = PriceOracle(jupiter, retry, dict(TOKEN_MINTS))

        with pytest.raises(QuoteUnavailable):
            await oracle.get_price(SOL, USDC, 10 ** 9)
        assert jupiter.get_quote.await_count == 1

    @pytest.mark.asyncio
    async def test_get_price_exhausted(self, retry):
        """Failure: persistent outage raises RetryExhausted."""
        jupiter = MagicMock()
        jupiter.get_quote = AsyncMock(side_effect=QuoteUnavailable("down", status_code=502))
        oracle = PriceOracle(jupiter, retry, dict(TOKEN_MINTS))

        with pytest.raises(RetryExhausted):
            await oracle.get_price(SOL, USDC, 10 ** 9)

    @pytest.mark.asyncio
    async def test_get_prices_rejects_zero_price(self, retry):
        """Failure: a zero-output quote fails validation."""
        jupiter = MagicMock()
        jupiter.get_quote = AsyncMock(side_effect=[make_quote(10 ** 9, 0), make_quote(10 ** 6, 1)])
        oracle = PriceOracle(jupiter, retry, dict(TOKEN_MINTS))

        with pytest.raises(InvalidPriceError):
            await oracle.get_prices()
