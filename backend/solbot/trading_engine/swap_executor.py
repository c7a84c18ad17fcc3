"""
Swap execution pipeline.

QUOTING -> BUILDING -> SIGNING -> SUBMITTING -> CONFIRMED, or FAILED from
any step with a tagged SwapFailureReason so callers can branch on the exact
failure instead of matching error strings.

- QUOTING: quote the full held balance (minus the SOL fee reserve)
- BUILDING: provider-built transaction, decoded once into a legacy message
- SIGNING: fresh blockhash, signed with the wallet key
- SUBMITTING: send and confirm with a long per-attempt timeout

Resubmitting identical signed bytes can't spend twice; an "already
processed" answer on a retry is handled by the RPC client as a success.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from solders.message import Message, MessageV0
from solders.transaction import Transaction, VersionedTransaction

from solbot.constants import SOL, TOKEN_DECIMALS, USDC, to_smallest_unit
from solbot.exceptions import (
    AppError,
    ConfigurationOrRequestError,
    QuoteMalformed,
    RetryExhausted,
    StaleBlockhashError,
    UnsupportedTransactionFormat,
)
from solbot.trading_engine.price_oracle import PriceOracle, quote_to_price
from solbot.trading_engine.retry import RetryExecutor
from solbot.trading_engine.types import (
    BalanceSnapshot,
    Quote,
    SwapFailureReason,
    SwapResult,
    SwapState,
    TradeAction,
    TransactionFormat,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltTransaction:
    """Provider transaction resolved to a legacy message at BUILDING."""
    format: TransactionFormat
    message: Message
    last_valid_block_height: int


class SwapFailed(Exception):
    """Internal: aborts the pipeline with a failure reason."""

    def __init__(self, reason: SwapFailureReason, error: BaseException):
        self.reason = reason
        self.error = error
        super().__init__(str(error))


def _root_error(error: BaseException) -> BaseException:
    if isinstance(error, RetryExhausted) and error.last_error is not None:
        return error.last_error
    return error


def downgrade_message(message: MessageV0) -> Message:
    """
    Rewrite a v0 message as a legacy message.

    Only possible when the message loads no accounts from address lookup
    tables; otherwise the account list is incomplete without them.
    """
    if len(message.address_table_lookups) > 0:
        raise UnsupportedTransactionFormat(
            f"Versioned transaction uses {len(message.address_table_lookups)} address lookup "
            f"table(s) and cannot be downgraded to legacy"
        )
    header = message.header
    return Message.new_with_compiled_instructions(
        header.num_required_signatures,
        header.num_readonly_signed_accounts,
        header.num_readonly_unsigned_accounts,
        list(message.account_keys),
        message.recent_blockhash,
        list(message.instructions),
    )


def decode_transaction(raw: bytes) -> Tuple[TransactionFormat, Message]:
    """
    Decode wire bytes, trying the versioned format first.

    Returns:
        (original wire format, legacy message to sign)

    Raises:
        UnsupportedTransactionFormat: neither format decodes, or a v0
            message can't be downgraded
    """
    try:
        versioned = VersionedTransaction.from_bytes(raw)
    except Exception as versioned_error:
        try:
            legacy = Transaction.from_bytes(raw)
        except Exception as legacy_error:
            raise UnsupportedTransactionFormat(
                f"Failed to deserialize transaction (versioned: {versioned_error}; legacy: {legacy_error})"
            )
        return TransactionFormat.LEGACY, legacy.message

    message = versioned.message
    if isinstance(message, MessageV0):
        return TransactionFormat.VERSIONED, downgrade_message(message)
    return TransactionFormat.LEGACY, message


def swap_direction(action: TradeAction) -> Tuple[str, str]:
    """(input symbol, output symbol) for an action"""
    if action == TradeAction.BUY_BASE:
        return USDC, SOL
    return SOL, USDC


def quoted_price(quote: Quote, action: TradeAction) -> Decimal:
    """Quote price expressed in USDC per SOL regardless of direction."""
    from_symbol, to_symbol = swap_direction(action)
    price = quote_to_price(quote, TOKEN_DECIMALS[from_symbol], TOKEN_DECIMALS[to_symbol])
    if action == TradeAction.BUY_BASE:
        if price <= 0:
            raise QuoteMalformed("Quote outAmount must be positive")
        return Decimal("1") / price
    return price


class SwapExecutor:
    """
    Executes one swap for the wallet's full working balance.

    Usage:
        executor = SwapExecutor(oracle, jupiter, rpc, wallet, retry)
        result = await executor.execute(TradeAction.SELL_BASE, balances)
        if result.succeeded:
            print(result.signature)
    """

    def __init__(
        self,
        oracle: PriceOracle,
        jupiter_client,
        rpc_client,
        wallet,
        retry: RetryExecutor,
        slippage_bps: int = 50,
        fee_reserve: Decimal = Decimal("0.01"),
        submit_timeout: float = 60.0,
    ):
        self.oracle = oracle
        self.jupiter = jupiter_client
        self.rpc = rpc_client
        self.wallet = wallet
        self.retry = retry
        self.slippage_bps = slippage_bps
        self.fee_reserve = fee_reserve
        self.submit_timeout = submit_timeout

    def swap_notional(self, action: TradeAction, balances: BalanceSnapshot) -> int:
        """Smallest-unit amount to swap: all USDC, or all SOL minus the fee reserve."""
        if action == TradeAction.BUY_BASE:
            return to_smallest_unit(balances.quote, USDC)
        return to_smallest_unit(balances.base - self.fee_reserve, SOL)

    async def execute(self, action: TradeAction, balances: BalanceSnapshot) -> SwapResult:
        result = SwapResult(state=SwapState.QUOTING, trail=[SwapState.QUOTING])
        try:
            amount = self.swap_notional(action, balances)
            if amount <= 0:
                raise SwapFailed(
                    SwapFailureReason.INSUFFICIENT_BALANCE,
                    ConfigurationOrRequestError(f"Insufficient balance for {action.value}: {balances}"),
                )

            quote = await self._quote(action, amount)
            result.quote = quote
            try:
                result.quoted_price = quoted_price(quote, action)
            except QuoteMalformed as e:
                raise SwapFailed(SwapFailureReason.QUOTE_MALFORMED, e)

            self._advance(result, SwapState.BUILDING)
            built = await self._build(quote)
            result.transaction_format = built.format

            self._advance(result, SwapState.SIGNING)
            tx, last_valid_block_height = await self._sign(built)

            self._advance(result, SwapState.SUBMITTING)
            signature = await self._submit(tx, last_valid_block_height)
        except SwapFailed as failure:
            logger.error(f"Swap {action.value} failed in {result.state.value}: {failure.error}")
            result.failure_reason = failure.reason
            result.error = failure.error
            self._advance(result, SwapState.FAILED)
            return result

        result.signature = signature
        self._advance(result, SwapState.CONFIRMED)
        logger.info(f"Swap executed successfully: {signature}")
        return result

    @staticmethod
    def _advance(result: SwapResult, state: SwapState):
        result.state = state
        result.trail.append(state)

    async def _quote(self, action: TradeAction, amount: int) -> Quote:
        from_symbol, to_symbol = swap_direction(action)
        try:
            return await self.oracle.fetch_quote(from_symbol, to_symbol, amount, self.slippage_bps)
        except AppError as e:
            reason = (
                SwapFailureReason.QUOTE_MALFORMED
                if isinstance(_root_error(e), QuoteMalformed)
                else SwapFailureReason.QUOTE_UNAVAILABLE
            )
            raise SwapFailed(reason, e)

    async def _build(self, quote: Quote) -> BuiltTransaction:
        try:
            payload = await self.retry.execute(
                lambda: self.jupiter.get_swap_transaction(str(self.wallet.pubkey), quote),
                "build swap transaction",
            )
        except AppError as e:
            raise SwapFailed(SwapFailureReason.BUILD_FAILED, e)

        try:
            raw = base64.b64decode(payload.swap_transaction, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SwapFailed(
                SwapFailureReason.UNSUPPORTED_TRANSACTION_FORMAT,
                UnsupportedTransactionFormat(f"Failed to decode transaction: {e}"),
            )

        try:
            tx_format, message = decode_transaction(raw)
        except UnsupportedTransactionFormat as e:
            raise SwapFailed(SwapFailureReason.UNSUPPORTED_TRANSACTION_FORMAT, e)

        fee_payer = message.account_keys[0] if len(message.account_keys) else None
        if fee_payer != self.wallet.pubkey:
            raise SwapFailed(
                SwapFailureReason.BUILD_FAILED,
                ConfigurationOrRequestError(f"Built transaction fee payer {fee_payer} is not the wallet"),
            )

        logger.info(f"Built {tx_format.value} swap transaction ({len(message.instructions)} instructions)")
        return BuiltTransaction(
            format=tx_format,
            message=message,
            last_valid_block_height=payload.last_valid_block_height,
        )

    async def _sign(self, built: BuiltTransaction) -> Tuple[Transaction, int]:
        async def fetch_blockhash():
            latest = await self.rpc.get_latest_blockhash()
            if latest.last_valid_block_height < built.last_valid_block_height:
                raise StaleBlockhashError(
                    f"Blockhash valid until {latest.last_valid_block_height} is older than "
                    f"build blockhash (valid until {built.last_valid_block_height})"
                )
            return latest

        try:
            latest = await self.retry.execute(fetch_blockhash, "get recent blockhash")
        except AppError as e:
            reason = (
                SwapFailureReason.STALE_BLOCKHASH
                if isinstance(_root_error(e), StaleBlockhashError)
                else SwapFailureReason.SIGNING_FAILED
            )
            raise SwapFailed(reason, e)

        try:
            tx = self.wallet.sign_message(built.message, latest.blockhash)
        except Exception as e:
            raise SwapFailed(SwapFailureReason.SIGNING_FAILED, e)
        return tx, latest.last_valid_block_height

    async def _submit(self, tx: Transaction, last_valid_block_height: Optional[int]) -> str:
        try:
            return await self.retry.execute(
                lambda: self.rpc.send_and_confirm(tx, last_valid_block_height),
                "send and confirm transaction",
                per_attempt_timeout=self.submit_timeout,
            )
        except AppError as e:
            raise SwapFailed(SwapFailureReason.SUBMISSION_FAILED, e)
