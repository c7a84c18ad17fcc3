"""
Jupiter Swap API Client

Thin async wrapper over the Jupiter quote/swap HTTP API.

- GET  /quote - priced route for inputMint -> outputMint
- POST /swap  - unsigned, base64-encoded transaction for a quote

HTTP failures are translated into domain errors so the retry executor can
tell transient outages (timeouts, 5xx, 429) from request errors (4xx).
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import httpx

from solbot.exceptions import (
    ConfigurationOrRequestError,
    QuoteMalformed,
    QuoteUnavailable,
    RateLimitError,
    TransientNetworkError,
)
from solbot.trading_engine.types import Quote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapTransactionPayload:
    """Provider-built swap transaction, still unsigned."""
    swap_transaction: str  # base64 wire bytes
    last_valid_block_height: int
    prioritization_fee_lamports: Optional[int] = None


def _parse_amount(value: Any, field_name: str) -> int:
    try:
        return int(str(value))
    except (TypeError, ValueError):
        raise QuoteMalformed(f"Quote field {field_name} is not an integer amount: {value!r}")


def parse_quote(data: Dict[str, Any]) -> Quote:
    """Build a Quote from the provider JSON, rejecting unusable amounts."""
    if not isinstance(data, dict):
        raise QuoteMalformed(f"Quote response is not an object: {type(data).__name__}")

    in_amount = _parse_amount(data.get("inAmount"), "inAmount")
    out_amount = _parse_amount(data.get("outAmount"), "outAmount")
    if in_amount <= 0:
        raise QuoteMalformed(f"Quote inAmount must be positive, got {in_amount}")

    try:
        price_impact = Decimal(str(data.get("priceImpactPct") or "0"))
    except InvalidOperation:
        price_impact = Decimal("0")

    labels = []
    for step in data.get("routePlan") or []:
        label = (step.get("swapInfo") or {}).get("label")
        if label:
            labels.append(label)

    return Quote(
        input_mint=data.get("inputMint", ""),
        output_mint=data.get("outputMint", ""),
        in_amount=in_amount,
        out_amount=out_amount,
        slippage_bps=int(data.get("slippageBps") or 0),
        price_impact_pct=price_impact,
        route_labels=labels,
        raw=data,
    )


class JupiterClient:
    """
    Async client for the Jupiter swap API.

    Usage:
        client = JupiterClient("https://lite-api.jup.ag/swap/v1")
        quote = await client.get_quote(SOL_MINT, USDC_MINT, 1_000_000_000, 50)
        payload = await client.get_swap_transaction(str(wallet.pubkey), quote)
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 30.0,
        compute_unit_price_micro_lamports: int = 1000,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._compute_unit_price = compute_unit_price_micro_lamports
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        logger.info(f"JupiterClient initialized (api={self._api_url})")

    async def close(self):
        """Close the underlying httpx client to release connections."""
        if self._client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request, translating transport failures.

        Raises:
            TransientNetworkError: timeout or connection failure
        """
        url = f"{self._api_url}{path}"
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            logger.error(f"Jupiter timeout: {method} {path}")
            raise TransientNetworkError(f"Jupiter {path} timeout")
        except (httpx.ConnectError, httpx.ReadError, httpx.RemoteProtocolError, OSError) as e:
            logger.error(f"Jupiter connection failed: {method} {path}: {e}")
            raise TransientNetworkError(f"Jupiter unavailable: {e}")

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
    ) -> Quote:
        """
        Fetch a quote for swapping `amount` smallest units of input_mint.

        Raises:
            QuoteUnavailable: non-success HTTP status (status code preserved)
            QuoteMalformed: response parsed but amounts are unusable
            TransientNetworkError: timeout or connection failure
        """
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
        }
        resp = await self._request("GET", "/quote", params=params)

        if resp.status_code >= 400:
            body = resp.text[:200]
            logger.error(f"Quote request failed ({resp.status_code}): {body}")
            raise QuoteUnavailable(
                f"Quote request failed ({resp.status_code}): {body}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise QuoteMalformed(f"Failed to parse quote response: {e}")

        quote = parse_quote(data)
        logger.info(
            f"Quote received: {quote.in_amount} {input_mint} -> {quote.out_amount} {output_mint}"
        )
        return quote

    async def get_swap_transaction(self, user_public_key: str, quote: Quote) -> SwapTransactionPayload:
        """
        Ask the provider to build the swap transaction for a quote.

        Raises:
            RateLimitError: 429
            ConfigurationOrRequestError: other 4xx, or a body without a transaction
            TransientNetworkError: 5xx, timeout or connection failure
        """
        body = {
            "quoteResponse": quote.raw,
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": True,
            "useSharedAccounts": True,
            "computeUnitPriceMicroLamports": self._compute_unit_price,
            "asLegacyTransaction": False,
            "useTokenLedger": False,
            "dynamicComputeUnitLimit": True,
            "skipUserAccountsRpcCalls": False,
        }
        resp = await self._request("POST", "/swap", json=body)

        status = resp.status_code
        if status >= 400:
            text = resp.text[:200]
            logger.error(f"Swap request failed ({status}): {text}")
            if status == 429:
                raise RateLimitError(f"Swap request rate limited: {text}")
            if status < 500:
                raise ConfigurationOrRequestError(f"Swap request rejected ({status}): {text}", status_code=status)
            raise TransientNetworkError(f"Swap provider error ({status}): {text}", status_code=status)

        try:
            data = resp.json()
        except ValueError as e:
            raise ConfigurationOrRequestError(f"Failed to parse swap response: {e}", status_code=502)

        swap_tx = data.get("swapTransaction")
        if not swap_tx:
            raise ConfigurationOrRequestError("Swap response missing swapTransaction", status_code=502)

        return SwapTransactionPayload(
            swap_transaction=swap_tx,
            last_valid_block_height=int(data.get("lastValidBlockHeight") or 0),
            prioritization_fee_lamports=data.get("prioritizationFeeLamports"),
        )
