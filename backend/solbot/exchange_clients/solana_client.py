"""
Solana Wallet and RPC Client

Architecture:
- solders for keys, messages and transaction signing
- solana-py AsyncClient for JSON-RPC (balances, blockhash, submission)
- USDC balance read from the wallet's associated token account

Balances are returned as Decimal UI amounts (SOL, USDC), never floats.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import (
    RPCException,
    TransactionExpiredBlockheightExceededError,
    UnconfirmedTxError,
)
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from solbot.constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SOL,
    TOKEN_PROGRAM_ID,
    from_smallest_unit,
)
from solbot.exceptions import (
    ConfigurationOrRequestError,
    TransactionFailed,
    TransientNetworkError,
)

logger = logging.getLogger(__name__)

ALREADY_PROCESSED_MARKERS = ("AlreadyProcessed", "already been processed")


@dataclass(frozen=True)
class LatestBlockhash:
    blockhash: Hash
    last_valid_block_height: int


class SolanaWallet:
    """
    Wallet backed by a base58-encoded 64-byte keypair.

    Policy: the key bytes are never logged.
    """

    def __init__(self, private_key_b58: str):
        if not private_key_b58:
            raise ConfigurationOrRequestError("WALLET_PRIVATE_KEY must be set")
        try:
            self._keypair = Keypair.from_base58_string(private_key_b58.strip())
        except Exception as e:
            raise ConfigurationOrRequestError(f"Failed to create keypair from private key: {type(e).__name__}")

    @property
    def pubkey(self) -> Pubkey:
        return self._keypair.pubkey()

    def sign_message(self, message: Message, blockhash: Hash) -> Transaction:
        """Sign a legacy message, stamping it with the given blockhash."""
        tx = Transaction.new_unsigned(message)
        tx.sign([self._keypair], blockhash)
        return tx


def associated_token_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
    """Derive the associated token account for owner/mint."""
    address, _bump = Pubkey.find_program_address(
        [bytes(owner), bytes(Pubkey.from_string(TOKEN_PROGRAM_ID)), bytes(mint)],
        Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID),
    )
    return address


def is_already_processed(error: BaseException) -> bool:
    text = str(error)
    return any(marker in text for marker in ALREADY_PROCESSED_MARKERS)


class SolanaRpcClient:
    """
    Chain RPC operations used by the trading engine.

    Usage:
        rpc = SolanaRpcClient("https://api.mainnet-beta.solana.com")
        sol = await rpc.get_sol_balance(wallet.pubkey)
        signature = await rpc.send_and_confirm(signed_tx)
    """

    def __init__(self, rpc_url: str, timeout: float = 30.0, client: Optional[AsyncClient] = None):
        self.rpc_url = rpc_url
        self._client = client or AsyncClient(rpc_url, commitment=Confirmed, timeout=timeout)
        logger.info(f"SolanaRpcClient initialized: rpc={rpc_url}")

    async def close(self):
        await self._client.close()

    async def get_sol_balance(self, owner: Pubkey) -> Decimal:
        try:
            resp = await self._client.get_balance(owner)
        except (httpx.HTTPError, OSError) as e:
            raise TransientNetworkError(f"Failed to get SOL balance: {e}")
        return from_smallest_unit(resp.value, SOL)

    async def get_token_balance(self, owner: Pubkey, mint: Pubkey) -> Decimal:
        """UI balance of the owner's associated token account (0 if it doesn't exist yet)."""
        token_account = associated_token_address(owner, mint)
        try:
            resp = await self._client.get_token_account_balance(token_account)
        except RPCException as e:
            if "could not find account" in str(e).lower():
                logger.info(f"Token account {token_account} not found, treating balance as 0")
                return Decimal("0")
            raise TransientNetworkError(f"Failed to get token balance: {e}")
        except (httpx.HTTPError, OSError) as e:
            raise TransientNetworkError(f"Failed to get token balance: {e}")

        ui = resp.value
        return Decimal(ui.amount) / (Decimal(10) ** ui.decimals)

    async def get_latest_blockhash(self) -> LatestBlockhash:
        try:
            resp = await self._client.get_latest_blockhash()
        except (httpx.HTTPError, OSError, RPCException) as e:
            raise TransientNetworkError(f"Failed to get recent blockhash: {e}")
        return LatestBlockhash(
            blockhash=resp.value.blockhash,
            last_valid_block_height=resp.value.last_valid_block_height,
        )

    async def send_and_confirm(self, tx: Transaction, last_valid_block_height: Optional[int] = None) -> str:
        """
        Submit a signed transaction and wait for confirmation.

        Resubmitting identical signed bytes can't execute twice, so an
        "already processed" rejection means an earlier attempt landed; it is
        confirmed and reported like a fresh submission.
        """
        signature: Signature = tx.signatures[0]
        try:
            resp = await self._client.send_raw_transaction(
                bytes(tx),
                opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed),
            )
            signature = resp.value
        except RPCException as e:
            if not is_already_processed(e):
                raise TransientNetworkError(f"Failed to send transaction: {e}")
            logger.info(f"Transaction {signature} already processed, confirming existing submission")
        except (httpx.HTTPError, OSError) as e:
            raise TransientNetworkError(f"Failed to send transaction: {e}")

        try:
            resp = await self._client.confirm_transaction(
                signature,
                commitment=Confirmed,
                last_valid_block_height=last_valid_block_height,
            )
        except (
            httpx.HTTPError,
            OSError,
            RPCException,
            UnconfirmedTxError,
            TransactionExpiredBlockheightExceededError,
        ) as e:
            raise TransientNetworkError(f"Failed to confirm transaction {signature}: {e}")

        statuses = getattr(resp, "value", None) or []
        if statuses and statuses[0] is not None and statuses[0].err is not None:
            raise TransactionFailed(f"Transaction {signature} failed on-chain: {statuses[0].err}")

        return str(signature)

    async def get_transaction_fee(self, signature: str) -> Optional[Decimal]:
        """Network fee paid by a confirmed transaction, in SOL (None if not found)."""
        try:
            resp = await self._client.get_transaction(
                Signature.from_string(signature),
                commitment=Confirmed,
                max_supported_transaction_version=0,
            )
        except (httpx.HTTPError, OSError, RPCException) as e:
            raise TransientNetworkError(f"Failed to get transaction {signature}: {e}")

        tx = resp.value
        if tx is None or tx.transaction.meta is None:
            return None
        return from_smallest_unit(tx.transaction.meta.fee, SOL)
