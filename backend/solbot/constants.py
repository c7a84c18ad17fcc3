"""
Solana Constants

Token mints, decimal scales and program ids used by the swap pipeline.
"""

from decimal import ROUND_DOWN, Decimal

# Token symbols
SOL = "SOL"
USDC = "USDC"

# Mainnet mints (overridable via settings)
TOKEN_MINTS = {
    SOL: "So11111111111111111111111111111111111111112",  # Wrapped SOL
    USDC: "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",  # USD Coin
}

# Smallest-unit decimal scale per token
TOKEN_DECIMALS = {
    SOL: 9,  # lamports
    USDC: 6,
}

# SPL programs (for associated token account derivation)
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxuXU1S5Ek8SsYvWdWi6Vq8RCqYCQWHz"

# Oracle sanity bounds
MIN_VALID_PRICE = Decimal("0")
MAX_VALID_PRICE = Decimal("1000000")

# Source tag written with every price sample
PRICE_SOURCE = "Jupiter"


def to_smallest_unit(amount: Decimal, symbol: str) -> int:
    """Convert a UI amount to integer base units, rounding down"""
    scaled = amount * (Decimal(10) ** TOKEN_DECIMALS[symbol])
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_smallest_unit(amount: int, symbol: str) -> Decimal:
    """Convert integer base units to a UI amount"""
    return Decimal(amount) / (Decimal(10) ** TOKEN_DECIMALS[symbol])
