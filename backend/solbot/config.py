from decimal import Decimal
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Solana RPC
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    wallet_private_key: str = ""  # base58-encoded 64-byte keypair

    # Jupiter swap API
    jupiter_api_url: str = "https://lite-api.jup.ag/swap/v1"
    slippage_bps: int = 50
    compute_unit_price_micro_lamports: int = 1000

    # Token mints
    sol_mint: str = "So11111111111111111111111111111111111111112"
    usdc_mint: str = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

    # LINE push notifications
    line_channel_token: str = ""
    line_user_id: str = ""

    # Database
    database_url: str = "sqlite+aiosqlite:///./solbot.db"
    data_retention_days: int = 365

    # Server
    port: int = 8080
    log_level: str = "INFO"
    display_timezone: str = "Asia/Tokyo"

    # Trading Parameters
    trade_threshold: Decimal = Decimal("1.01")  # current/last ratio that fires a swap
    sol_fee_reserve: Decimal = Decimal("0.01")  # SOL kept back for network fees

    # Retry / timeouts
    retry_max_attempts: int = 3
    retry_initial_delay: float = 0.5  # seconds, doubled after each failed attempt
    submit_timeout_seconds: float = 60.0
    http_timeout_seconds: float = 30.0

    @field_validator("trade_threshold")
    @classmethod
    def threshold_positive(cls, v: Decimal) -> Decimal:
        """Reject thresholds that would fire on every cycle"""
        if v <= 0:
            raise ValueError("trade_threshold must be greater than zero")
        return v

    @field_validator("wallet_private_key")
    @classmethod
    def strip_key(cls, v: str) -> str:
        return v.strip()

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
