"""Centralized Pydantic schemas for API responses"""

from .system import HealthResponse, TriggerResponse
from .trading import (
    PerformanceResponse,
    PriceHistoryResponse,
    TradingSessionResponse,
    TradingStateResponse,
)

__all__ = [
    # System schemas
    "HealthResponse",
    "TriggerResponse",
    # Trading schemas
    "PerformanceResponse",
    "PriceHistoryResponse",
    "TradingSessionResponse",
    "TradingStateResponse",
]
