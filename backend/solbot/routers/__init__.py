"""
API Routers

- system_router: health checks and in-memory trading state
- trading_router: manual cycle trigger
- analytics_router: performance, price history and trading sessions
"""

from solbot.routers import analytics_router
from solbot.routers import system_router
from solbot.routers import trading_router

__all__ = [
    "analytics_router",
    "system_router",
    "trading_router",
]
