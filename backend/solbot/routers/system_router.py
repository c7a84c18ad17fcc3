"""
System routes

- Root/health check (plain "OK" for uptime probes)
- Detailed status
- Current in-memory trading state
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from solbot.exceptions import AppError
from solbot.routers.dependencies import get_trading_cycle
from solbot.schemas import HealthResponse, TradingStateResponse
from solbot.trading_engine.trading_cycle import TradingCycle

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "OK"


@router.get("/health", response_class=PlainTextResponse)
async def health():
    return "OK"


@router.get("/api/status", response_model=HealthResponse)
async def status(cycle: TradingCycle = Depends(get_trading_cycle)):
    return HealthResponse(
        status="running",
        cycle_running=cycle.is_running,
        shutting_down=cycle.shutdown.is_shutting_down,
    )


@router.get("/api/state", response_model=TradingStateResponse)
async def trading_state(cycle: TradingCycle = Depends(get_trading_cycle)):
    """Trading state as held by the engine right now"""
    if cycle.state is None:
        raise AppError("Trading state not loaded yet", status_code=503)
    return TradingStateResponse.from_state(cycle.state)
