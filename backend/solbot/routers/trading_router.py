"""
Trading routes

A scheduler (cron, Cloud Scheduler, ...) hits /trigger once per period.
The cycle runs in the background so the request returns immediately;
a trigger that overlaps a running cycle gets 409.
"""

import logging

from fastapi import APIRouter, Depends, status

from solbot.routers.dependencies import get_trading_cycle
from solbot.schemas import TriggerResponse
from solbot.trading_engine.trading_cycle import TradingCycle

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trading"])


@router.api_route(
    "/trigger",
    methods=["GET", "POST"],
    response_model=TriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def trigger(cycle: TradingCycle = Depends(get_trading_cycle)):
    cycle.start_background()
    logger.info("Trading cycle triggered")
    return TriggerResponse(status="started", message="Trading cycle started")
