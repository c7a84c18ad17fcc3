"""
Analytics routes

Read-only views over the persisted trading records.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from solbot.routers.dependencies import get_repository
from solbot.schemas import PerformanceResponse, PriceHistoryResponse, TradingSessionResponse
from solbot.services.trade_repository import TradeRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analytics"])


@router.get("/performance", response_model=PerformanceResponse)
async def get_performance(
    days: int = Query(30, ge=1, le=3650),
    repository: TradeRepository = Depends(get_repository),
):
    performance = await repository.get_trading_performance(days)
    return PerformanceResponse.from_performance(performance)


@router.get("/price-history", response_model=List[PriceHistoryResponse])
async def get_price_history(
    hours: int = Query(24, ge=1, le=24 * 365),
    repository: TradeRepository = Depends(get_repository),
):
    samples = await repository.get_price_history(hours)
    return [PriceHistoryResponse.from_sample(s) for s in samples]


@router.get("/trading-sessions", response_model=List[TradingSessionResponse])
async def get_trading_sessions(
    limit: int = Query(50, ge=1, le=1000),
    repository: TradeRepository = Depends(get_repository),
):
    sessions = await repository.get_recent_trading_sessions(limit)
    return [TradingSessionResponse.from_record(s) for s in sessions]
