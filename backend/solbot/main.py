import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from solbot.config import settings
from solbot.database import async_session_maker, init_db
from solbot.exceptions import AppError
from solbot.routers import analytics_router, system_router, trading_router
from solbot.routers.dependencies import get_repository, get_trading_cycle
from solbot.services.line_notifier import LineNotifier
from solbot.services.shutdown_manager import shutdown_manager
from solbot.services.trade_repository import TradeRepository
from solbot.trading_engine.trading_cycle import TradingCycle

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="SOL/USDC Swap Bot")

repository = TradeRepository(async_session_maker)
notifier: Optional[LineNotifier] = None
trading_cycle: Optional[TradingCycle] = None


def override_get_repository() -> TradeRepository:
    return repository


def override_get_trading_cycle() -> TradingCycle:
    if trading_cycle is None:
        raise AppError("Trading engine not initialized", status_code=503)
    return trading_cycle


app.dependency_overrides[get_repository] = override_get_repository
app.dependency_overrides[get_trading_cycle] = override_get_trading_cycle

app.include_router(system_router.router)
app.include_router(trading_router.router)
app.include_router(analytics_router.router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Startup/Shutdown events
@app.on_event("startup")
async def startup_event():
    global notifier, trading_cycle

    logger.info("Initializing database...")
    await init_db()

    notifier = LineNotifier(
        settings.line_channel_token,
        settings.line_user_id,
        timeout=settings.http_timeout_seconds,
    )
    if not notifier.enabled:
        logger.warning("LINE credentials not set, notifications disabled")

    trading_cycle = TradingCycle.from_settings(settings, repository, notifier, shutdown_manager)
    state = await trading_cycle.ensure_state()
    logger.info(f"Startup complete - position {state.position.symbol}, {state.total_trades} trades")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down - waiting for in-flight swaps...")
    shutdown_result = await shutdown_manager.prepare_shutdown(
        timeout=settings.submit_timeout_seconds * settings.retry_max_attempts
    )
    if shutdown_result["ready"]:
        logger.info(shutdown_result["message"])
    else:
        logger.warning(shutdown_result["message"])

    if trading_cycle:
        await trading_cycle.close()
    if notifier:
        await notifier.close()
    logger.info("Shutdown complete")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
