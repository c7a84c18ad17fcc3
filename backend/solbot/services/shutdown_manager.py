"""
Graceful Shutdown Manager

Tracks swaps that are between quoting and confirmation so the process
doesn't exit with a signed transaction in the air.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


class ShutdownInProgress(RuntimeError):
    """Raised when a swap tries to start after shutdown was requested."""


class ShutdownManager:
    """
    Counts in-flight swaps and lets shutdown wait for them.

    Usage:
        async with shutdown_manager.swap_in_flight():
            result = await swap_executor.execute(action, balances)

        status = await shutdown_manager.prepare_shutdown(timeout=90)
    """

    def __init__(self):
        self._shutting_down = False
        self._in_flight_count = 0
        self._lock = asyncio.Lock()
        self._drained = asyncio.Event()
        self._shutdown_requested_at: Optional[datetime] = None

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def in_flight_count(self) -> int:
        return self._in_flight_count

    async def _enter(self):
        async with self._lock:
            if self._shutting_down:
                raise ShutdownInProgress("Cannot start a swap - shutdown in progress")
            self._in_flight_count += 1
            logger.debug(f"Swap started - in-flight count: {self._in_flight_count}")

    async def _exit(self):
        async with self._lock:
            self._in_flight_count = max(0, self._in_flight_count - 1)
            logger.debug(f"Swap finished - in-flight count: {self._in_flight_count}")
            if self._shutting_down and self._in_flight_count == 0:
                self._drained.set()

    class SwapInFlight:
        def __init__(self, manager: "ShutdownManager"):
            self.manager = manager

        async def __aenter__(self):
            await self.manager._enter()
            return self

        async def __aexit__(self, exc_type, exc_val, exc_tb):
            await self.manager._exit()
            return False

    def swap_in_flight(self) -> "SwapInFlight":
        return self.SwapInFlight(self)

    async def prepare_shutdown(self, timeout: float = 90.0) -> dict:
        """
        Refuse new swaps and wait for running ones.

        Args:
            timeout: Maximum seconds to wait; a submission can take a full
                confirmation timeout per attempt

        Returns:
            dict with ready, in_flight_count, waited_seconds, message
        """
        self._shutting_down = True
        self._shutdown_requested_at = datetime.now(timezone.utc)
        self._drained.clear()

        if self._in_flight_count == 0:
            logger.info("No in-flight swaps - ready for shutdown")
            return {
                "ready": True,
                "in_flight_count": 0,
                "waited_seconds": 0,
                "message": "No in-flight swaps - ready for shutdown",
            }

        logger.info(f"Waiting up to {timeout}s for {self._in_flight_count} in-flight swap(s)...")
        try:
            await asyncio.wait_for(self._drained.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Shutdown timeout after {timeout}s - {self._in_flight_count} swap(s) still in-flight"
            )
            return {
                "ready": False,
                "in_flight_count": self._in_flight_count,
                "waited_seconds": timeout,
                "message": f"Timeout: {self._in_flight_count} swap(s) still in-flight after {timeout}s",
            }

        waited = (datetime.now(timezone.utc) - self._shutdown_requested_at).total_seconds()
        logger.info(f"In-flight swaps completed after {waited:.1f}s - ready for shutdown")
        return {
            "ready": True,
            "in_flight_count": 0,
            "waited_seconds": waited,
            "message": f"All swaps completed after {waited:.1f}s - ready for shutdown",
        }

    def get_status(self) -> dict:
        return {
            "shutting_down": self._shutting_down,
            "in_flight_count": self._in_flight_count,
            "shutdown_requested_at": (
                self._shutdown_requested_at.isoformat() if self._shutdown_requested_at else None
            ),
        }


# Global singleton instance
shutdown_manager = ShutdownManager()
