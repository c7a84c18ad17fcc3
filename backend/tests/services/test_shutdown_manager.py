"""
Tests for backend/solbot/services/shutdown_manager.py

Tests the ShutdownManager class which tracks in-flight swaps
and provides graceful shutdown with configurable timeout.
"""

import asyncio

import pytest

from solbot.services.shutdown_manager import ShutdownInProgress, ShutdownManager


class TestShutdownManagerInit:
    """Tests for ShutdownManager initialization and properties."""

    def test_initial_state(self):
        """Happy path: new manager is idle and accepting swaps."""
        mgr = ShutdownManager()
        assert mgr.is_shutting_down is False
        assert mgr.in_flight_count == 0
        assert mgr.get_status() == {
            "shutting_down": False,
            "in_flight_count": 0,
            "shutdown_requested_at": None,
        }


class TestSwapInFlight:
    """Tests for the swap_in_flight() async context manager."""

    @pytest.mark.asyncio
    async def test_counts_while_inside(self):
        """Happy path: entering increments, exiting decrements."""
        mgr = ShutdownManager()
        async with mgr.swap_in_flight():
            assert mgr.in_flight_count == 1
            assert mgr.get_status()["in_flight_count"] == 1
        assert mgr.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_decrements_on_exception(self):
        """Edge case: count decrements even if the swap raises."""
        mgr = ShutdownManager()
        with pytest.raises(ValueError):
            async with mgr.swap_in_flight():
                raise ValueError("boom")
        assert mgr.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_rejects_during_shutdown(self):
        """Failure: no new swaps once shutdown started."""
        mgr = ShutdownManager()
        await mgr.prepare_shutdown(timeout=0.1)
        with pytest.raises(ShutdownInProgress, match="shutdown in progress"):
            async with mgr.swap_in_flight():
                pass  # should never reach here
        assert mgr.in_flight_count == 0


class TestPrepareShutdown:
    """Tests for prepare_shutdown()."""

    @pytest.mark.asyncio
    async def test_ready_immediately_when_idle(self):
        """Happy path: immediate shutdown when nothing in-flight."""
        mgr = ShutdownManager()
        result = await mgr.prepare_shutdown(timeout=1.0)
        assert result["ready"] is True
        assert result["waited_seconds"] == 0
        assert mgr.is_shutting_down is True
        assert mgr.get_status()["shutdown_requested_at"] is not None

    @pytest.mark.asyncio
    async def test_waits_for_in_flight_swap(self):
        """Happy path: waits for a running swap to finish."""
        mgr = ShutdownManager()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def swap():
            async with mgr.swap_in_flight():
                entered.set()
                await release.wait()

        task = asyncio.create_task(swap())
        await entered.wait()

        shutdown = asyncio.create_task(mgr.prepare_shutdown(timeout=5.0))
        await asyncio.sleep(0)
        release.set()
        result = await shutdown
        await task

        assert result["ready"] is True
        assert result["in_flight_count"] == 0

    @pytest.mark.asyncio
    async def test_timeout_with_stuck_swap(self):
        """Failure: timeout when an in-flight swap doesn't complete."""
        mgr = ShutdownManager()
        await mgr._enter()
        result = await mgr.prepare_shutdown(timeout=0.1)
        assert result["ready"] is False
        assert result["in_flight_count"] == 1
        assert "Timeout" in result["message"]
