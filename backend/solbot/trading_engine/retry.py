"""
Bounded exponential-backoff retry for async network calls.

Every RPC, quote and swap-build call in the engine goes through
RetryExecutor.execute(). Backoff is pure exponential with no jitter:
initial_delay, 2x, 4x, ... between attempts. Sleeping uses asyncio so other
tasks (health checks, API requests) keep running while a call backs off.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from solbot.exceptions import AppError, RetryExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


def is_retryable(error: BaseException) -> bool:
    """Domain errors declare retryability; anything else is assumed transient."""
    if isinstance(error, AppError):
        return bool(error.retryable)
    return True


class RetryExecutor:
    """
    Runs an async operation up to max_attempts times.

    The executor does not judge idempotency: callers only wrap operations
    where a blind repeat is safe (reads, resubmission of identical signed
    bytes). Errors whose ``retryable`` flag is False are re-raised at once,
    since repeating a parse failure or a rejected request can't succeed.

    Usage:
        retry = RetryExecutor(max_attempts=3, initial_delay=0.5)
        quote = await retry.execute(lambda: client.get_quote(...), "jupiter quote")
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 0.5,
        sleep: Optional[SleepFunc] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self._sleep: SleepFunc = sleep or asyncio.sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str,
        max_attempts: Optional[int] = None,
        initial_delay: Optional[float] = None,
        per_attempt_timeout: Optional[float] = None,
    ) -> T:
        """
        Run operation with retries.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per call
            name: Operation name used in logs and in RetryExhausted
            max_attempts: Override the executor default
            initial_delay: Override the executor default (seconds)
            per_attempt_timeout: Seconds before an attempt counts as failed

        Returns:
            The operation's result

        Raises:
            RetryExhausted: every attempt failed
            AppError: a non-retryable domain error, raised unchanged
        """
        attempts_allowed = max_attempts if max_attempts is not None else self.max_attempts
        delay = initial_delay if initial_delay is not None else self.initial_delay
        last_error: Optional[BaseException] = None

        for attempt in range(attempts_allowed):
            try:
                if per_attempt_timeout is not None:
                    result = await asyncio.wait_for(operation(), timeout=per_attempt_timeout)
                else:
                    result = await operation()
            except asyncio.TimeoutError:
                last_error = asyncio.TimeoutError(f"{name} timed out after {per_attempt_timeout}s")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if not is_retryable(e):
                    logger.error(f"{name} failed with non-retryable error: {e}")
                    raise
                last_error = e
            else:
                if attempt > 0:
                    logger.debug(f"Successfully completed {name} on attempt {attempt + 1}")
                return result

            if attempt < attempts_allowed - 1:
                wait = delay * (2 ** attempt)
                logger.warning(
                    f"{name} error: {last_error} (attempt {attempt + 1}/{attempts_allowed}). "
                    f"Retrying in {wait:.2f}s..."
                )
                await self._sleep(wait)

        logger.error(f"{name} failed after {attempts_allowed} attempts: {last_error}")
        raise RetryExhausted(name, attempts_allowed, last_error)
