"""
Domain exceptions for the application.

The trading engine raises these instead of fastapi.HTTPException to avoid
coupling it to the web framework. A global exception handler in main.py
translates them into HTTP responses.

Every error carries a ``retryable`` flag read by the retry executor: blind
retry is only attempted for failures where another attempt can succeed.
"""

from typing import Optional


class AppError(Exception):
    """Base application error with an HTTP-equivalent status code."""

    retryable = False

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ConfigurationOrRequestError(AppError):
    """Provider rejected the request (4xx other than 429). Not retried."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message, status_code=status_code)


class TransientNetworkError(AppError):
    """Timeouts, connection resets and 5xx responses (503)."""

    retryable = True

    def __init__(self, message: str = "Upstream service unavailable", status_code: int = 503):
        super().__init__(message, status_code=status_code)


class RateLimitError(AppError):
    """Too many requests (429)."""

    retryable = True

    def __init__(self, message: str, retry_after: int = None):
        self.retry_after = retry_after
        super().__init__(message, status_code=429)


class QuoteUnavailable(AppError):
    """Quote endpoint answered with a non-success status.

    The provider status is kept so callers can tell client/config errors
    (4xx), rate limiting (429) and provider outages (5xx) apart.
    """

    def __init__(self, message: str, status_code: int = 503):
        super().__init__(message, status_code=status_code)

    @property
    def retryable(self) -> bool:
        return self.status_code == 429 or self.status_code >= 500

    @property
    def category(self) -> str:
        if self.status_code == 429:
            return "rate_limited"
        if 400 <= self.status_code < 500:
            return "client_error"
        return "provider_outage"


class QuoteMalformed(AppError):
    """Quote parsed but carries a zero or unparseable amount."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502)


class UnsupportedTransactionFormat(AppError):
    """Built transaction can't be decoded or downgraded to a legacy message."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502)


class StaleBlockhashError(AppError):
    """Fetched blockhash expires before the one the provider built against."""

    retryable = True

    def __init__(self, message: str):
        super().__init__(message, status_code=503)


class BalanceAnomaly(AppError):
    """Balance delta is zero or negative where a spend was expected."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500)


class InvalidTransition(AppError):
    """Trade action does not match the currently held asset."""

    def __init__(self, message: str):
        super().__init__(message, status_code=409)


class CycleInProgressError(AppError):
    """A trading cycle is already running for this wallet (409)."""

    def __init__(self, message: str = "Trading cycle already in progress"):
        super().__init__(message, status_code=409)


class InvalidPriceError(AppError):
    """Oracle price outside the accepted range."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502)


class RetryExhausted(AppError):
    """Operation failed on every allowed attempt."""

    def __init__(self, name: str, attempts: int, last_error: Optional[BaseException]):
        self.name = name
        self.attempts = attempts
        self.last_error = last_error
        status_code = getattr(last_error, "status_code", 503)
        super().__init__(
            f"{name} failed after {attempts} attempts: {last_error}",
            status_code=status_code,
        )


class TransactionFailed(AppError):
    """Transaction landed but the chain reported an execution error."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502)
