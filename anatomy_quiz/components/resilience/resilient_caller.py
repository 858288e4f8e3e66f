"""
Retry wrapper for Gemini calls.

Transient failures (rate limit, overload, quota) are retried with exponential
backoff; anything else is raised on the first attempt. When the retries run
out the last error is rewritten into a user-facing terminal error.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from anatomy_quiz.entities.errors import (
    ErrorKind,
    QuotaExceededError,
    RetriesExhaustedError,
    ServiceError,
    ServiceOverloadedError,
    TRANSIENT_MESSAGE_MARKERS,
    TRANSIENT_STATUS_CODES,
)

T = TypeVar("T")

QUOTA_MESSAGE_MARKERS = ("quota", "resource_exhausted")

QUOTA_EXCEEDED_MESSAGE = (
    "Đã hết hạn mức sử dụng AI (Quota Exceeded). "
    "Vui lòng kiểm tra gói cước hoặc thử lại vào ngày mai."
)
SERVICE_OVERLOADED_MESSAGE = "Hệ thống AI đang quá tải. Vui lòng thử lại sau vài giây."


def _status_code(error: BaseException) -> int | None:
    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def classify_error(error: BaseException) -> ErrorKind:
    """
    Decide whether a failed call is worth retrying.

    ServiceError carries its own kind; other exceptions are classified by
    status code first and by message markers as a fallback.
    """
    if isinstance(error, ServiceError):
        return error.kind

    if _status_code(error) in TRANSIENT_STATUS_CODES:
        return ErrorKind.TRANSIENT

    message = str(error).lower()
    if any(marker in message for marker in TRANSIENT_MESSAGE_MARKERS):
        return ErrorKind.TRANSIENT

    return ErrorKind.FATAL


def is_transient(error: BaseException) -> bool:
    return classify_error(error) is ErrorKind.TRANSIENT


def is_quota_error(error: BaseException | None) -> bool:
    message = str(error or "").lower()
    return any(marker in message for marker in QUOTA_MESSAGE_MARKERS)


class ResilientCaller:
    """Runs async callables with retry-on-overload semantics."""

    def __init__(
        self,
        logger: logging.Logger,
        max_retries: int = 3,
        initial_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            logger: Logger instance
            max_retries: Default number of retries after the first attempt
            initial_delay: Default delay in seconds before the first retry
            sleep: Awaitable sleep used between attempts (injectable for tests)
        """
        self.logger = logger
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._sleep = sleep

    def _log_retry(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self.logger.warning(
            "Gemini rate limit/overload hit. Retrying in %.1fs (attempt %d failed: %s)",
            delay,
            retry_state.attempt_number,
            error,
        )

    async def call(
        self,
        fn: Callable[[], Awaitable[T]],
        max_retries: int | None = None,
        initial_delay: float | None = None,
    ) -> T:
        """
        Invoke `fn`, retrying transient failures with exponential backoff.

        At most `max_retries + 1` attempts are made and the delay doubles after
        every retry. With `max_retries=0` a transient failure is still turned
        into the terminal error below.

        Raises:
            QuotaExceededError: Retries exhausted on a quota failure.
            ServiceOverloadedError: Retries exhausted on any other transient failure.
            Exception: Fatal errors from `fn`, unchanged and without retrying.
        """
        retries = self.max_retries if max_retries is None else max_retries
        delay = self.initial_delay if initial_delay is None else initial_delay
        if retries < 0:
            raise ValueError("max_retries must be >= 0")
        if delay <= 0:
            raise ValueError("initial_delay must be > 0")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(multiplier=delay, exp_base=2),
            retry=retry_if_exception(is_transient),
            before_sleep=self._log_retry,
            sleep=self._sleep,
        )

        # tenacity only awaits coroutine functions; fn may be a plain lambda
        async def attempt() -> T:
            return await fn()

        try:
            return await retrying(attempt)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            attempts = e.last_attempt.attempt_number
            self.logger.error(
                "Gemini call failed after %d attempt(s): %s", attempts, last_error
            )
            raise self._exhausted(last_error, attempts) from last_error

    @staticmethod
    def _exhausted(
        last_error: BaseException | None, attempts: int
    ) -> RetriesExhaustedError:
        if is_quota_error(last_error):
            return QuotaExceededError(QUOTA_EXCEEDED_MESSAGE, last_error, attempts)
        return ServiceOverloadedError(SERVICE_OVERLOADED_MESSAGE, last_error, attempts)
