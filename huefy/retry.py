"""
Retry with exponential backoff.

Wraps one transport-level operation and re-runs it while the classified error
is retryable, observing the caller's deadline and cancellation signal both
while a call is in flight and while waiting out a backoff delay.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, TypeVar

from .config import RetryConfig
from .errors import CancelledError, HuefyError, RateLimitError, TimeoutError

logger = logging.getLogger("huefy.retry")

T = TypeVar("T")


def backoff_delay(attempt: int, config: RetryConfig) -> float:
    """
    Delay before retry number ``attempt`` (1-indexed).

    Returns ``min(base_delay * multiplier ** (attempt - 1), max_delay)``.
    """
    if attempt < 1:
        return 0.0
    return min(config.base_delay * config.multiplier ** (attempt - 1), config.max_delay)


class CallContext:
    """
    Caller-side deadline and cancellation for a single client call.

    Args:
        deadline: Overall budget in seconds for the call, retries included
        cancel_event: Set from another thread to abort the call
    """

    def __init__(
        self,
        deadline: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if deadline is not None and deadline < 0:
            raise ValueError("deadline must be >= 0")
        self._clock = clock
        self._expires_at = clock() + deadline if deadline is not None else None
        self.cancel_event = cancel_event

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self) -> None:
        if self.cancelled:
            raise CancelledError("call cancelled by caller")
        if self.expired:
            raise CancelledError("call deadline exceeded")


class RetryPolicy:
    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_retry: Optional[Callable[[int, HuefyError, float], None]] = None,
    ):
        self.config = config or RetryConfig()
        self._sleep = sleep
        self._on_retry = on_retry

    def is_retryable(self, error: HuefyError) -> bool:
        return error.retryable

    def delay_for(self, attempt: int, error: HuefyError) -> float:
        delay = backoff_delay(attempt, self.config)
        if isinstance(error, RateLimitError) and error.retry_after:
            delay = min(max(delay, float(error.retry_after)), self.config.max_delay)
        return delay

    def run(
        self,
        operation: Callable[[Optional[float]], T],
        context: Optional[CallContext] = None,
    ) -> T:
        """
        Run ``operation`` until it succeeds, fails permanently, or retries run out.

        ``operation`` receives the remaining deadline budget in seconds (or
        None) so it can bound its own network timeout.

        The deadline is enforced inside a running request through that
        timeout. ``cancel_event`` is only observed before each attempt and
        during backoff: a request already on the wire runs to completion (or
        to its timeout) before cancellation takes effect. When a
        ``cancel_event`` is supplied, backoff waits use ``Event.wait`` and the
        injected ``sleep`` is not called.

        Raises:
            The last classified error, or CancelledError when the caller's
            deadline or cancellation signal fires.
        """
        context = context or CallContext()
        max_retries = self.config.max_retries

        for attempt in range(max_retries + 1):
            context.check()
            remaining = context.remaining()
            if remaining is not None and remaining <= 0:
                raise CancelledError("call deadline exceeded")
            try:
                return operation(remaining)
            except TimeoutError as e:
                if context.expired:
                    raise CancelledError("call deadline exceeded during request") from e
                error: HuefyError = e
            except HuefyError as e:
                error = e

            if not self.is_retryable(error):
                logger.debug(f"Non-retryable error ({error.kind.value}): {error.code}")
                raise error

            if attempt >= max_retries:
                logger.warning(f"Max retries ({max_retries}) exhausted: {error.code}")
                raise error

            delay = self.delay_for(attempt + 1, error)
            if self._on_retry:
                self._on_retry(attempt + 1, error, delay)
            logger.info(
                f"Retry {attempt + 1}/{max_retries} after {delay:.1f}s "
                f"({error.kind.value}): {error.code}"
            )
            self._wait(delay, context, error)

        raise RuntimeError("Retry logic error")

    def _wait(self, delay: float, context: CallContext, error: HuefyError) -> None:
        remaining = context.remaining()
        if remaining is not None and remaining <= delay:
            raise CancelledError(
                f"call deadline exceeded before retry (needed {delay:.1f}s)"
            ) from error

        if context.cancel_event is not None:
            if context.cancel_event.wait(delay):
                raise CancelledError("call cancelled during retry backoff") from error
        elif delay > 0:
            self._sleep(delay)
