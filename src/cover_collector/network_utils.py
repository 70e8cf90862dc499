from __future__ import annotations

import random
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

import requests

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff with multiplicative jitter.

    The delay before retry ``n`` (0-based) is
    ``min(initial_delay * multiplier**n, max_delay)``, scaled by a uniform
    random factor in ``[0, 1)`` when ``jitter`` is enabled.
    """

    max_attempts: int = 3
    initial_delay: float = 0.01
    multiplier: float = 10.0
    max_delay: float = 60.0
    jitter: bool = True

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> RetryPolicy:
        if not d:
            return cls()
        defaults = cls()
        return cls(
            max_attempts=int(d.get("max_attempts", defaults.max_attempts)),
            initial_delay=float(d.get("initial_delay", defaults.initial_delay)),
            multiplier=float(d.get("multiplier", defaults.multiplier)),
            max_delay=float(d.get("max_delay", defaults.max_delay)),
            jitter=bool(d.get("jitter", defaults.jitter)),
        )

    def delay_for(self, attempt: int, rng: Callable[[], float] = random.random) -> float:
        delay = min(self.initial_delay * self.multiplier**attempt, self.max_delay)
        if self.jitter:
            delay *= rng()
        return delay


def _is_retryable_http_exception(exc: Exception, retry_on_429: bool = True) -> bool:
    """Check if an HTTP exception is retryable.

    Args:
        exc: The exception to check
        retry_on_429: Whether to retry on HTTP 429 Too Many Requests

    Returns:
        True if the exception is retryable
    """
    if isinstance(exc, requests.exceptions.HTTPError):
        status_code = exc.response.status_code if exc.response is not None else None
        if status_code is None:
            return False
        if status_code >= 500:
            return True
        # Gateways and the Blockfrost API both rate limit with 429
        return status_code == 429 and retry_on_429
    return isinstance(
        exc,
        (
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout,
            requests.exceptions.ChunkedEncodingError,
            requests.exceptions.ContentDecodingError,
            requests.exceptions.TooManyRedirects,
        ),
    )


def _with_retries(
    fn: Callable[[], T],
    *,
    policy: RetryPolicy | None = None,
    on_retry: Callable[[int, Exception], None] | None = None,
    retry_on_429: bool = True,
    sleep: Callable[[float], None] | None = None,
    rng: Callable[[], float] = random.random,
) -> T:
    """Execute a function with retry logic.

    Args:
        fn: The idempotent call to execute
        policy: Attempt count and backoff schedule (default: 3 attempts, 10 ms base)
        on_retry: Optional callback called on each retry with (attempt_num, exception)
        retry_on_429: Whether to retry on HTTP 429 Too Many Requests
        sleep: Sleep function, defaults to ``time.sleep``
        rng: Source of jitter factors in ``[0, 1)``

    Returns:
        The result of fn()

    Raises:
        Exception: The last exception if all retries fail, or the first
            non-retryable one
    """
    policy = policy or RetryPolicy()
    sleep = sleep or time.sleep
    attempts = max(1, policy.max_attempts)
    for attempt in range(attempts):
        try:
            return fn()
        except Exception as exc:
            is_retryable = _is_retryable_http_exception(exc, retry_on_429=retry_on_429)
            if not is_retryable or attempt >= attempts - 1:
                raise
            if on_retry:
                on_retry(attempt + 1, exc)
            sleep(policy.delay_for(attempt, rng))
    raise RuntimeError("unreachable")
