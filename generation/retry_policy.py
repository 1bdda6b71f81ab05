"""
Retry Policy: bounded exponential backoff around generative-service calls.

An operation is a no-argument coroutine factory. Transient failures
(overload, unavailable, timeout, rate limit) are retried up to
`max_retries` times; anything else propagates on the first failure.

Delay before retry k (0-based): initial_delay × 2^k + jitter(0..1s),
never smaller than the previous delay.
"""

import asyncio
import logging
import os
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, TypeVar

log = logging.getLogger("generation.retry")

T = TypeVar("T")

# ── Config ─────────────────────────────────────────────────────────────────────
DEFAULT_MAX_RETRIES = int(os.getenv("GENERATION_MAX_RETRIES", "3"))
DEFAULT_INITIAL_DELAY = float(os.getenv("GENERATION_INITIAL_DELAY", "1.0"))

# Matched case-insensitively against the error text, class name and status/code.
TRANSIENT_MARKERS = (
    "503",
    "unavailable",
    "overloaded",
    "timed out",
    "timeout",
    "429",
    "resource_exhausted",
)


def is_transient(error: BaseException) -> bool:
    """True when the failure looks like overload, unavailability or timeout."""
    parts = [str(error), type(error).__name__]
    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if value is not None:
            parts.append(str(value))
    haystack = " ".join(parts).lower()
    return any(marker in haystack for marker in TRANSIENT_MARKERS)


@dataclass
class RetryState:
    """Bookkeeping for one logical call. Discarded on success or final failure."""
    remaining: int
    attempt: int = 0
    delay: float = 0.0
    delays: List[float] = field(default_factory=list)

    def record(self, delay: float) -> None:
        self.delay = delay
        self.delays.append(delay)
        self.attempt += 1
        self.remaining -= 1


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_INITIAL_DELAY
    jitter: Callable[[], float] = random.random
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    classify: Callable[[BaseException], bool] = is_transient

    def next_delay(self, state: RetryState) -> float:
        delay = self.initial_delay * (2 ** state.attempt) + self.jitter()
        return max(delay, state.delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        task: str = "generate",
        on_retry: Optional[Callable[[RetryState, BaseException], None]] = None,
    ) -> T:
        """
        Invoke `operation` until it succeeds, fails terminally, or the retry
        budget is spent. The last error is re-raised unchanged.
        """
        state = RetryState(remaining=self.max_retries)
        while True:
            try:
                return await operation()
            except Exception as exc:
                if not self.classify(exc):
                    log.error(f"[RETRY] [{task}] terminal error, not retrying: {exc}")
                    raise
                if state.remaining <= 0:
                    log.error(
                        f"[RETRY] [{task}] giving up after {state.attempt + 1} attempts: {exc}"
                    )
                    raise
                delay = self.next_delay(state)
                state.record(delay)
                log.warning(
                    f"[RETRY] [{task}] transient error (attempt {state.attempt}/"
                    f"{self.max_retries}), retrying in {delay:.2f}s: {exc}"
                )
                if on_retry is not None:
                    on_retry(state, exc)
                await self.sleep(delay)


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    **kwargs,
) -> T:
    """Module-level shortcut: `await run_with_retry(lambda: call(...))`."""
    return await (policy or RetryPolicy()).run(operation, **kwargs)
