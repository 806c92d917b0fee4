"""Bounded fixed-interval retry keyed on classified response codes."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Collection
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from . import codes
from .context import CallContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 5
DEFAULT_RETRY_INTERVAL = 2.0


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Which failure codes are redriven, how often and how far apart."""

    retryable_codes: frozenset[int] = field(default=codes.DEFAULT_RETRY_CODES)
    max_attempts: int = DEFAULT_MAX_RETRIES + 1
    interval: float = DEFAULT_RETRY_INTERVAL

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval < 0:
            raise ValueError("interval must not be negative")

    def with_codes(self, retryable_codes: Collection[int]) -> RetryPolicy:
        return RetryPolicy(
            retryable_codes=frozenset(retryable_codes),
            max_attempts=self.max_attempts,
            interval=self.interval,
        )


@dataclass(slots=True)
class CallResult(Generic[T]):
    """Outcome of one unit of work: a result, the status code seen and an error."""

    result: T | None = None
    code: int | None = None
    error: Exception | None = None


def retry_call(
    policy: RetryPolicy,
    unit: Callable[[], CallResult[T]],
    *,
    context: CallContext | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T | None:
    """Invoke ``unit`` until it stops asking for a retry or attempts run out.

    A unit that reports no status code ends the loop at once. Only an error
    carrying one of ``policy.retryable_codes`` is redriven. The last attempt's
    error is raised, otherwise its result is returned.
    """

    attempt = 0
    while True:
        if context is not None:
            context.check()
        attempt += 1
        outcome = unit()
        if not _should_retry(policy, outcome):
            break
        if attempt >= policy.max_attempts:
            logger.info("Giving up after %d attempts, last code: %s", attempt, outcome.code)
            break
        if context is not None and (context.cancelled or context.expired):
            break
        logger.info(
            "Retrying storage call after code %s (attempt %d of %d)",
            outcome.code,
            attempt,
            policy.max_attempts,
        )
        sleep(policy.interval)

    if outcome.error is not None:
        raise outcome.error
    return outcome.result


def _should_retry(policy: RetryPolicy, outcome: CallResult[T]) -> bool:
    if outcome.code is None:
        return False
    return outcome.error is not None and outcome.code in policy.retryable_codes


__all__ = ["CallResult", "RetryPolicy", "retry_call"]
