"""Configuration helpers for OceanStor client."""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass, field

from . import codes
from .retry import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_INTERVAL, RetryPolicy

DEVICE_MANAGER_PATH = "/deviceManager/rest"
DEFAULT_MAX_CONCURRENCY = 30
DEFAULT_TIMEOUT = 60.0


@dataclass(slots=True)
class ClientConfig:
    """Typed configuration for `OceanStorClient`."""

    urls: Sequence[str]
    user: str
    secret_name: str
    secret_namespace: str
    backend_name: str | None = None
    backend_namespace: str | None = None
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_interval: float = DEFAULT_RETRY_INTERVAL
    default_headers: Mapping[str, str] | None = field(default=None)

    def __post_init__(self) -> None:
        self.urls = [url.strip().rstrip("/") for url in self.urls if url and url.strip()]
        if not self.urls:
            raise ValueError("At least one storage URL is required.")
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1.")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative.")

    def resolved_headers(self) -> dict[str, str]:
        return dict(self.default_headers or {})

    def retry_policy(self, retryable_codes: Collection[int] = codes.DEFAULT_RETRY_CODES) -> RetryPolicy:
        return RetryPolicy(
            retryable_codes=frozenset(retryable_codes),
            max_attempts=self.max_retries + 1,
            interval=self.retry_interval,
        )
