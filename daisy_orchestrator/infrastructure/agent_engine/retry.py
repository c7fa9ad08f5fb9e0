"""
Retry logic - Infrastructure component for handling failures while opening a backend call.
Implements exponential backoff with jitter; a stream is never retried once reading has begun.
"""

from __future__ import annotations
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from ..config.settings import TransportSettings


T = TypeVar('T')


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter: float = 0.1
    retryable_status_codes: List[int] = field(default_factory=lambda: [502, 503, 504])

    @classmethod
    def from_settings(cls, settings: TransportSettings) -> RetryConfig:
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.backoff_base,
            max_delay=settings.max_delay,
            jitter=settings.jitter_max,
            retryable_status_codes=settings.retryable_codes
        )


class RetryPolicy:
    """Runs an operation with exponential backoff for transient failures."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None
    ):
        self._config = config or RetryConfig()
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)

    def execute(self, operation: Callable[[], T]) -> T:
        """Execute operation with exponential backoff retry logic."""
        last_exception: Optional[Exception] = None

        for attempt in range(self._config.max_retries + 1):
            try:
                return operation()

            except Exception as e:
                last_exception = e

                if not self.should_retry(e, attempt):
                    break

                self._logger.debug(f"Attempt {attempt + 1} failed: {e}")
                delay = self.get_delay(attempt)
                self._logger.debug(f"Retrying in {delay:.2f}s...")
                self._sleep(delay)

        # All retries exhausted
        raise last_exception or RuntimeError("Retry logic failed")

    def get_delay(self, attempt: int) -> float:
        """Delay before the next attempt, with jitter to avoid thundering herd."""
        delay = min(self._config.base_delay * (2 ** attempt), self._config.max_delay)
        return delay + random.uniform(0, self._config.jitter * delay)

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if the exception warrants a retry."""
        if attempt >= self._config.max_retries:
            return False

        code = extract_status_code(exception)
        if code is not None:
            return code in self._config.retryable_status_codes

        # Connection could not be established; nothing was sent or read
        return isinstance(exception, (httpx.ConnectError, httpx.ConnectTimeout, ConnectionError))

    def get_retry_statistics(self) -> Dict[str, Any]:
        """Get statistics about retry behavior (for monitoring)."""
        return {
            "max_retries": self._config.max_retries,
            "base_delay": self._config.base_delay,
            "max_delay": self._config.max_delay,
            "jitter": self._config.jitter,
            "retryable_status_codes": self._config.retryable_status_codes
        }


def extract_status_code(exception: BaseException) -> Optional[int]:
    """Extract HTTP status code from exception if available."""
    for attr_name in ['status_code', 'code', 'response_code']:
        value = getattr(exception, attr_name, None)
        if value is None:
            continue
        try:
            return int(value)
        except (ValueError, TypeError):
            continue

    # Try to extract from response object
    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) is not None:
        try:
            return int(response.status_code)
        except (ValueError, TypeError):
            pass

    return None
