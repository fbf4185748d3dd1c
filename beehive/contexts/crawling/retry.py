"""
Exponential backoff and the retry executor that wraps every fallible crawl step.

Delays are expressed in milliseconds, matching the retry section of crawl.yaml.
"""

import random
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, TypeVar

from loguru import logger

from beehive.contexts.crawling.failures import RetryExhaustedError, is_transient

T = TypeVar("T")

JITTER_MS = 1000


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 3
    base_delay: float = 1000
    max_delay: float = 30000
    backoff_factor: float = 2

    def merged(self, **overrides) -> "RetryConfig":
        """Copy with the given (non-None) fields replaced."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_config(cls, retry_config) -> "RetryConfig":
        """Build from the `retry` section of the crawl config."""
        return cls(
            max_retries=int(retry_config.max_retries),
            base_delay=float(retry_config.base_delay),
            max_delay=float(retry_config.max_delay),
            backoff_factor=float(retry_config.backoff_factor),
        )


def backoff_delay(attempt: int, config: RetryConfig, rng=random) -> float:
    """
    Delay in milliseconds before retrying after failed attempt number `attempt` (0-based).

    min(base_delay * backoff_factor**attempt + jitter, max_delay), jitter in [0, 1000).
    """
    exponential_delay = config.base_delay * (config.backoff_factor ** attempt)
    jitter = rng.random() * JITTER_MS
    return min(exponential_delay + jitter, config.max_delay)


class RetryExecutor:
    """
    Runs an operation, retrying transient failures with exponential backoff.

    Fatal failures are raised after a single call. Whatever is finally raised
    is a RetryExhaustedError naming the operation, chained to the last failure.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng=random,
    ):
        self.config = config or RetryConfig()
        self.sleep = sleep
        self.rng = rng

    def execute(
        self,
        operation: Callable[[], T],
        label: str,
        config_override: Optional[dict] = None,
    ) -> T:
        config = self.config.merged(**config_override) if config_override else self.config
        max_attempts = config.max_retries + 1
        attempt = 0

        while True:
            try:
                return operation()
            except Exception as e:
                if is_transient(e) and attempt < config.max_retries:
                    delay_ms = backoff_delay(attempt, config, self.rng)
                    logger.bind(
                        operation=label,
                        attempt=attempt + 1,
                        max_attempts=max_attempts,
                        delay_ms=round(delay_ms),
                    ).warning(
                        f"Attempt {attempt + 1}/{max_attempts} failed for {label}. "
                        f"Retrying in {delay_ms:.0f}ms. Error: {e}"
                    )
                    self.sleep(delay_ms / 1000)
                    attempt += 1
                    continue

                logger.bind(operation=label, attempts=attempt + 1).error(
                    f"Giving up on {label} after {attempt + 1}/{max_attempts} attempts: {e}"
                )
                raise RetryExhaustedError(label, attempt + 1, e) from e
