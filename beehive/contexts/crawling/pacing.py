"""Human-like pauses between detail visits and between listing pages."""

import random
import time
from typing import Callable, Dict, Optional, Tuple

from loguru import logger

BETWEEN_DETAIL_VISITS = "between_detail_visits"
BETWEEN_PAGES = "between_pages"

# Seconds, (min, max) of a uniform draw
DEFAULT_INTERVALS: Dict[str, Tuple[float, float]] = {
    BETWEEN_DETAIL_VISITS: (1.0, 3.0),
    BETWEEN_PAGES: (2.0, 5.0),
}


class PacingScheduler:
    """
    Sleeps for a randomised interval chosen by the kind of pause requested.

    Runs regardless of retries; backoff delays from the retry executor come on top.
    """

    def __init__(
        self,
        intervals: Optional[Dict[str, Tuple[float, float]]] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng=random,
    ):
        self.intervals = dict(DEFAULT_INTERVALS)
        if intervals:
            self.intervals.update(intervals)
        for kind, (low, high) in self.intervals.items():
            if low < 0 or high < low:
                raise ValueError(f"Invalid pacing interval for {kind}: ({low}, {high})")
        self.sleep = sleep
        self.rng = rng

    @classmethod
    def from_config(cls, pacing_config, **kwargs) -> "PacingScheduler":
        """Build from the `pacing` section of the crawl config."""
        intervals = {
            BETWEEN_DETAIL_VISITS: (
                float(pacing_config.detail_visit.min_seconds),
                float(pacing_config.detail_visit.max_seconds),
            ),
            BETWEEN_PAGES: (
                float(pacing_config.page.min_seconds),
                float(pacing_config.page.max_seconds),
            ),
        }
        return cls(intervals=intervals, **kwargs)

    def wait(self, kind: str) -> float:
        """Pause for a random interval of the given kind and return the seconds slept."""
        try:
            low, high = self.intervals[kind]
        except KeyError:
            raise ValueError(f"Unknown pacing kind '{kind}'. Known kinds: {list(self.intervals)}")

        seconds = self.rng.uniform(low, high)
        logger.debug(f"Pacing {kind}: sleeping {seconds:.1f}s")
        self.sleep(seconds)
        return seconds
