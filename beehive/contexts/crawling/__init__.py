"""
Job crawling domain.

Drives a paced, retrying, single-session crawl of a job listings site and
hands the extracted listings to storage.
"""

from beehive.contexts.crawling.failures import (
    TRANSIENT,
    FATAL,
    CrawlFailure,
    FailureKind,
    RetryExhaustedError,
    classify,
    is_transient,
)
from beehive.contexts.crawling.retry import (
    RetryConfig,
    RetryExecutor,
    backoff_delay,
)
from beehive.contexts.crawling.pacing import (
    BETWEEN_DETAIL_VISITS,
    BETWEEN_PAGES,
    PacingScheduler,
)
from beehive.contexts.crawling.browser import (
    BrowserSession,
    PlaywrightSession,
)
from beehive.contexts.crawling.stealth import StealthConfigurator
from beehive.contexts.crawling.models import (
    JobRecord,
    ListingResult,
    CrawlResult,
)
from beehive.contexts.crawling.extraction import (
    ListingExtractor,
    DetailEnricher,
    parse_source_id,
)
from beehive.contexts.crawling.persistence import PersistenceAdapter
from beehive.contexts.crawling.session import CrawlSession
from beehive.contexts.crawling.crawler import (
    Crawler,
    CrawlState,
)
from beehive.contexts.crawling.config import load_crawl_config
from beehive.contexts.crawling.orchestration import (
    run_crawl,
    setup_logger,
)

__all__ = [
    "TRANSIENT",
    "FATAL",
    "CrawlFailure",
    "FailureKind",
    "RetryExhaustedError",
    "classify",
    "is_transient",
    "RetryConfig",
    "RetryExecutor",
    "backoff_delay",
    "BETWEEN_DETAIL_VISITS",
    "BETWEEN_PAGES",
    "PacingScheduler",
    "BrowserSession",
    "PlaywrightSession",
    "StealthConfigurator",
    "JobRecord",
    "ListingResult",
    "CrawlResult",
    "ListingExtractor",
    "DetailEnricher",
    "parse_source_id",
    "PersistenceAdapter",
    "CrawlSession",
    "Crawler",
    "CrawlState",
    "load_crawl_config",
    "run_crawl",
    "setup_logger",
]
