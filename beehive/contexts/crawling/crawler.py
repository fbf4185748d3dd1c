"""
The crawl loop: pages through the listings site one page at a time.

State machine:
    idle -> paging -> extracting -> enriching -> persisting -> paging ...
         -> done | stopped_early (blocked / exhausted) | fatal

`done` and `stopped_early` both return a CrawlResult; `fatal` re-raises after
the browser session has been closed.
"""

from typing import Callable, Optional

from loguru import logger
from omegaconf.dictconfig import DictConfig
from tqdm import tqdm

from beehive.contexts.crawling.browser import BrowserSession
from beehive.contexts.crawling.config import load_crawl_config
from beehive.contexts.crawling.extraction import DetailEnricher, ListingExtractor
from beehive.contexts.crawling.models import CrawlResult
from beehive.contexts.crawling.pacing import BETWEEN_DETAIL_VISITS, BETWEEN_PAGES, PacingScheduler
from beehive.contexts.crawling.persistence import PersistenceAdapter
from beehive.contexts.crawling.retry import RetryConfig, RetryExecutor
from beehive.contexts.crawling.session import CrawlSession
from beehive.contexts.crawling.stealth import StealthConfigurator
from beehive.contexts.storage import DatabaseWrapper


class CrawlState:
    IDLE = "idle"
    PAGING = "paging"
    EXTRACTING = "extracting"
    ENRICHING = "enriching"
    PERSISTING = "persisting"
    DONE = "done"
    STOPPED_EARLY = "stopped_early"
    FATAL = "fatal"


STOP_BLOCKED = "blocked"
STOP_EXHAUSTED = "exhausted"


class Crawler:
    """
    Sequential, single-session crawler for one listings site.

    Collaborators are built from the crawl config unless injected. The browser
    is created per call to crawl() by session_factory and closed before it returns.
    """

    def __init__(
        self,
        session_factory: Callable[[], BrowserSession],
        store: DatabaseWrapper,
        config: Optional[DictConfig] = None,
        *,
        extractor: Optional[ListingExtractor] = None,
        enricher: Optional[DetailEnricher] = None,
        pacing: Optional[PacingScheduler] = None,
        stealth: Optional[StealthConfigurator] = None,
        retry: Optional[RetryExecutor] = None,
        show_progress: bool = True,
    ):
        self.config = config if config is not None else load_crawl_config()
        self.session_factory = session_factory
        self.extractor = extractor or ListingExtractor.from_config(self.config)
        self.enricher = enricher or DetailEnricher.from_config(self.config)
        self.pacing = pacing or PacingScheduler.from_config(self.config.pacing)
        self.stealth = stealth or StealthConfigurator.from_config(self.config.stealth)
        self.retry = retry or RetryExecutor(RetryConfig.from_config(self.config.retry))
        self.persistence = PersistenceAdapter(store, source=self.config.target.source)
        self.show_progress = show_progress
        self.state = CrawlState.IDLE

    def _transition(self, state: str, detail: str = "") -> None:
        logger.debug(f"Crawl state {self.state} -> {state}{f' ({detail})' if detail else ''}")
        self.state = state

    def crawl(self, location: str = "remote", max_pages: int = 3) -> CrawlResult:
        """
        Crawl up to max_pages listing pages for location.

        Returns:
            CrawlResult with status done or stopped_early. Zero records is a success.

        Raises:
            RetryExhaustedError: A step failed fatally or ran out of retries
            ValueError: If max_pages is negative
        """
        if max_pages < 0:
            raise ValueError(f"max_pages must be non-negative, got {max_pages}")

        self.state = CrawlState.IDLE
        pages_crawled = 0

        try:
            with CrawlSession(self.session_factory()) as session:
                session.browser.new_page()
                self.stealth.prepare(session.browser)
                self._transition(CrawlState.PAGING, "page 1")

                while session.page_index < max_pages:
                    page_number = session.page_index + 1
                    page_url = self.extractor.build_page_url(location, session.page_index)
                    logger.info(f"Crawling page {page_number}...")

                    self._transition(CrawlState.EXTRACTING, page_url)
                    listing = self.retry.execute(
                        lambda: self.extractor.extract(session.browser, page_url),
                        f"crawl job listings page {page_number}",
                    )
                    pages_crawled += 1

                    if listing.blocked:
                        logger.warning(f"Blocked on page {page_number}, stopping crawl.")
                        session.stop_reason = STOP_BLOCKED
                        break
                    if not listing.records:
                        logger.info(f"No jobs found on page {page_number}, stopping crawl.")
                        session.stop_reason = STOP_EXHAUSTED
                        break

                    self._transition(CrawlState.ENRICHING, f"{len(listing)} records")
                    for record in tqdm(listing.records, desc=f"Page {page_number} details", disable=not self.show_progress):
                        if not record.apply_url:
                            continue
                        self.enricher.enrich(session.browser, record, retry=self.retry)
                        self.pacing.wait(BETWEEN_DETAIL_VISITS)

                    self._transition(CrawlState.PERSISTING, f"{len(listing)} records")
                    saved = self.retry.execute(
                        lambda: self.persistence.save(listing.records),
                        f"save jobs from page {page_number}",
                    )
                    session.records_processed += saved
                    session.page_index += 1
                    logger.info(f"Successfully processed {saved} jobs from page {page_number}")

                    if session.page_index < max_pages:
                        self.pacing.wait(BETWEEN_PAGES)
                        self._transition(CrawlState.PAGING, f"page {session.page_index + 1}")

                if session.stop_reason is None:
                    self._transition(CrawlState.DONE)
                    result = CrawlResult(status=CrawlState.DONE)
                else:
                    self._transition(CrawlState.STOPPED_EARLY, session.stop_reason)
                    result = CrawlResult(status=CrawlState.STOPPED_EARLY, reason=session.stop_reason)

                result.pages_crawled = pages_crawled
                result.records_processed = session.records_processed

        except Exception as e:
            self._transition(CrawlState.FATAL, type(e).__name__)
            logger.error(f"Crawling error: {e}")
            raise

        logger.info(
            f"Crawl {result.status}{f' ({result.reason})' if result.reason else ''}: "
            f"{result.records_processed} records from {result.pages_crawled} page(s)"
        )
        return result
