"""Per-invocation crawl state that owns the browser session."""

from datetime import datetime
from typing import Optional

from loguru import logger

from beehive.contexts.crawling.browser import BrowserSession


class CrawlSession:
    """
    One crawl invocation's state: the browser, the page cursor and the record count.

    Use as a context manager; the browser is closed on every exit path.
    """

    def __init__(self, browser: BrowserSession):
        self.browser = browser
        self.page_index = 0
        self.records_processed = 0
        self.stop_reason: Optional[str] = None
        self.started_at = datetime.now()

    def __enter__(self) -> "CrawlSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self) -> None:
        try:
            self.browser.close()
        except Exception as e:
            # Never mask the exception that ended the crawl
            logger.warning(f"Error while closing browser session: {e}")
        elapsed = (datetime.now() - self.started_at).total_seconds()
        logger.info(
            f"Browser session closed after {self.page_index} page(s), "
            f"{self.records_processed} record(s) ({elapsed:.1f}s)"
        )
