"""
Listing and detail extraction against the rendered target pages.

Two phases, listing pages first and then one detail page per listing:
- ListingExtractor: one listings page -> partial JobRecords (no description)
- DetailEnricher: one apply URL -> description for an existing JobRecord
"""

import random
import re
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Sequence, Tuple
from urllib.parse import quote, urljoin

from loguru import logger

from beehive.contexts.crawling.browser import BrowserSession
from beehive.contexts.crawling.failures import CrawlFailure, FailureKind
from beehive.contexts.crawling.models import JobRecord, ListingResult
from beehive.contexts.crawling.retry import RetryExecutor
from beehive.utils.text_processing import normalize_whitespace, truncate_text

DEFAULT_BASE_URL = "https://www.indeed.com"
RESULTS_PER_PAGE = 10

CARD_SELECTOR = ".job_seen_beacon"

DESCRIPTION_SELECTORS: Sequence[str] = (
    "#jobDescriptionText",
    ".jobsearch-JobComponent-description",
    ".description",
    '[data-testid="job-description"]',
)

CHALLENGE_SELECTORS: Sequence[str] = (
    "#challenge-form",
    "iframe[src*='challenges.cloudflare.com']",
    "iframe[src*='captcha']",
    ".g-recaptcha",
    "[data-sitekey]",
)

BLOCK_MARKERS: Sequence[str] = (
    "captcha",
    "verify you are human",
    "unusual traffic",
    "access denied",
    "blocked",
    "just a moment",
)

DESCRIPTION_UNAVAILABLE = "Description not available"

CARD_SCRIPT = """
() => Array.from(document.querySelectorAll('.job_seen_beacon')).map((card) => {
  const text = (selector) => {
    const el = card.querySelector(selector);
    return el && el.textContent ? el.textContent.trim() : '';
  };
  const titleElement = card.querySelector('h2.jobTitle a');
  return {
    title: titleElement ? (titleElement.textContent || '').trim() : null,
    href: titleElement ? titleElement.getAttribute('href') : null,
    company: text('[data-testid="company-name"]'),
    location: text('[data-testid="text-location"]'),
    salary: text('.salary-snippet-container'),
  };
})
"""

BLOCK_SCRIPT = """
({ selectors, markers, includeBody }) => {
  if (selectors.some((selector) => document.querySelector(selector))) return true;
  let text = (document.title || '').toLowerCase();
  if (includeBody && document.body) text += ' ' + document.body.innerText.slice(0, 5000).toLowerCase();
  return markers.some((marker) => text.includes(marker));
}
"""

DESCRIPTION_SCRIPT = """
(selectors) => {
  for (const selector of selectors) {
    const element = document.querySelector(selector);
    if (element) return (element.textContent || '').trim();
  }
  return '';
}
"""

_JOB_KEY_PATTERN = re.compile(r"[?&]jk=([^&#]+)")


def parse_source_id(href: Optional[str]) -> str:
    """
    Pull the job key out of a listing href.

    Example:
        >>> parse_source_id("/rc/clk?jk=4f2a9c&fccid=abc")
        '4f2a9c'
    """
    if not href:
        return ""
    match = _JOB_KEY_PATTERN.search(href)
    return match.group(1) if match else ""


class ListingExtractor:
    """Turns one rendered listings page into partial JobRecords."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        navigation_timeout_ms: int = 30000,
        render_timeout_ms: int = 15000,
        scroll_range: Optional[Tuple[int, int]] = (300, 900),
        screenshot_dir: Optional[Path] = None,
        rng=random,
    ):
        self.base_url = base_url.rstrip("/")
        self.navigation_timeout_ms = navigation_timeout_ms
        self.render_timeout_ms = render_timeout_ms
        self.scroll_range = scroll_range
        self.screenshot_dir = Path(screenshot_dir) if screenshot_dir else None
        self.rng = rng

    @classmethod
    def from_config(cls, config, **kwargs) -> "ListingExtractor":
        return cls(
            base_url=config.target.base_url,
            navigation_timeout_ms=int(config.browser.navigation_timeout_ms),
            render_timeout_ms=int(config.browser.render_timeout_ms),
            screenshot_dir=config.browser.screenshot_dir or None,
            **kwargs,
        )

    def build_page_url(self, location: str, page_index: int) -> str:
        start = page_index * RESULTS_PER_PAGE
        return f"{self.base_url}/jobs?l={quote(location, safe='')}&start={start}"

    def extract(self, session: BrowserSession, page_url: str) -> ListingResult:
        """
        Navigate to a listings page and read its job cards.

        Returns a blocked, empty result when the site serves a CAPTCHA or
        anti-bot page, and a plain empty result when no cards render in time.
        """
        try:
            return self._extract(session, page_url)
        except Exception:
            self._save_debug_screenshot(session, page_url)
            raise

    def _extract(self, session: BrowserSession, page_url: str) -> ListingResult:
        session.goto(page_url, wait_until="networkidle", timeout_ms=self.navigation_timeout_ms)

        if self._detect_block(session, include_body=False):
            logger.warning(f"Soft block detected on {page_url}")
            return ListingResult(blocked=True)

        try:
            session.wait_for_selector(CARD_SELECTOR, timeout_ms=self.render_timeout_ms)
        except CrawlFailure as e:
            if e.kind != FailureKind.TIMEOUT:
                raise
            if self._detect_block(session, include_body=True):
                logger.warning(f"Soft block detected on {page_url} after cards failed to render")
                return ListingResult(blocked=True)
            logger.info(f"No job cards found within timeout on {page_url}, may be no results or different page structure")
            return ListingResult()

        if self.scroll_range:
            session.scroll(self.rng.randint(*self.scroll_range))

        cards = session.evaluate(CARD_SCRIPT)
        if not isinstance(cards, list):
            raise CrawlFailure(f"Unexpected card payload of type {type(cards).__name__} from {page_url}")

        return ListingResult(records=self._cards_to_records(cards, page_url))

    def _cards_to_records(self, cards: list, page_url: str) -> list:
        posted_date = date.today().isoformat()
        records = []
        for card in cards:
            title = (card.get("title") or "").strip()
            if not title:
                continue

            href = card.get("href") or ""
            source_id = parse_source_id(href)
            if not source_id:
                raise CrawlFailure(
                    f"Listing '{title}' on {page_url} has no job key in href '{href}'",
                    kind=FailureKind.MISSING_SOURCE_ID,
                )

            records.append(
                JobRecord(
                    title=title,
                    company=(card.get("company") or "").strip(),
                    location=(card.get("location") or "").strip(),
                    apply_url=urljoin(self.base_url + "/", href),
                    posted_date=posted_date,
                    source_id=source_id,
                    salary=(card.get("salary") or "").strip() or None,
                )
            )
        return records

    def _detect_block(self, session: BrowserSession, include_body: bool) -> bool:
        payload = {
            "selectors": list(CHALLENGE_SELECTORS),
            "markers": list(BLOCK_MARKERS),
            "includeBody": include_body,
        }
        return bool(session.evaluate(BLOCK_SCRIPT, payload))

    def _save_debug_screenshot(self, session: BrowserSession, page_url: str) -> None:
        if self.screenshot_dir is None:
            return
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshot_dir / f"listing_{datetime.now():%Y%m%d_%H%M%S_%f}.png"
        try:
            session.screenshot(path)
            logger.info(f"Saved debug screenshot for {page_url} to {path}")
        except Exception as e:
            logger.warning(f"Could not save debug screenshot for {page_url}: {e}")


class DetailEnricher:
    """Fills in the long-form description of a JobRecord from its apply URL."""

    def __init__(self, max_description_length: int = 2000, navigation_timeout_ms: int = 15000):
        self.max_description_length = max_description_length
        self.navigation_timeout_ms = navigation_timeout_ms

    @classmethod
    def from_config(cls, config) -> "DetailEnricher":
        return cls(
            max_description_length=int(config.crawl.max_description_length),
            navigation_timeout_ms=int(config.browser.detail_timeout_ms),
        )

    def fetch_description(self, session: BrowserSession, url: str) -> str:
        session.goto(url, wait_until="networkidle", timeout_ms=self.navigation_timeout_ms)
        text = session.evaluate(DESCRIPTION_SCRIPT, list(DESCRIPTION_SELECTORS)) or ""
        return truncate_text(normalize_whitespace(text), self.max_description_length)

    def enrich(
        self,
        session: BrowserSession,
        record: JobRecord,
        retry: Optional[RetryExecutor] = None,
    ) -> JobRecord:
        """
        Set record.description from the detail page.

        Transient failures are retried through `retry` when given. A detail page
        that still fails gets the DESCRIPTION_UNAVAILABLE sentinel; the error is
        logged and never raised, so one bad listing cannot sink its batch.
        """
        if not record.apply_url:
            return record

        def fetch():
            return self.fetch_description(session, record.apply_url)

        try:
            if retry is not None:
                record.description = retry.execute(fetch, f"crawl job detail for {record.title}")
            else:
                record.description = fetch()
        except Exception as e:
            logger.warning(f"Failed to crawl job detail: {record.title} ({e})")
            record.description = DESCRIPTION_UNAVAILABLE
        return record
