# tests/conftest.py
import random
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd
import pytest

from beehive.contexts.crawling import extraction
from beehive.contexts.crawling.crawler import Crawler
from beehive.contexts.crawling.browser import BrowserSession
from beehive.contexts.crawling.config import load_crawl_config
from beehive.contexts.crawling.extraction import DetailEnricher, ListingExtractor
from beehive.contexts.crawling.failures import CrawlFailure, FailureKind
from beehive.contexts.crawling.pacing import PacingScheduler
from beehive.contexts.crawling.retry import RetryConfig, RetryExecutor
from beehive.contexts.crawling.stealth import StealthConfigurator
from beehive.contexts.storage import DatabaseConfig, DatabaseWrapper
from beehive.contexts.storage.schema import UPDATE_COLUMNS

BASE_URL = "https://www.indeed.com"


# ---------------------------------------------------------------------
# Fake browser
# ---------------------------------------------------------------------
@dataclass
class FakePage:
    cards: list = field(default_factory=list)
    blocked: bool = False
    description: Optional[str] = None
    # Raised by goto, one per visit, before the page "loads"
    goto_errors: list = field(default_factory=list)


class FakeBrowserSession(BrowserSession):
    """Scripted BrowserSession: URLs map to FakePages; unknown URLs render nothing."""

    def __init__(self, pages: Optional[dict] = None):
        self.pages = pages or {}
        self.current_url = None
        self.visits = []
        self.pages_opened = 0
        self.user_agent = None
        self.viewport = None
        self.headers = {}
        self.init_scripts = []
        self.scrolled = []
        self.screenshots = []
        self.close_calls = 0

    @property
    def closed(self):
        return self.close_calls > 0

    def _page(self) -> FakePage:
        return self.pages.get(self.current_url, FakePage())

    def new_page(self):
        self.pages_opened += 1

    def goto(self, url, wait_until="networkidle", timeout_ms=30000):
        self.visits.append(url)
        page = self.pages.get(url)
        if page is not None and page.goto_errors:
            raise page.goto_errors.pop(0)
        self.current_url = url

    def evaluate(self, script, arg=None):
        page = self._page()
        if script is extraction.BLOCK_SCRIPT:
            return page.blocked
        if script is extraction.CARD_SCRIPT:
            return page.cards
        if script is extraction.DESCRIPTION_SCRIPT:
            return page.description or ""
        raise AssertionError("unexpected script")

    def wait_for_selector(self, selector, timeout_ms=15000):
        if not self._page().cards:
            raise CrawlFailure(f"Timeout {timeout_ms}ms exceeded waiting for {selector}", kind=FailureKind.TIMEOUT)

    def set_user_agent(self, user_agent):
        self.user_agent = user_agent

    def set_viewport(self, width, height):
        self.viewport = (width, height)

    def set_extra_headers(self, headers):
        self.headers.update(headers)

    def add_init_script(self, script):
        self.init_scripts.append(script)

    def scroll(self, pixels):
        self.scrolled.append(pixels)

    def screenshot(self, path):
        self.screenshots.append(str(path))

    def close(self):
        self.close_calls += 1


def make_card(title: Optional[str], job_key: Optional[str], company="Acme", location="Remote", salary=""):
    href = f"/rc/clk?jk={job_key}&fccid=f00" if job_key else ("/viewjob?from=serp" if title else None)
    return {"title": title, "href": href, "company": company, "location": location, "salary": salary}


def apply_url(job_key: str) -> str:
    return f"{BASE_URL}/rc/clk?jk={job_key}&fccid=f00"


def listing_url(page_index: int, location: str = "remote") -> str:
    return f"{BASE_URL}/jobs?l={location}&start={page_index * 10}"


# ---------------------------------------------------------------------
# In-memory upsert store
# ---------------------------------------------------------------------
class InMemoryStore(DatabaseWrapper):
    """Dict-backed store with the same create/update rules as the PostgreSQL upsert."""

    def __init__(self, fail_with: Optional[list] = None):
        super().__init__(DatabaseConfig(host="localhost", port=5432, user="test", password="test", name="beehive_test"))
        self.rows = {}
        self.upsert_calls = 0
        self.fail_with = list(fail_with or [])

    def connect(self):
        raise NotImplementedError

    def upsert(self, key, fields):
        self.upsert_calls += 1
        if self.fail_with:
            raise self.fail_with.pop(0)
        natural_key = (key["source"], key["source_id"])
        if natural_key in self.rows:
            row = self.rows[natural_key]
            row.update({name: value for name, value in fields.items() if name in UPDATE_COLUMNS})
            row["updated_count"] += 1
        else:
            self.rows[natural_key] = {**key, **fields, "updated_count": 0}

    def count_rows(self):
        return len(self.rows)

    def export_df(self, query=None):
        return pd.DataFrame(list(self.rows.values()))

    def ensure_table(self):
        pass

    @staticmethod
    def _db_exists(config):
        return True

    @staticmethod
    def _create_db(config):
        pass


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------
@pytest.fixture
def sleeps():
    """Seconds passed to every injected sleep call, in order."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def crawl_config(tmp_path):
    return load_crawl_config(browser={"screenshot_dir": str(tmp_path / "screenshots")})


@pytest.fixture
def make_crawler(crawl_config, fake_sleep, tmp_path):
    """Build a Crawler over a FakeBrowserSession with no real waiting."""

    def _make(browser: FakeBrowserSession, store: DatabaseWrapper, **kwargs):
        rng = random.Random(7)
        kwargs.setdefault("extractor", ListingExtractor(screenshot_dir=tmp_path / "screenshots", rng=rng))
        kwargs.setdefault("enricher", DetailEnricher())
        kwargs.setdefault("pacing", PacingScheduler(sleep=fake_sleep, rng=rng))
        kwargs.setdefault("stealth", StealthConfigurator(rng=rng))
        kwargs.setdefault("retry", RetryExecutor(RetryConfig(), sleep=fake_sleep, rng=rng))
        return Crawler(lambda: browser, store, crawl_config, show_progress=False, **kwargs)

    return _make
