"""
Browser session contract used by the crawl engine, and its Playwright implementation.

The engine only talks to BrowserSession. PlaywrightSession turns Playwright's
exceptions into CrawlFailure so the retry executor sees a kind, not just a string.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from playwright.sync_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    sync_playwright,
)

from beehive.contexts.crawling.failures import ChromiumNetworkErrors, CrawlFailure, FailureKind

DEFAULT_LAUNCH_ARGS = ("--no-sandbox", "--disable-setuid-sandbox")


def _error_kind(message: str) -> str:
    if "has been closed" in message:
        return FailureKind.SESSION_CLOSED
    if any(code in message for code in ChromiumNetworkErrors):
        return FailureKind.NETWORK
    return FailureKind.UNKNOWN


class BrowserSession(ABC):
    """One browser with a single active page, driven strictly sequentially."""

    @abstractmethod
    def new_page(self) -> None:
        """Open a fresh page and make it the active one."""
        pass

    @abstractmethod
    def goto(self, url: str, wait_until: str = "networkidle", timeout_ms: int = 30000) -> None:
        pass

    @abstractmethod
    def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run a JS function expression in the page and return its result."""
        pass

    @abstractmethod
    def wait_for_selector(self, selector: str, timeout_ms: int = 15000) -> None:
        """Block until selector is attached, raising CrawlFailure(TIMEOUT) otherwise."""
        pass

    @abstractmethod
    def set_user_agent(self, user_agent: str) -> None:
        """Identity for both the User-Agent header and navigator.userAgent."""
        pass

    @abstractmethod
    def set_viewport(self, width: int, height: int) -> None:
        pass

    @abstractmethod
    def set_extra_headers(self, headers: Dict[str, str]) -> None:
        pass

    @abstractmethod
    def add_init_script(self, script: str) -> None:
        """Register JS to run before any page script on every navigation."""
        pass

    @abstractmethod
    def scroll(self, pixels: int) -> None:
        pass

    @abstractmethod
    def screenshot(self, path: Union[str, Path]) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class PlaywrightSession(BrowserSession):
    """BrowserSession backed by a headless Chromium launched through playwright.sync_api."""

    def __init__(self, headless: bool = True, launch_args=DEFAULT_LAUNCH_ARGS):
        self._page = None
        self._user_agent: Optional[str] = None
        self._headers: Dict[str, str] = {}
        self._viewport: Optional[Dict[str, int]] = None
        self._init_scripts: List[str] = []
        self._closed = False

        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(headless=headless, args=list(launch_args))
            self._context = self._open_context()
        except Exception:
            self._playwright.stop()
            raise

    @classmethod
    def from_config(cls, browser_config) -> "PlaywrightSession":
        return cls(headless=bool(browser_config.headless), launch_args=tuple(browser_config.launch_args))

    def _open_context(self):
        """New browser context carrying the current identity and init scripts."""
        options = {}
        if self._user_agent:
            options["user_agent"] = self._user_agent
        if self._viewport:
            options["viewport"] = self._viewport
        context = self._browser.new_context(**options)
        for script in self._init_scripts:
            context.add_init_script(script)
        return context

    @contextmanager
    def _translate_errors(self, action: str):
        try:
            yield
        except PlaywrightTimeoutError as e:
            raise CrawlFailure(f"{action}: {e.message}", kind=FailureKind.TIMEOUT) from e
        except PlaywrightError as e:
            raise CrawlFailure(f"{action}: {e.message}", kind=_error_kind(e.message)) from e

    @property
    def page(self):
        if self._closed:
            raise CrawlFailure("Browser session closed", kind=FailureKind.SESSION_CLOSED)
        if self._page is None:
            self.new_page()
        return self._page

    def new_page(self) -> None:
        with self._translate_errors("new page"):
            if self._page is not None:
                self._page.close()
            self._page = self._context.new_page()
            if self._headers:
                self._page.set_extra_http_headers(self._headers)
            if self._viewport:
                self._page.set_viewport_size(self._viewport)

    def goto(self, url: str, wait_until: str = "networkidle", timeout_ms: int = 30000) -> None:
        with self._translate_errors(f"goto {url}"):
            response = self.page.goto(url, wait_until=wait_until, timeout=timeout_ms)

        if response is None:
            return
        status = response.status
        if status == 429:
            raise CrawlFailure(f"Too many requests for {url}", kind=FailureKind.RATE_LIMITED, code=status)
        if status >= 500:
            raise CrawlFailure(f"Server error {status} for {url}", kind=FailureKind.SERVER_ERROR, code=status)

    def evaluate(self, script: str, arg: Any = None) -> Any:
        with self._translate_errors("evaluate"):
            if arg is None:
                return self.page.evaluate(script)
            return self.page.evaluate(script, arg)

    def wait_for_selector(self, selector: str, timeout_ms: int = 15000) -> None:
        with self._translate_errors(f"wait for {selector}"):
            self.page.wait_for_selector(selector, timeout=timeout_ms, state="attached")

    def set_user_agent(self, user_agent: str) -> None:
        # Playwright fixes navigator.userAgent when the context is created
        if self._closed:
            raise CrawlFailure("Browser session closed", kind=FailureKind.SESSION_CLOSED)
        self._user_agent = user_agent
        with self._translate_errors("set user agent"):
            if self._page is not None:
                self._page.close()
                self._page = None
            self._context.close()
            self._context = self._open_context()

    def set_viewport(self, width: int, height: int) -> None:
        self._viewport = {"width": width, "height": height}
        with self._translate_errors("set viewport"):
            self.page.set_viewport_size(self._viewport)

    def set_extra_headers(self, headers: Dict[str, str]) -> None:
        self._headers.update(headers)
        with self._translate_errors("set headers"):
            self.page.set_extra_http_headers(self._headers)

    def add_init_script(self, script: str) -> None:
        self._init_scripts.append(script)
        with self._translate_errors("add init script"):
            self._context.add_init_script(script)

    def scroll(self, pixels: int) -> None:
        with self._translate_errors("scroll"):
            self.page.mouse.wheel(0, pixels)

    def screenshot(self, path: Union[str, Path]) -> None:
        with self._translate_errors("screenshot"):
            self.page.screenshot(path=str(path), full_page=True)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._context.close()
            self._browser.close()
        except PlaywrightError as e:
            logger.warning(f"Browser did not close cleanly: {e.message}")
        finally:
            self._playwright.stop()
