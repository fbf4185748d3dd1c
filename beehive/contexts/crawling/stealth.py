"""
Anti-detection setup applied to a fresh browser session before its first navigation.

All fingerprint policy lives here so it can be tuned, or switched off through
`stealth.enabled` in crawl.yaml, without touching the crawl loop.
"""

import json
import random
from typing import Dict, List, Optional, Sequence

from loguru import logger

from beehive.contexts.crawling.browser import BrowserSession

USER_AGENTS: Sequence[str] = (
    # Chrome on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    # Chrome on macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    # Edge on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36 Edg/131.0.0.0",
    # Chrome on Linux
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
)

VIEWPORTS: Sequence[Dict[str, int]] = (
    {"width": 1920, "height": 1080},
    {"width": 1536, "height": 864},
    {"width": 1440, "height": 900},
    {"width": 1366, "height": 768},
)

LANGUAGES: List[str] = ["en-US", "en"]

# Sent on every request. Chromium fills in Sec-Fetch-* and
# Upgrade-Insecure-Requests per request type, so they are not overridden here.
DEFAULT_HEADERS: Dict[str, str] = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
}

STEALTH_INIT_SCRIPT_TEMPLATE = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => %(languages)s });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = window.chrome || { runtime: {} };
const originalQuery = window.navigator.permissions && window.navigator.permissions.query;
if (originalQuery) {
  window.navigator.permissions.query = (parameters) => (
    parameters.name === 'notifications'
      ? Promise.resolve({ state: Notification.permission })
      : originalQuery(parameters)
  );
}
"""


def build_init_script(languages: Sequence[str] = LANGUAGES) -> str:
    return STEALTH_INIT_SCRIPT_TEMPLATE % {"languages": json.dumps(list(languages))}


class StealthConfigurator:
    """
    Picks a client identity and hides the obvious automation markers.

    This narrows the trivial detection surface; it does not guarantee evasion.
    """

    def __init__(
        self,
        user_agents: Sequence[str] = USER_AGENTS,
        viewports: Sequence[Dict[str, int]] = VIEWPORTS,
        headers: Optional[Dict[str, str]] = None,
        languages: Sequence[str] = LANGUAGES,
        enabled: bool = True,
        rng=random,
    ):
        if enabled and (not user_agents or not viewports):
            raise ValueError("Stealth needs at least one user agent and one viewport")
        self.user_agents = list(user_agents)
        self.viewports = list(viewports)
        self.headers = dict(DEFAULT_HEADERS if headers is None else headers)
        self.languages = list(languages)
        self.enabled = enabled
        self.rng = rng

    @classmethod
    def from_config(cls, stealth_config, **kwargs) -> "StealthConfigurator":
        """Build from the `stealth` section of the crawl config; empty pools fall back to the defaults."""
        return cls(
            user_agents=list(stealth_config.user_agents) or USER_AGENTS,
            viewports=[dict(v) for v in stealth_config.viewports] or VIEWPORTS,
            enabled=bool(stealth_config.enabled),
            **kwargs,
        )

    def prepare(self, session: BrowserSession) -> Optional[dict]:
        """Apply identity, viewport, init script and headers. Returns the chosen identity."""
        if not self.enabled:
            logger.info("Stealth disabled, using browser defaults")
            return None

        user_agent = self.rng.choice(self.user_agents)
        viewport = self.rng.choice(self.viewports)

        session.add_init_script(build_init_script(self.languages))
        session.set_user_agent(user_agent)
        session.set_viewport(viewport["width"], viewport["height"])
        session.set_extra_headers(self.headers)

        logger.info(f"Stealth identity: {viewport['width']}x{viewport['height']} | {user_agent}")
        return {"user_agent": user_agent, "viewport": viewport}
