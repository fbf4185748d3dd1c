"""Failure types and the transient/fatal classifier shared by the crawl engine."""

from typing import Optional

TRANSIENT = "transient"
FATAL = "fatal"
SUCCESS = "success"

TransientCodeSet = (408, 425, 429, 500, 502, 503, 504)

# Chromium's network error codes, as they appear in Playwright error messages
ChromiumNetworkErrors = (
    "net::ERR_CONNECTION_RESET",
    "net::ERR_CONNECTION_REFUSED",
    "net::ERR_CONNECTION_CLOSED",
    "net::ERR_CONNECTION_TIMED_OUT",
    "net::ERR_NAME_NOT_RESOLVED",
    "net::ERR_INTERNET_DISCONNECTED",
    "net::ERR_NETWORK_CHANGED",
)

class FailureKind:
    TIMEOUT = "timeout"
    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    SESSION_CLOSED = "session_closed"
    SOFT_BLOCK = "soft_block"
    MISSING_SOURCE_ID = "missing_source_id"
    UNKNOWN = "unknown"


TransientKinds = frozenset({
    FailureKind.TIMEOUT,
    FailureKind.NETWORK,
    FailureKind.RATE_LIMITED,
    FailureKind.SERVER_ERROR,
    FailureKind.SESSION_CLOSED,
    FailureKind.SOFT_BLOCK,
    FailureKind.MISSING_SOURCE_ID,
})

# Matched against the lower-cased message when no structured signal is available
TransientMessageMarkers = (
    # network
    "timeout",
    "network",
    "econnreset",
    "econnrefused",
    "eai_again",
    "socket",
    "navigation timeout",
    *(code.lower() for code in ChromiumNetworkErrors),
    # rate limiting
    "rate limit",
    "too many requests",
    "429",
    "5xx",
    # browser session
    "target closed",
    "session closed",
    "detached from target",
    # soft blocking
    "captcha",
    "blocked",
    "access denied",
)


class CrawlFailure(Exception):
    """A failure raised by crawl components, carrying a kind and optional code."""

    def __init__(self, message: str, kind: str = FailureKind.UNKNOWN, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code

    def __str__(self):
        return f"[{self.kind}] {self.message}"


class RetryExhaustedError(Exception):
    """Raised by the retry executor once an operation has no attempts left."""

    def __init__(self, label: str, attempts: int, last_error: BaseException):
        super().__init__(f"{label} failed after {attempts} attempt(s): {last_error}")
        self.label = label
        self.attempts = attempts
        self.last_error = last_error


def classify_http_outcome(status_code: int) -> str:
    if 200 <= status_code < 300:
        return SUCCESS
    if status_code in TransientCodeSet:
        return TRANSIENT
    return FATAL


def classify(failure) -> str:
    """
    Label a failure as TRANSIENT or FATAL.

    Structured signals win: a transient CrawlFailure kind or a transient HTTP
    code. Otherwise the lower-cased message is searched for known network,
    rate-limit, browser-session and soft-block markers. Anything unrecognised
    is FATAL.
    """
    if failure is None:
        return FATAL

    if isinstance(failure, CrawlFailure):
        if failure.kind in TransientKinds:
            return TRANSIENT
        if failure.code is not None and classify_http_outcome(failure.code) == TRANSIENT:
            return TRANSIENT

    message = str(failure).lower()
    if any(marker in message for marker in TransientMessageMarkers):
        return TRANSIENT

    return FATAL


def is_transient(failure) -> bool:
    return classify(failure) == TRANSIENT
