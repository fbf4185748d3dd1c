"""
Run-level wrapper around the Crawler.

- setup_logger: loguru file + console sinks for one run
- run_crawl: resolve config, store and browser factory, crawl once, and
  report the outcome as a plain dict (never raises on crawl failure)
"""

import os
import time
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union

from dotenv import load_dotenv
from loguru import logger

from beehive.contexts.crawling.browser import BrowserSession, PlaywrightSession
from beehive.contexts.crawling.config import load_crawl_config
from beehive.contexts.crawling.crawler import Crawler
from beehive.contexts.storage import DatabaseWrapper, get_database_wrapper

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

FILE_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message} | {extra}"
CONSOLE_LOG_FORMAT = "{time:HH:mm:ss} | {level: <8} | {message}\n"


def setup_logger(log_dir: Path = LOGS_PATH, console_level: str = "INFO") -> Path:
    """
    Send all log records to a fresh crawl_<timestamp>.txt and echo to the console.

    Args:
        log_dir: Directory for log files (default: LOGS_PATH from environment)
        console_level: Minimum level echoed to the console

    Returns:
        Path to the created log file
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"crawl_{datetime.now():%Y%m%d_%H%M%S}.txt"

    logger.remove()
    logger.add(log_file, format=FILE_LOG_FORMAT, level="DEBUG")
    logger.add(lambda msg: print(msg, end=""), format=CONSOLE_LOG_FORMAT, level=console_level)
    return log_file


def _rows_added(store: Optional[DatabaseWrapper], rows_before: Optional[int]) -> int:
    """Net new rows since rows_before; 0 when that cannot be determined."""
    if store is None or rows_before is None:
        return 0
    try:
        return store.count_rows() - rows_before
    except Exception as e:
        logger.warning(f"[crawl] Could not count rows after the run: {e}")
        return 0


def run_crawl(
    location: Optional[str] = None,
    max_pages: Optional[int] = None,
    config_path: Optional[Union[str, Path]] = None,
    headless: Optional[bool] = None,
    verbose: bool = True,
    store: Optional[DatabaseWrapper] = None,
    session_factory: Optional[Callable[[], BrowserSession]] = None,
) -> dict[str, Any]:
    """
    Run a single crawl and summarise it.

    Args:
        location: Location to search (default: crawl.location from config)
        max_pages: Listing pages to crawl (default: crawl.max_pages from config)
        config_path: Crawl YAML to merge over the defaults
        headless: Override browser.headless
        verbose: Log the traceback of a failed run at DEBUG
        store: Upsert store (default: database from environment)
        session_factory: Browser factory (default: Playwright from browser config)

    Returns:
        Dict with keys:
            - status: "success" or "failed"
            - crawl_status: "done" or "stopped_early" (None if failed)
            - reason: Early-stop reason, "blocked" or "exhausted" (if any)
            - records_processed: Records upserted this run
            - rows_added: Net new rows in the store, also reported after a failure
            - time_elapsed: Wall time in seconds
            - error: Error message (if failed)
            - traceback: Full traceback (if failed)
    """
    started = time.time()
    summary = dict.fromkeys(["crawl_status", "reason", "error", "traceback"])
    summary.update(status="failed", records_processed=0, rows_added=0, time_elapsed=0.0)
    rows_before = None

    try:
        config = load_crawl_config(config_path, **({"browser": {"headless": headless}} if headless is not None else {}))
        location = location or config.crawl.location
        max_pages = config.crawl.max_pages if max_pages is None else max_pages

        store = store if store is not None else get_database_wrapper(ensure_exists=True)
        session_factory = session_factory or (lambda: PlaywrightSession.from_config(config.browser))

        logger.info(f"[crawl] Starting (location={location}, max_pages={max_pages})")
        rows_before = store.count_rows()
        outcome = Crawler(session_factory, store, config).crawl(location=location, max_pages=max_pages)

        summary.update(
            status="success",
            crawl_status=outcome.status,
            reason=outcome.reason,
            records_processed=outcome.records_processed,
        )
    except Exception as e:
        summary.update(error=str(e), traceback=traceback.format_exc())

    summary["rows_added"] = _rows_added(store, rows_before)
    summary["time_elapsed"] = time.time() - started

    if summary["status"] == "success":
        logger.success(
            f"[crawl] Completed: {summary['records_processed']} records processed, "
            f"{summary['rows_added']} new rows ({summary['time_elapsed']:.1f}s)"
        )
    else:
        partial = f" after adding {summary['rows_added']} rows" if summary["rows_added"] > 0 else ""
        logger.error(f"[crawl] Failed{partial}: {summary['error']} ({summary['time_elapsed']:.1f}s)")
        if verbose:
            logger.debug(f"[crawl] Traceback:\n{summary['traceback']}")

    return summary
