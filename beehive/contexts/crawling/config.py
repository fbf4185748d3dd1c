"""
Crawl configuration.

Built-in defaults, overridden by CONFIG_PATH/crawl.yaml when that file exists
(or by an explicit path). Everything downstream reads the merged DictConfig.
"""

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from omegaconf.dictconfig import DictConfig

from beehive.utils.config_helpers import merge_configs

load_dotenv()
CONFIG_PATH = Path(os.getenv("CONFIG_PATH", "config"))

DEFAULTS = {
    "target": {
        "base_url": "https://www.indeed.com",
        "source": "indeed",
    },
    "crawl": {
        "location": "remote",
        "max_pages": 3,
        "max_description_length": 2000,
    },
    # milliseconds
    "retry": {
        "max_retries": 3,
        "base_delay": 1000,
        "max_delay": 30000,
        "backoff_factor": 2,
    },
    # seconds
    "pacing": {
        "detail_visit": {"min_seconds": 1.0, "max_seconds": 3.0},
        "page": {"min_seconds": 2.0, "max_seconds": 5.0},
    },
    "stealth": {
        "enabled": True,
        # Empty lists mean "use the built-in pools"
        "user_agents": [],
        "viewports": [],
    },
    "browser": {
        "headless": True,
        "launch_args": ["--no-sandbox", "--disable-setuid-sandbox"],
        "navigation_timeout_ms": 30000,
        "render_timeout_ms": 15000,
        "detail_timeout_ms": 15000,
        "screenshot_dir": "",
    },
}


def load_crawl_config(path: Optional[Union[str, Path]] = None, **overrides) -> DictConfig:
    """
    Load the crawl configuration.

    Args:
        path: YAML file to merge over the defaults. When None, CONFIG_PATH/crawl.yaml
              is used if it exists.
        **overrides: Section dicts merged last, e.g. pacing={"page": {"min_seconds": 0}}

    Raises:
        FileNotFoundError: If an explicit path does not exist
    """
    sources = [DEFAULTS]

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Crawl config {path} does not exist")
        sources.append(path)
    elif (CONFIG_PATH / "crawl.yaml").exists():
        sources.append(CONFIG_PATH / "crawl.yaml")

    if overrides:
        sources.append(overrides)

    return merge_configs(sources)
