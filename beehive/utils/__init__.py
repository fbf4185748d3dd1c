"""
Shared utility functions.
"""

from beehive.utils.config_helpers import merge_configs
from beehive.utils.text_processing import (
    normalize_whitespace,
    truncate_text,
)

__all__ = [
    # Text processing
    "normalize_whitespace",
    "truncate_text",
    # Configuration utilities
    "merge_configs",
]
