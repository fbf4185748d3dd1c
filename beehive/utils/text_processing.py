"""
Text processing utilities for BEEHIVE.

Small helpers for cleaning text pulled out of rendered pages.
"""

import re

_WHITESPACE_RUN = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES = re.compile(r"\n\s*\n+")


def normalize_whitespace(text: str) -> str:
    """
    Collapse runs of spaces/tabs and repeated blank lines, and strip the ends.

    Single newlines are kept so paragraph structure survives.

    Example:
        >>> normalize_whitespace("  Build   things\\n\\n\\n  ship them ")
        "Build things\\n\\nship them"
    """
    if not text:
        return ""
    text = _WHITESPACE_RUN.sub(" ", text)
    text = _BLANK_LINES.sub("\n\n", text)
    return "\n".join(line.strip() for line in text.split("\n")).strip()


def truncate_text(text: str, max_length: int) -> str:
    """
    Cut text to at most max_length characters.

    Raises:
        ValueError: If max_length is negative
    """
    if max_length < 0:
        raise ValueError("max_length must be non-negative")
    return (text or "")[:max_length]
