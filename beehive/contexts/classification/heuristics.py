"""
Keyword heuristics for backfilling job type and category.

Both functions are pure: lower-case substring checks over "title description",
rules tried in order, first match wins.
"""

from typing import Sequence, Tuple

FULL_TIME = "full-time"
PART_TIME = "part-time"
CONTRACT = "contract"
INTERNSHIP = "internship"
FREELANCE = "freelance"

DEFAULT_JOB_TYPE = FULL_TIME
DEFAULT_CATEGORY = "Other"

# Each rule: (label, keywords that must ALL appear)
JOB_TYPE_RULES: Sequence[Tuple[str, Tuple[str, ...]]] = (
    (FULL_TIME, ("full", "time")),
    (PART_TIME, ("part", "time")),
    (CONTRACT, ("contract",)),
    (INTERNSHIP, ("intern",)),
    (FREELANCE, ("freelance",)),
)

# Each rule: (label, keywords of which ANY may appear)
CATEGORY_RULES: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("Engineering", ("software", "developer", "engineer", "programming")),
    ("Marketing", ("market",)),
    ("Sales", ("sale",)),
    ("Design", ("design", "ui", "ux")),
    ("Product", ("product", "pm")),
    ("Data", ("data", "analyst", "science")),
    ("DevOps", ("devops", "sre")),
)


def _searchable_text(title: str, description: str) -> str:
    return f"{title or ''} {description or ''}".lower()


def infer_job_type(title: str, description: str) -> str:
    """
    Infer employment type from listing text.

    Args:
        title: Job title
        description: Job description (may be empty)

    Returns:
        One of full-time, part-time, contract, internship, freelance.
        Defaults to full-time when nothing matches.

    Example:
        >>> infer_job_type("Senior Backend Engineer (Full Time)", "")
        'full-time'
    """
    text = _searchable_text(title, description)
    for job_type, keywords in JOB_TYPE_RULES:
        if all(keyword in text for keyword in keywords):
            return job_type
    return DEFAULT_JOB_TYPE


def infer_category(title: str, description: str) -> str:
    """
    Infer a coarse job category from listing text.

    Example:
        >>> infer_category("UX Designer", "")
        'Design'
    """
    text = _searchable_text(title, description)
    for category, keywords in CATEGORY_RULES:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY
