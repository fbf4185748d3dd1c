"""
Job classification domain.

Infers job type and category for listings whose source does not provide them.
"""

from beehive.contexts.classification.heuristics import (
    infer_job_type,
    infer_category,
    DEFAULT_JOB_TYPE,
    DEFAULT_CATEGORY,
)

__all__ = [
    "infer_job_type",
    "infer_category",
    "DEFAULT_JOB_TYPE",
    "DEFAULT_CATEGORY",
]
