"""Hands a page's enriched JobRecords to the upsert store."""

from typing import Iterable, List

from loguru import logger

from beehive.contexts.classification import infer_category, infer_job_type
from beehive.contexts.crawling.models import JobRecord
from beehive.contexts.storage import DatabaseWrapper

SOURCE = "indeed"


def record_to_fields(record: JobRecord) -> dict:
    """
    Row values for a record, excluding the (source, source_id) key.

    job_type and category are inferred from the text when the record has
    none; the store only writes them when it creates the row.
    """
    return {
        "title": record.title,
        "company": record.company,
        "location": record.location,
        "description": record.description,
        "salary": record.salary or "",
        "job_type": record.job_type or infer_job_type(record.title, record.description),
        "category": record.category or infer_category(record.title, record.description),
        "apply_url": record.apply_url,
        "posted_date": record.posted_date,
    }


class PersistenceAdapter:
    def __init__(self, store: DatabaseWrapper, source: str = SOURCE):
        self.store = store
        self.source = source

    def save(self, records: Iterable[JobRecord]) -> int:
        """
        Upsert every record keyed by (source, source_id). Returns the number written.

        The whole batch is checked for source ids before anything is written.
        Store errors propagate; upserts are idempotent so the batch can be retried.
        """
        records: List[JobRecord] = list(records)
        missing = [r.title for r in records if not r.source_id]
        if missing:
            raise ValueError(f"Refusing to store {len(missing)} record(s) without a source id: {missing}")

        for record in records:
            key = {"source": self.source, "source_id": record.source_id}
            self.store.upsert(key, record_to_fields(record))
            logger.debug(f"Saved job: {record.title}")

        return len(records)
