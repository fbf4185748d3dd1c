"""Value objects handed between the crawl components."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class JobRecord:
    title: str
    company: str
    location: str
    apply_url: str
    posted_date: str
    source_id: str
    description: str = ""
    salary: Optional[str] = None
    job_type: Optional[str] = None
    category: Optional[str] = None


@dataclass
class ListingResult:
    """Records from one listings page; blocked=True means the site served a soft block."""

    records: List[JobRecord] = field(default_factory=list)
    blocked: bool = False

    def __len__(self):
        return len(self.records)


@dataclass
class CrawlResult:
    status: str
    reason: Optional[str] = None
    pages_crawled: int = 0
    records_processed: int = 0
