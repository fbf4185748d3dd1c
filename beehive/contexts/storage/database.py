"""
Upsert store contract for BEEHIVE.

The crawl engine writes through `DatabaseWrapper.upsert` only; reads
(`count_rows`, `export_df`) serve orchestration and ad-hoc analysis.
"""

import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import pandas as pd
from dotenv import load_dotenv

from beehive.contexts.storage.config import get_postgres_credentials

load_dotenv()
DATABASE_NAME = os.getenv("DATABASE_NAME", "beehive")

# Table names are interpolated into SQL, so only plain identifiers are accepted
_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass
class DatabaseConfig:
    """Where the jobs table lives."""

    host: str
    port: int
    user: str
    password: str
    name: str
    table: str = "jobs"

    def __post_init__(self):
        if not self.name:
            raise ValueError("Database name is required")
        if not _TABLE_NAME.match(self.table):
            raise ValueError(f"Invalid table name '{self.table}'")

    @classmethod
    def from_env(cls, name: Optional[str] = None, table: str = "jobs") -> "DatabaseConfig":
        """Credentials from POSTGRES_*; database name from `name` or DATABASE_NAME."""
        return cls(name=name or DATABASE_NAME, table=table, **get_postgres_credentials())

    @property
    def connection_string(self) -> str:
        """SQLAlchemy URL for this database."""
        return f"postgresql+psycopg2://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class DatabaseWrapper(ABC):
    """
    Keyed store for job rows.

    Subclasses implement one backend. Rows are identified by the natural key
    (source, source_id); there is no delete.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config

    @abstractmethod
    def connect(self):
        """Open a new backend connection."""

    @abstractmethod
    def upsert(self, key: dict, fields: dict) -> None:
        """
        Create the row identified by key, or update it if it already exists.

        Atomic for a single row. The update path refreshes the listing fields
        (see schema.UPDATE_COLUMNS) and never the classification fields set
        when the row was created.

        Args:
            key: {"source": ..., "source_id": ...}, both non-empty
            fields: Column values excluding the key
        """

    @abstractmethod
    def count_rows(self) -> int:
        pass

    @abstractmethod
    def export_df(self, query: Optional[str] = None) -> pd.DataFrame:
        """Rows of `query` (default: the whole table) as a DataFrame."""

    @abstractmethod
    def ensure_table(self) -> None:
        """Create the table and its natural-key constraint if missing."""

    @staticmethod
    @abstractmethod
    def _db_exists(config: DatabaseConfig) -> bool:
        pass

    @staticmethod
    @abstractmethod
    def _create_db(config: DatabaseConfig) -> None:
        pass

    @classmethod
    def from_config(cls, config: DatabaseConfig, ensure_exists: bool = False) -> "DatabaseWrapper":
        """
        Build a wrapper for config.

        With ensure_exists, the database is created if absent and the table
        is created if absent, so the first crawl needs no manual setup.
        """
        if ensure_exists and not cls._db_exists(config):
            cls._create_db(config)
        wrapper = cls(config)
        if ensure_exists:
            wrapper.ensure_table()
        return wrapper
