"""
PostgreSQL-specific database operations for BEEHIVE.

Provides:
- Database creation and existence checking
- PostgreSQL implementation of DatabaseWrapper, including the keyed upsert
"""

import psycopg2
from psycopg2 import sql
import pandas as pd
from loguru import logger
from sqlalchemy import create_engine

from beehive.contexts.storage.database import DatabaseWrapper, DatabaseConfig
from beehive.contexts.storage.schema import (
    KEY_COLUMNS,
    build_create_table_sql,
    build_upsert_sql,
    upsert_columns,
)


class PostgreSQLWrapper(DatabaseWrapper):
    """
    PostgreSQL implementation of DatabaseWrapper.

    Provides connection management and common query patterns for PostgreSQL.
    """

    def connect(self):
        """Create a new PostgreSQL database connection."""
        return psycopg2.connect(
            dbname=self.config.name,
            host=self.config.host,
            user=self.config.user,
            port=self.config.port,
            password=self.config.password,
        )

    def _query(self, query, params=None):
        """Execute a query and return first column values."""
        conn = self.connect()
        try:
            cur = conn.cursor()
            cur.execute(query, params)
            values = cur.fetchall()
            cur.close()
        finally:
            conn.close()
        return [val[0] for val in values]

    def _execute(self, statement, params=None) -> None:
        """Run one statement in its own transaction."""
        conn = self.connect()
        cursor = conn.cursor()
        try:
            cursor.execute(statement, params)
            conn.commit()
        except Exception:
            # Reverts the partial write so a retry starts from a clean slate
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def ensure_table(self) -> None:
        self._execute(build_create_table_sql(self.config.table))

    def upsert(self, key: dict, fields: dict) -> None:
        """Single-statement INSERT ... ON CONFLICT keyed on (source, source_id)."""
        missing = [name for name in KEY_COLUMNS if not key.get(name)]
        if missing:
            raise ValueError(f"Upsert key is missing {missing}")

        statement = build_upsert_sql(fields, table=self.config.table)
        columns = upsert_columns(fields)
        values = [key[name] if name in KEY_COLUMNS else fields[name] for name in columns]
        self._execute(statement, values)
        logger.debug(f"Upserted {key['source']}:{key['source_id']} into {self.config.table}")

    def count_rows(self) -> int:
        count_query = sql.SQL("SELECT COUNT(*) FROM {};").format(sql.Identifier(self.config.table))
        return self._query(count_query)[0]

    def export_df(self, query: str = None) -> pd.DataFrame:
        """Execute a query and return results as a pandas DataFrame."""
        query = query if query is not None else f"SELECT * FROM {self.config.table}"
        engine = create_engine(self.config.connection_string)
        try:
            return pd.read_sql_query(query, engine)
        finally:
            engine.dispose()

    @staticmethod
    def _db_exists(config: DatabaseConfig) -> bool:
        """Check if a PostgreSQL database exists."""
        conn = psycopg2.connect(
            database="postgres",
            user=config.user,
            password=config.password,
            host=config.host,
            port=config.port,
        )
        cursor = conn.cursor()
        cursor.execute("SELECT 1 FROM pg_database WHERE datname = %s;", (config.name,))
        fetched = cursor.fetchone()
        conn.close()
        return fetched is not None

    @staticmethod
    def _create_db(config: DatabaseConfig) -> None:
        """Create a new PostgreSQL database."""
        conn = psycopg2.connect(
            database="postgres",
            user=config.user,
            password=config.password,
            host=config.host,
            port=config.port,
        )

        conn.autocommit = True
        cursor = conn.cursor()
        cursor.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(config.name)))
        logger.info(f"Database named '{config.name}' created successfully")
        conn.close()
