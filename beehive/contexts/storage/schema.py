"""
Table layout for stored job listings.

Storage owns the column set and the upsert rules. Writers hand over plain
field dicts; this module decides which of those columns an update may touch.
"""

from typing import Dict, List

JOBS_COLUMNS: Dict[str, str] = {
    "title": "TEXT NOT NULL",
    "company": "TEXT NOT NULL DEFAULT ''",
    "location": "TEXT NOT NULL DEFAULT ''",
    "description": "TEXT NOT NULL DEFAULT ''",
    "salary": "TEXT",
    "job_type": "TEXT",
    "category": "TEXT",
    "apply_url": "TEXT NOT NULL DEFAULT ''",
    "posted_date": "DATE",
    "source": "TEXT NOT NULL",
    "source_id": "TEXT NOT NULL",
}

KEY_COLUMNS = ("source", "source_id")

# Refreshed on every re-crawl of a listing
UPDATE_COLUMNS = (
    "title",
    "company",
    "location",
    "description",
    "salary",
    "apply_url",
    "posted_date",
)

# Inferred once, when the row is created
CREATE_ONLY_COLUMNS = ("job_type", "category")


def build_create_table_sql(table: str = "jobs") -> str:
    """DDL for the jobs table, including the natural-key constraint."""
    column_lines = [f"    {name} {ddl}" for name, ddl in JOBS_COLUMNS.items()]
    lines = (
        ["    id SERIAL PRIMARY KEY"]
        + column_lines
        + [
            "    created_at TIMESTAMP NOT NULL DEFAULT NOW()",
            "    updated_at TIMESTAMP NOT NULL DEFAULT NOW()",
            f"    UNIQUE ({', '.join(KEY_COLUMNS)})",
        ]
    )
    return f"CREATE TABLE IF NOT EXISTS {table} (\n" + ",\n".join(lines) + "\n);"


def upsert_columns(fields: dict) -> List[str]:
    """
    Columns to write for an upsert, in table order.

    Raises:
        KeyError: If fields contains a column the table does not have
    """
    unknown = [name for name in fields if name not in JOBS_COLUMNS or name in KEY_COLUMNS]
    if unknown:
        raise KeyError(
            f"Fields {unknown} are not writable columns. "
            f"Available fields: {[c for c in JOBS_COLUMNS if c not in KEY_COLUMNS]}"
        )
    return list(KEY_COLUMNS) + [name for name in JOBS_COLUMNS if name in fields]


def build_upsert_sql(fields: dict, table: str = "jobs") -> str:
    """
    INSERT ... ON CONFLICT statement for one row, with %s placeholders.

    The conflict branch only refreshes UPDATE_COLUMNS present in fields, plus
    updated_at. CREATE_ONLY_COLUMNS are never part of the SET clause.
    """
    columns = upsert_columns(fields)
    placeholders = ", ".join(["%s"] * len(columns))
    set_clauses = [f"{name} = EXCLUDED.{name}" for name in UPDATE_COLUMNS if name in fields]
    set_clauses.append("updated_at = NOW()")
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
        f"ON CONFLICT ({', '.join(KEY_COLUMNS)}) DO UPDATE SET {', '.join(set_clauses)};"
    )
