"""
Data storage domain.

Handles persistence of crawled job listings to PostgreSQL.

Public API exports only the interfaces needed by other contexts.
Credentials and implementation details remain private.
"""

from beehive.contexts.storage.database import (
    DatabaseConfig,
    DatabaseWrapper,
)
from beehive.contexts.storage.getter import (
    get_database_wrapper,
)
from beehive.contexts.storage.schema import (
    CREATE_ONLY_COLUMNS,
    UPDATE_COLUMNS,
)

__all__ = [
    # Factory function (primary interface)
    "get_database_wrapper",
    # Generic interfaces
    "DatabaseWrapper",
    "DatabaseConfig",
    # Upsert rules
    "UPDATE_COLUMNS",
    "CREATE_ONLY_COLUMNS",
]
