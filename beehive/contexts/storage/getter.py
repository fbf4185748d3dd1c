import os
from typing import Optional

from dotenv import load_dotenv

from beehive.contexts.storage.database import DatabaseWrapper, DatabaseConfig
from beehive.contexts.storage.postgres import PostgreSQLWrapper

load_dotenv()

backend_class_map = {"postgres": PostgreSQLWrapper}
ALLOWED_BACKENDS = list(backend_class_map.keys())


def get_database_wrapper(
    config: Optional[DatabaseConfig] = None,
    ensure_exists: bool = False,
    backend: Optional[str] = None,
) -> DatabaseWrapper:
    """
    Build the upsert store for the configured backend.

    Args:
        config: Connection details (default: DatabaseConfig.from_env())
        ensure_exists: Create the database and jobs table when missing
        backend: Backend name (default: DATABASE_BACKEND env var), case-insensitive

    Raises:
        ValueError: If no backend is configured or it is not supported
        EnvironmentError: If config is omitted and credentials are missing
    """
    backend = backend or os.getenv("DATABASE_BACKEND")
    if not backend:
        raise ValueError(
            "DATABASE_BACKEND environment variable not set. "
            f"Set it in your .env file to one of: {', '.join(ALLOWED_BACKENDS)}"
        )

    wrapper_class = backend_class_map.get(backend.lower())
    if wrapper_class is None:
        raise ValueError(f"Unsupported database backend: '{backend}'. Supported backends: {', '.join(ALLOWED_BACKENDS)}")

    return wrapper_class.from_config(config or DatabaseConfig.from_env(), ensure_exists=ensure_exists)
