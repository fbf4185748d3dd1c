"""
Database credentials for the BEEHIVE storage context.

Read from the environment (after loading .env) each time they are requested,
so importing storage never requires a configured database.
"""

import os
from typing import Mapping, Optional

from dotenv import load_dotenv

load_dotenv()

# DatabaseConfig field -> environment variable
CREDENTIAL_ENV_KEYS = {
    "host": "POSTGRES_HOST",
    "port": "POSTGRES_PORT",
    "user": "POSTGRES_USER",
    "password": "POSTGRES_PASSWORD",
}


def get_postgres_credentials(environ: Optional[Mapping[str, str]] = None) -> dict:
    """
    Collect PostgreSQL credentials from the environment.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        Dictionary with host, port (int), user, password

    Raises:
        EnvironmentError: Naming every POSTGRES_* variable that is unset
    """
    environ = os.environ if environ is None else environ

    missing = [env_key for env_key in CREDENTIAL_ENV_KEYS.values() if env_key not in environ]
    if missing:
        raise EnvironmentError(
            f"Required environment variable(s) {', '.join(missing)} not found. "
            "Set them in the environment or in a .env file."
        )

    credentials = {field: environ[env_key] for field, env_key in CREDENTIAL_ENV_KEYS.items()}
    try:
        credentials["port"] = int(credentials["port"])
    except ValueError:
        raise EnvironmentError(f"POSTGRES_PORT must be an integer, got '{credentials['port']}'")
    return credentials
