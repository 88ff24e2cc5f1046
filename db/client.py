"""Process-wide backend handle.

The CLI and scripts share one DatabaseManager. It is created on first use,
handed out by get_backend(), and replaced (never stacked) when the
configuration changes.
"""

import sqlite3
from typing import Optional

from config import Config
from db.manager import DatabaseManager
from logger import get_logger
from services.errors import BackendNotInitializedError

logger = get_logger()

_backend: Optional[DatabaseManager] = None


def init_backend(config: Config) -> DatabaseManager:
    """Create the backend handle, or return the existing one.

    If a handle already exists for a different database file, it is torn down
    and replaced.

    Args:
        config: Application configuration.

    Returns:
        The active DatabaseManager.
    """
    global _backend

    if _backend is not None:
        if _backend.config.db_path == config.db_path:
            return _backend
        logger.info(
            f"Backend reconfigured: {_backend.config.db_path} -> {config.db_path}"
        )
        reset_backend()

    _backend = DatabaseManager(config)
    logger.debug(f"Backend ready at {config.db_path}")
    return _backend


def get_backend() -> DatabaseManager:
    """Return the active backend handle.

    Raises:
        BackendNotInitializedError: If init_backend() has not been called.
    """
    if _backend is None:
        raise BackendNotInitializedError(
            "Backend not initialized. Call init_backend first."
        )
    return _backend


def reset_backend() -> None:
    """Drop the active backend handle."""
    global _backend
    _backend = None


def test_connection(config: Config) -> bool:
    """Check that the configured database answers a trivial query.

    A database without tables yet still counts as reachable; the migrations
    have simply not been applied.

    Args:
        config: Configuration to test. The active handle is not touched.

    Returns:
        True if the database could be opened and queried.
    """
    manager = DatabaseManager(config)
    try:
        with manager.connect() as conn:
            conn.execute("SELECT id FROM projects LIMIT 1")
        return True
    except sqlite3.OperationalError as e:
        if "no such table" in str(e):
            return True
        logger.error(f"Connection test failed: {e}")
        return False
    except (sqlite3.Error, OSError) as e:
        logger.error(f"Connection test failed: {e}")
        return False
