"""Shared pytest fixtures for all tests."""

import sqlite3
import pytest
from pathlib import Path

from config import Config, get_migrations_dir
from models.project import Role
from services.base import Services
from tests.helpers import run_migrations


@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing.

    Yields:
        sqlite3.Connection: Connection to in-memory database.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration pointing to a temporary directory.

    Args:
        tmp_path: pytest tmp_path fixture for temporary directory.

    Returns:
        Config: Test configuration object.
    """
    base_dir = tmp_path / "ledgerly"
    return Config(
        base_dir=base_dir,
        db_data_dir=base_dir / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=base_dir / "logs",
        export_dir=base_dir / "exports",
        cash_counter_dir=base_dir / "cash_counter",
        user_email="owner@example.com",
        user_name="Owner",
    )


@pytest.fixture
def db_manager_with_schema(test_db):
    """Create a DatabaseManager with schema already set up.

    This fixture provides a DatabaseManager that uses an in-memory database
    with all migrations already applied.

    Args:
        test_db: In-memory database connection fixture.

    Returns:
        DatabaseManager: Database manager with schema ready.
    """
    run_migrations(test_db, get_migrations_dir())

    class TestDatabaseManager:
        """Test database manager that uses in-memory connection."""

        def __init__(self, conn):
            self.conn = conn

        def connect(self):
            """Return a context manager for the test connection."""
            return _TestConnectionContext(self.conn)

        def get_db_path(self):
            """Return a fake path for the test database."""
            return Path(":memory:")

        def get_migrations_dir(self):
            """Get the migrations directory path."""
            return get_migrations_dir()

    class _TestConnectionContext:
        """Context manager for test database connections."""

        def __init__(self, conn):
            self.conn = conn

        def __enter__(self):
            return self.conn

        def __exit__(self, exc_type, exc_val, exc_tb):
            # Don't close the connection - let the fixture handle it
            pass

    return TestDatabaseManager(test_db)


@pytest.fixture
def services(test_config, db_manager_with_schema):
    """Services container signed in as the project owner.

    Args:
        test_config: Test configuration fixture.
        db_manager_with_schema: Database manager with schema set up.

    Returns:
        Services: Services container for testing.
    """
    services = Services(test_config, db_manager=db_manager_with_schema)
    services.auth.sign_in("owner@example.com", "Owner")
    return services


@pytest.fixture
def project(services):
    """An empty project owned by the signed-in user."""
    return services.projects.create("Household", "Shared costs")


@pytest.fixture
def make_services(test_config, db_manager_with_schema):
    """Factory for extra Services containers signed in as other users.

    Each container has its own session on the same database, so tests can
    act as several users at once.
    """

    def _make(email, name=None):
        other = Services(test_config, db_manager=db_manager_with_schema)
        other.auth.sign_in(email, name)
        return other

    return _make


@pytest.fixture
def viewer_services(services, project, make_services):
    """Services signed in as a viewer of the project fixture."""
    viewer = make_services("viewer@example.com", "Viewer")
    services.members.add(project.id, viewer.session.user_id, Role.VIEWER)
    return viewer
