import pytest

from db import client
from services.errors import BackendNotInitializedError


@pytest.fixture(autouse=True)
def clean_backend():
    client.reset_backend()
    yield
    client.reset_backend()


class TestBackendHandle:
    """Tests for the process-wide backend handle."""

    def test_get_before_init(self):
        with pytest.raises(BackendNotInitializedError):
            client.get_backend()

    def test_init_returns_same_handle(self, test_config):
        first = client.init_backend(test_config)

        assert client.init_backend(test_config) is first
        assert client.get_backend() is first

    def test_reconfigure_replaces_handle(self, test_config, tmp_path):
        first = client.init_backend(test_config)
        other = test_config.with_database(tmp_path / "other", "other.db")

        second = client.init_backend(other)

        assert second is not first
        assert client.get_backend() is second
        assert second.get_db_path() == tmp_path / "other" / "other.db"

    def test_reset(self, test_config):
        client.init_backend(test_config)
        client.reset_backend()

        with pytest.raises(BackendNotInitializedError):
            client.get_backend()


class TestConnection:
    """Tests for test_connection."""

    def test_fresh_database_is_reachable(self, test_config):
        assert client.test_connection(test_config) is True
        assert test_config.db_path.exists()

    def test_unopenable_database(self, test_config, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        # The database directory cannot be created below a regular file
        broken = test_config.with_database(blocker, "x.db")

        assert client.test_connection(broken) is False
