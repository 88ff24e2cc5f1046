from dataclasses import replace
from pathlib import Path

import pytest

import config as config_module
from config import Config, load_config, validate_config, write_config


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    path = tmp_path / ".config" / "ledgerly.toml"
    monkeypatch.setattr(config_module, "get_config_path", lambda: path)
    return path


class TestValidateConfig:
    """Tests for validate_config."""

    def test_valid(self, test_config):
        assert validate_config(test_config) == []

    @pytest.mark.parametrize(
        "changes,message",
        [
            ({"db_filename": ""}, "Database filename is required"),
            ({"log_level": "LOUD"}, "Invalid log level: LOUD"),
            ({"app_url": "not a url"}, "Invalid app URL format"),
            ({"app_url": "ftp://example.com"}, "Invalid app URL format"),
            ({"app_url": ""}, "App URL is required"),
            ({"user_email": "nobody"}, "Invalid user email: nobody"),
            ({"db_timeout": 0}, "Database timeout must be positive"),
        ],
    )
    def test_errors(self, test_config, changes, message):
        assert message in validate_config(replace(test_config, **changes))

    def test_collects_every_error(self, test_config):
        broken = replace(test_config, db_filename="", log_level="LOUD")

        assert len(validate_config(broken)) == 2


class TestLoadConfig:
    """Tests for reading and writing the TOML file."""

    def test_missing_file_writes_defaults(self, config_path):
        config = load_config()

        assert config_path.exists()
        assert config.db_filename == "ledgerly.db"
        assert config.app_url == "http://localhost:5173"

    def test_round_trip(self, config_path, test_config):
        write_config(test_config)

        loaded = load_config()

        assert loaded == test_config

    def test_partial_file_uses_defaults(self, config_path, tmp_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text(
            f'base_dir = "{tmp_path}"\n\n[database]\nfilename = "mine.db"\n'
        )

        loaded = load_config()

        assert loaded.db_path == tmp_path / "db" / "mine.db"
        assert loaded.export_dir == tmp_path / "exports"
        assert loaded.log_level == "INFO"
        assert loaded.user_email == ""

    def test_with_database(self, test_config, tmp_path):
        moved = test_config.with_database(tmp_path / "x", "y.db")

        assert moved.db_path == Path(tmp_path / "x" / "y.db")
        assert test_config.db_filename == "test.db"

    def test_default_paths(self):
        config = Config.default()

        assert config.db_path == config.base_dir / "db" / "ledgerly.db"
        assert config.enable_reset is False
