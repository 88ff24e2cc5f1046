from argparse import Namespace
from dataclasses import replace

import pytest

from cli import configure
from services.errors import ConfigurationError


class _Container:
    def __init__(self, config):
        self.config = config


def _set_args(**overrides):
    args = dict(data_dir=None, filename=None, url=None, log_level=None, export_dir=None)
    args.update(overrides)
    return Namespace(**args)


class TestConfigureCommands:
    """Tests for the config subcommands."""

    def test_validate_raises_with_every_error(self, test_config):
        broken = replace(test_config, db_filename="", log_level="LOUD")

        with pytest.raises(ConfigurationError) as excinfo:
            configure.cmd_validate(Namespace(), _Container(broken))

        assert excinfo.value.errors == [
            "Database filename is required",
            "Invalid log level: LOUD",
        ]

    def test_validate_accepts_good_config(self, test_config):
        configure.cmd_validate(Namespace(), _Container(test_config))

    def test_set_rejects_bad_url_without_saving(self, test_config, monkeypatch):
        saved = []
        monkeypatch.setattr(configure, "write_config", saved.append)

        with pytest.raises(ConfigurationError):
            configure.cmd_set(_set_args(url="not a url"), _Container(test_config))

        assert saved == []
