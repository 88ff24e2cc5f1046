"""Configuration management for Ledgerly.

Reads configuration from ~/.config/ledgerly.toml and creates default config if needed.
"""

import re
from pathlib import Path
from dataclasses import dataclass, replace
from typing import List
from urllib.parse import urlparse
import tomllib
import tomli_w

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    export_dir: Path
    cash_counter_dir: Path
    user_email: str = ""
    user_name: str = ""
    app_url: str = "http://localhost:5173"
    db_timeout: float = 5.0
    enable_reset: bool = False

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "ledgerly"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="ledgerly.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
            export_dir=base_dir / "exports",
            cash_counter_dir=base_dir / "cash_counter",
        )

    def with_database(self, db_data_dir: Path, db_filename: str) -> "Config":
        """Return a copy pointing at another database file."""
        return replace(self, db_data_dir=Path(db_data_dir), db_filename=db_filename)


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "ledgerly.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def get_templates_dir() -> Path:
    """Get the path to the bundled project templates."""
    return Path(__file__).parent / "db" / "seed" / "templates"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        write_config(config)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Parse with defaults for any missing values
    base_dir = Path(data.get("base_dir", Path.home() / "data" / "ledgerly"))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", "ledgerly.db")
    db_timeout = float(db_config.get("timeout", 5.0))

    log_config = data.get("logging", {})
    log_level = log_config.get("level", "INFO")
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    export_config = data.get("export", {})
    export_dir = Path(export_config.get("export_dir", base_dir / "exports"))

    cash_config = data.get("cash_counter", {})
    cash_counter_dir = Path(cash_config.get("storage_dir", base_dir / "cash_counter"))

    user_config = data.get("user", {})
    app_config = data.get("app", {})

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        export_dir=export_dir,
        cash_counter_dir=cash_counter_dir,
        user_email=user_config.get("email", ""),
        user_name=user_config.get("name", ""),
        app_url=app_config.get("url", "http://localhost:5173"),
        db_timeout=db_timeout,
        enable_reset=app_config.get("enable_reset", False),
    )


def validate_config(config: Config) -> List[str]:
    """Check a configuration for values the application cannot work with.

    Args:
        config: Config object to validate.

    Returns:
        List of human-readable error messages. Empty when the config is valid.
    """
    errors = []

    if not config.db_filename:
        errors.append("Database filename is required")

    if config.db_timeout <= 0:
        errors.append("Database timeout must be positive")

    if config.log_level.upper() not in _LOG_LEVELS:
        errors.append(f"Invalid log level: {config.log_level}")

    if not config.app_url:
        errors.append("App URL is required")
    else:
        parsed = urlparse(config.app_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append("Invalid app URL format")

    if config.user_email and not _EMAIL_RE.match(config.user_email):
        errors.append(f"Invalid user email: {config.user_email}")

    return errors


def write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()

    # Ensure config directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
            "timeout": config.db_timeout,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "export": {
            "export_dir": str(config.export_dir),
        },
        "cash_counter": {
            "storage_dir": str(config.cash_counter_dir),
        },
        "user": {
            "email": config.user_email,
            "name": config.user_name,
        },
        "app": {
            "url": config.app_url,
            "enable_reset": config.enable_reset,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
