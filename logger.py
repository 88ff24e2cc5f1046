"""Logging configuration for Ledgerly.

One application logger named "ledgerly". The CLI attaches a dated log file and
the console; library code only ever calls get_logger().
"""

import logging
from datetime import date
from config import Config

LOGGER_NAME = "ledgerly"


def setup_logging(config: Config, console: bool = True) -> logging.Logger:
    """Attach file and console handlers to the application logger.

    Args:
        config: Application configuration containing log settings.
        console: Whether to echo log records to the terminal.

    Returns:
        Configured logger instance.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)
    level = config.log_level.upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Calling this twice (e.g. after reconfiguring) must not duplicate output
    logger.handlers.clear()

    file_handler = logging.FileHandler(
        config.log_dir / f"{LOGGER_NAME}-{date.today().isoformat()}.log"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(console_handler)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger."""
    return logging.getLogger(LOGGER_NAME)
