#!/usr/bin/env python3

import sys
from dataclasses import replace
from pathlib import Path

from config import get_config_path, validate_config, write_config
from db.client import init_backend, test_connection
from logger import get_logger
from services.errors import ConfigurationError

logger = get_logger()


def cmd_show(args, services):
    """Print the active configuration."""
    config = services.config

    logger.info(f"\nConfiguration file: {get_config_path()}")
    logger.info("=" * 80)
    logger.info(f"Base directory:    {config.base_dir}")
    logger.info(f"Database:          {config.db_path} (timeout {config.db_timeout}s)")
    logger.info(f"Log level:         {config.log_level}")
    logger.info(f"Log directory:     {config.log_dir}")
    logger.info(f"Export directory:  {config.export_dir}")
    logger.info(f"Cash counter dir:  {config.cash_counter_dir}")
    logger.info(f"App URL:           {config.app_url}")
    logger.info(f"Signed-in email:   {config.user_email or '(none)'}")


def cmd_validate(args, services):
    """Validate the configuration and exit non-zero on errors."""
    errors = validate_config(services.config)
    if errors:
        raise ConfigurationError(errors)

    logger.info("✓ Configuration is valid")


def cmd_test(args, services):
    """Check that the configured database can be opened."""
    if test_connection(services.config):
        logger.info(f"✓ Database reachable at {services.config.db_path}")
    else:
        logger.error(f"✗ Could not open database at {services.config.db_path}")
        sys.exit(1)


def cmd_set(args, services):
    """Update configuration values and save them."""
    changes = {}
    if args.data_dir:
        changes["db_data_dir"] = Path(args.data_dir).expanduser()
    if args.filename:
        changes["db_filename"] = args.filename
    if args.url:
        changes["app_url"] = args.url
    if args.log_level:
        changes["log_level"] = args.log_level.upper()
    if args.export_dir:
        changes["export_dir"] = Path(args.export_dir).expanduser()

    if not changes:
        logger.info("Nothing to change.")
        return

    config = replace(services.config, **changes)
    errors = validate_config(config)
    if errors:
        raise ConfigurationError(errors)

    write_config(config)
    init_backend(config)
    logger.info(f"✓ Saved configuration to {get_config_path()}")


def setup_parser(subparsers):
    """Setup config subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "config",
        help="Show, validate and edit configuration",
        description="Inspect and change ~/.config/ledgerly.toml",
    )

    config_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available config commands",
        dest="subcommand",
        required=True,
    )

    show_parser = config_subparsers.add_parser("show", help="Show configuration")
    show_parser.set_defaults(func=cmd_show)

    validate_parser = config_subparsers.add_parser(
        "validate", help="Validate configuration values"
    )
    validate_parser.set_defaults(func=cmd_validate)

    test_parser = config_subparsers.add_parser(
        "test", help="Test the database connection"
    )
    test_parser.set_defaults(func=cmd_test)

    set_parser = config_subparsers.add_parser("set", help="Change configuration values")
    set_parser.add_argument("--data-dir", help="Database directory")
    set_parser.add_argument("--filename", help="Database file name")
    set_parser.add_argument("--url", help="Application URL used in invite links")
    set_parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    set_parser.add_argument("--export-dir", help="Directory for CSV exports")
    set_parser.set_defaults(func=cmd_set)
