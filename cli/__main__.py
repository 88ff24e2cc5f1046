#!/usr/bin/env python3
"""
Ledgerly CLI - Unified command-line interface for shared budgets.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    config       Show, validate and edit configuration
    auth         Sign in and out
    projects     Manage projects and their settings
    categories   Manage project categories
    fields       Manage custom transaction fields
    transactions Record, list, chart and export transactions
    invitations  Invite collaborators and accept invitations
    cash         Daily cash-count worksheet
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli auth login alice@example.com
    python -m cli projects create "Household" --template household
    python -m cli transactions add 1 42.50 --category Groceries
    python -m cli transactions list 1 --period last30days --sort amount
"""

import sys
import locale
import argparse
from cli import (
    auth,
    cash,
    categories,
    configure,
    fields,
    invitations,
    migrate,
    projects,
    transactions,
)
from config import load_config
from db.client import init_backend
from services.base import Services
from services.errors import ConfigurationError
from logger import get_logger, setup_logging

logger = get_logger()

# Commands that run without a signed-in user
_ANONYMOUS_COMMANDS = ("config", "auth", "migrate")


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Ledgerly - Shared budgets and transaction tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Create subparsers for each command
    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    # Register each command's subparser
    configure.setup_parser(subparsers)
    auth.setup_parser(subparsers)
    projects.setup_parser(subparsers)
    categories.setup_parser(subparsers)
    fields.setup_parser(subparsers)
    transactions.setup_parser(subparsers)
    invitations.setup_parser(subparsers)
    cash.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config()
        setup_logging(config)

        try:
            locale.setlocale(locale.LC_COLLATE, "")
        except locale.Error as e:
            logger.debug(f"Using default collation: {e}")

        db_manager = init_backend(config)

        if args.command == "migrate":
            # Migrations work on the raw database
            args.func(args, db_manager)
            return

        services = Services(config, db_manager=db_manager)

        if config.user_email:
            services.auth.sign_in(config.user_email, config.user_name or None)
        elif args.command not in _ANONYMOUS_COMMANDS:
            logger.error("Not signed in. Run 'python -m cli auth login <email>' first.")
            sys.exit(1)

        args.func(args, services)
    except ConfigurationError as e:
        for error in e.errors:
            logger.error(f"✗ {error}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
