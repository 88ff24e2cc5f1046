#!/usr/bin/env python3

import sys

from cli.projects import get_project
from logger import get_logger
from tools.cash_counter import CashWorksheet, EntryKind, make_entry, match_status
from tools.charts import summarize

logger = get_logger()


def _parse_counts(pairs):
    """Parse repeated DENOMINATION=COUNT arguments."""
    counts = {}
    for pair in pairs:
        if "=" not in pair:
            logger.error(f"Expected DENOMINATION=COUNT, got '{pair}'")
            sys.exit(1)
        denomination, count = pair.split("=", 1)
        counts[denomination.strip()] = int(count)
    return counts


def _worksheet(services, project_id):
    return CashWorksheet(services.config.cash_counter_dir, project_id).load()


def cmd_show(args, services):
    """Show today's worksheet and compare it with the transactions total."""
    project = get_project(services, args.project_id)
    worksheet = _worksheet(services, project.id)
    currency = project.settings.currency

    if not worksheet.entries:
        logger.info("No cash counted today.")
    for entry in worksheet.entries:
        label = entry.name if entry.kind == EntryKind.NAMED else "Anonymous"
        logger.info(
            f"{entry.id[:8]}  {entry.timestamp:%H:%M}  {label:<20} {currency} {entry.total:.2f}"
        )

    expected = summarize(services.transactions.find_by_project(project.id))["total"]
    status = match_status(worksheet.total, expected)

    logger.info("-" * 80)
    logger.info(f"Counted:      {currency} {worksheet.total:.2f}")
    logger.info(f"Transactions: {currency} {expected:.2f}")
    logger.info(f"Status:       {status.value}")


def cmd_add(args, services):
    """Record a counted batch, e.g. 20=3 0.50=4."""
    project = get_project(services, args.project_id)
    worksheet = _worksheet(services, project.id)

    try:
        entry = make_entry(_parse_counts(args.counts), name=args.name, named=bool(args.name))
    except ValueError as e:
        logger.error(f"{e}")
        sys.exit(1)

    worksheet.add(entry)
    logger.info(f"✓ Added entry {entry.id[:8]}: {entry.total:.2f}")
    logger.info(f"  Total counted today: {worksheet.total:.2f}")


def cmd_remove(args, services):
    """Remove an entry by ID (or ID prefix)."""
    worksheet = _worksheet(services, args.project_id)
    matches = [e for e in worksheet.entries if e.id.startswith(args.entry_id)]
    if len(matches) != 1:
        logger.error(f"No single entry matches '{args.entry_id}'.")
        sys.exit(1)

    worksheet.remove(matches[0].id)
    logger.info("✓ Entry removed")


def cmd_clear(args, services):
    """Discard today's worksheet."""
    worksheet = _worksheet(services, args.project_id)
    worksheet.clear()
    logger.info("✓ Worksheet cleared")


def setup_parser(subparsers):
    """Setup cash subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "cash",
        help="Daily cash count",
        description="Count bills and coins and compare with recorded transactions",
    )

    cash_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available cash commands",
        dest="subcommand",
        required=True,
    )

    show_parser = cash_subparsers.add_parser("show", help="Show today's count")
    show_parser.add_argument("project_id", type=int, help="Project ID")
    show_parser.set_defaults(func=cmd_show)

    add_parser = cash_subparsers.add_parser("add", help="Add a counted batch")
    add_parser.add_argument("project_id", type=int, help="Project ID")
    add_parser.add_argument("counts", nargs="+", help="DENOMINATION=COUNT pairs")
    add_parser.add_argument("--name", help="Who handed in the cash (named entry)")
    add_parser.set_defaults(func=cmd_add)

    remove_parser = cash_subparsers.add_parser("remove", help="Remove an entry")
    remove_parser.add_argument("project_id", type=int, help="Project ID")
    remove_parser.add_argument("entry_id", help="Entry ID or prefix")
    remove_parser.set_defaults(func=cmd_remove)

    clear_parser = cash_subparsers.add_parser("clear", help="Clear today's count")
    clear_parser.add_argument("project_id", type=int, help="Project ID")
    clear_parser.set_defaults(func=cmd_clear)
