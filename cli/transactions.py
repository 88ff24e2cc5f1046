#!/usr/bin/env python3

import sys
from datetime import date
from decimal import InvalidOperation

from cli.projects import get_project
from logger import get_logger
from models.settings import DatePeriod
from models.transaction import Transaction
from tools.charts import category_totals, summarize, time_series
from tools.export import write_csv
from tools.periods import filter_by_period
from tools.selection import EditNavigator, Selection
from tools.views import (
    SORT_COLUMNS,
    ViewState,
    build_custom_data,
    category_name,
    category_names,
    format_date,
    visible_rows,
)

logger = get_logger()


def _parse_field_values(pairs):
    """Parse repeated NAME=VALUE arguments."""
    values = {}
    for pair in pairs or []:
        if "=" not in pair:
            logger.error(f"Expected NAME=VALUE, got '{pair}'")
            sys.exit(1)
        name, value = pair.split("=", 1)
        values[name.strip()] = value
    return values


def _resolve_category(categories, value):
    """Find a category by ID or (case-insensitive) name."""
    if value is None:
        return None
    for category in categories:
        if str(category.id) == value or category.name.lower() == value.lower():
            return category
    logger.error(f"Category '{value}' not found.")
    logger.info("Use 'python -m cli categories list <project>' to see categories.")
    sys.exit(1)


def _view_state(args, settings, categories):
    period = DatePeriod(args.period) if args.period else settings.default_date_period
    if args.start or args.end:
        period = DatePeriod.CUSTOM

    category = _resolve_category(categories, args.category)
    state = ViewState(
        period=period,
        custom_start=date.fromisoformat(args.start) if args.start else None,
        custom_end=date.fromisoformat(args.end) if args.end else None,
        search=args.search or "",
        category_id=category.id if category else "all",
    )
    # A column given on the command line is a fresh choice, not a toggle
    if args.sort:
        state.sort_column = args.sort
    state.descending = not args.asc
    return state


def _log_row(transaction, names, settings):
    custom = ", ".join(f"{k}={v}" for k, v in transaction.custom_data.items())
    logger.info(
        f"{transaction.id:>6}  {format_date(transaction.date, settings.date_format)}  "
        f"{category_name(transaction, names):<16}  "
        f"{transaction.currency_code} {transaction.amount:>10.2f}  "
        f"{transaction.description or ''}"
        + (f"  [{custom}]" if custom else "")
    )


def cmd_add(args, services):
    """Record a transaction."""
    project = get_project(services, args.project_id)
    schema = services.schema(project.id)
    settings = schema.settings

    category = _resolve_category(schema.categories, args.category)
    custom_data = build_custom_data(
        settings.custom_fields, _parse_field_values(args.field), is_new=True
    )

    transaction = services.transactions.create(
        Transaction(
            id=None,
            project_id=project.id,
            amount=Transaction.signed_amount(args.amount, args.kind),
            currency_code=args.currency or settings.currency,
            category_id=category.id if category else None,
            date=date.fromisoformat(args.date) if args.date else date.today(),
            description=args.description,
            custom_data=custom_data,
        )
    )

    logger.info(f"✓ Transaction recorded with ID: {transaction.id}")
    _log_row(transaction, category_names(schema.categories), settings)


def cmd_list(args, services):
    """List transactions through the period, search and category filters."""
    project = get_project(services, args.project_id)
    schema = services.schema(project.id)
    settings = schema.settings

    state = _view_state(args, settings, schema.categories)
    transactions = services.transactions.find_by_project(project.id)
    rows = visible_rows(transactions, schema.categories, state)

    if not rows:
        logger.info("No transactions found.")
        return

    names = category_names(schema.categories)
    logger.info(f"\n{project.name}: {state.period.value}, sorted by {state.sort_column}")
    logger.info("=" * 80)
    for transaction in rows:
        _log_row(transaction, names, settings)

    summary = summarize(rows)
    logger.info("-" * 80)
    logger.info(
        f"{summary['count']} transaction(s) in {summary['categories']} category(ies), "
        f"total {settings.currency} {summary['total']:.2f}"
    )


def _apply_edits(
    transaction,
    schema,
    amount=None,
    kind=None,
    category=None,
    on=None,
    description=None,
    fields=None,
):
    """Apply edit-form values to a transaction in place. None leaves a value as is."""
    if amount is not None:
        kind = kind or ("expense" if transaction.is_expense else "income")
        transaction.amount = Transaction.signed_amount(amount, kind)
    elif kind:
        transaction.amount = Transaction.signed_amount(transaction.amount, kind)
    if category is not None:
        transaction.category_id = _resolve_category(schema.categories, category).id
    if on:
        transaction.date = date.fromisoformat(on)
    if description is not None:
        transaction.description = description
    if fields:
        updates = build_custom_data(
            schema.settings.custom_fields, _parse_field_values(fields), is_new=False
        )
        transaction.custom_data = {**transaction.custom_data, **updates}
    return transaction


def _save_edits(services, transaction, schema):
    if not services.transactions.update(transaction):
        logger.error("Failed to update transaction (not allowed or deleted).")
        return False

    logger.info("✓ Transaction updated")
    _log_row(transaction, category_names(schema.categories), schema.settings)
    return True


def _prompt_edits(transaction, schema):
    """Ask for new values field by field. Blank input keeps the current value."""
    names = category_names(schema.categories)

    def ask(label, current):
        value = input(f"  {label} [{current}]: ").strip()
        return value or None

    amount = ask("Amount", abs(transaction.amount))
    category = ask("Category", category_name(transaction, names))
    on = ask("Date", transaction.date.isoformat())
    description = ask("Description", transaction.description or "")

    fields = []
    for field in schema.settings.custom_fields:
        value = ask(field.name, transaction.custom_data.get(field.name, ""))
        if value is not None:
            fields.append(f"{field.name}={value}")

    return _apply_edits(
        transaction,
        schema,
        amount=amount,
        category=category,
        on=on,
        description=description,
        fields=fields,
    )


def cmd_edit(args, services):
    """Change fields of an existing transaction."""
    transaction = services.transactions.find(args.transaction_id)
    if not transaction:
        logger.error(f"Transaction with ID '{args.transaction_id}' not found.")
        sys.exit(1)

    schema = services.schema(transaction.project_id)
    _apply_edits(
        transaction,
        schema,
        amount=args.amount,
        kind=args.kind,
        category=args.category,
        on=args.date,
        description=args.description,
        fields=args.field,
    )

    if not _save_edits(services, transaction, schema):
        sys.exit(1)


def cmd_delete(args, services):
    """Delete one or more transactions in a single call."""
    selection = Selection(args.transaction_ids)

    if not args.yes:
        confirm = (
            input(f"\nDelete {len(selection)} transaction(s)? (yes/no): ").strip().lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    deleted = selection.delete_selected(services)
    logger.info(f"✓ Deleted {deleted} transaction(s)")


def cmd_review(args, services):
    """Step through selected transactions, editing each one on request."""
    navigator = EditNavigator(Selection(args.transaction_ids).ids)

    while True:
        transaction = services.transactions.find(navigator.current)
        logger.info(f"\n[{navigator.position}]")
        if transaction is None:
            logger.info(f"Transaction {navigator.current} no longer exists.")
        else:
            schema = services.schema(transaction.project_id)
            _log_row(transaction, category_names(schema.categories), schema.settings)

        choice = input("(e)dit, (n)ext, (p)revious, (q)uit: ").strip().lower()
        if choice == "e" and transaction is not None:
            try:
                _save_edits(services, _prompt_edits(transaction, schema), schema)
            except (ValueError, InvalidOperation) as e:
                logger.error(f"Invalid value: {e!r}")
        elif choice == "n" and navigator.next() is None:
            logger.info("Already at the last transaction.")
        elif choice == "p" and navigator.previous() is None:
            logger.info("Already at the first transaction.")
        elif choice == "q":
            return


def cmd_export(args, services):
    """Export the filtered transactions to CSV."""
    project = get_project(services, args.project_id)
    schema = services.schema(project.id)

    state = _view_state(args, schema.settings, schema.categories)
    rows = visible_rows(
        services.transactions.find_by_project(project.id), schema.categories, state
    )

    path = write_csv(
        services.config.export_dir, project.name, rows, schema.categories, schema.settings
    )
    logger.info(f"✓ Exported {len(rows)} transaction(s) to {path}")


def cmd_chart(args, services):
    """Print category totals and the per-day series for a period."""
    project = get_project(services, args.project_id)
    schema = services.schema(project.id)
    settings = schema.settings

    period = DatePeriod(args.period) if args.period else settings.default_date_period
    transactions = filter_by_period(
        services.transactions.find_by_project(project.id), period
    )

    if not transactions:
        logger.info("No transactions in this period.")
        return

    logger.info(f"\nBy category ({period.value}):")
    for slice_ in category_totals(transactions, schema.categories, settings.currency):
        logger.info(f"  {slice_.label}")

    series = time_series(transactions, schema.categories, cumulative=args.cumulative)
    mode = "cumulative" if args.cumulative else "daily"
    logger.info(f"\nOver time ({mode}):")
    for name, values in series.series.items():
        points = ", ".join(
            f"{format_date(d, settings.date_format)}: {v:.2f}"
            for d, v in zip(series.dates, values)
        )
        logger.info(f"  {name}: {points}")


def _add_filter_arguments(parser):
    parser.add_argument(
        "--period", choices=[p.value for p in DatePeriod], help="Date period"
    )
    parser.add_argument("--from", dest="start", help="Custom start date (YYYY-MM-DD)")
    parser.add_argument("--to", dest="end", help="Custom end date (YYYY-MM-DD)")
    parser.add_argument("--search", help="Text to find in custom field values")
    parser.add_argument("--category", help="Category ID or name")
    parser.add_argument("--sort", choices=SORT_COLUMNS, help="Sort column")
    parser.add_argument("--asc", action="store_true", help="Sort ascending")


def setup_parser(subparsers):
    """Setup transactions subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "transactions",
        help="Manage transactions",
        description="Record, list, chart and export transactions",
    )

    transactions_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available transaction commands",
        dest="subcommand",
        required=True,
    )

    add_parser = transactions_subparsers.add_parser("add", help="Record a transaction")
    add_parser.add_argument("project_id", type=int, help="Project ID")
    add_parser.add_argument("amount", help="Amount (sign is taken from --kind)")
    add_parser.add_argument(
        "--kind", choices=["expense", "income"], default="expense"
    )
    add_parser.add_argument("--category", help="Category ID or name")
    add_parser.add_argument("--date", help="Date (YYYY-MM-DD), default today")
    add_parser.add_argument("--description", help="Description")
    add_parser.add_argument("--currency", help="Currency code, default from settings")
    add_parser.add_argument(
        "--field", action="append", help="Custom field value NAME=VALUE (repeatable)"
    )
    add_parser.set_defaults(func=cmd_add)

    list_parser = transactions_subparsers.add_parser("list", help="List transactions")
    list_parser.add_argument("project_id", type=int, help="Project ID")
    _add_filter_arguments(list_parser)
    list_parser.set_defaults(func=cmd_list)

    edit_parser = transactions_subparsers.add_parser("edit", help="Edit a transaction")
    edit_parser.add_argument("transaction_id", type=int, help="Transaction ID")
    edit_parser.add_argument("--amount", help="New amount")
    edit_parser.add_argument("--kind", choices=["expense", "income"])
    edit_parser.add_argument("--category", help="Category ID or name")
    edit_parser.add_argument("--date", help="Date (YYYY-MM-DD)")
    edit_parser.add_argument("--description", help="Description")
    edit_parser.add_argument(
        "--field", action="append", help="Custom field value NAME=VALUE (repeatable)"
    )
    edit_parser.set_defaults(func=cmd_edit)

    delete_parser = transactions_subparsers.add_parser(
        "delete", help="Delete one or more transactions"
    )
    delete_parser.add_argument("transaction_ids", type=int, nargs="+", help="IDs")
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)

    review_parser = transactions_subparsers.add_parser(
        "review", help="Step through several transactions"
    )
    review_parser.add_argument("transaction_ids", type=int, nargs="+", help="IDs")
    review_parser.set_defaults(func=cmd_review)

    export_parser = transactions_subparsers.add_parser(
        "export", help="Export transactions to CSV"
    )
    export_parser.add_argument("project_id", type=int, help="Project ID")
    _add_filter_arguments(export_parser)
    export_parser.set_defaults(func=cmd_export)

    chart_parser = transactions_subparsers.add_parser(
        "chart", help="Show chart aggregates"
    )
    chart_parser.add_argument("project_id", type=int, help="Project ID")
    chart_parser.add_argument(
        "--period", choices=[p.value for p in DatePeriod], help="Date period"
    )
    chart_parser.add_argument(
        "--cumulative", action="store_true", help="Running totals instead of daily sums"
    )
    chart_parser.set_defaults(func=cmd_chart)
