#!/usr/bin/env python3

import sys
from pathlib import Path

from cli.projects import get_project
from logger import get_logger
from models.settings import FieldType
from services.errors import DuplicateFieldError, FieldNotFoundError, MigrationError

logger = get_logger()


def cmd_list(args, services):
    """List a project's custom fields."""
    get_project(services, args.project_id)
    settings = services.projects.get_settings(args.project_id)

    if not settings.custom_fields:
        logger.info("No custom fields defined.")
        return

    logger.info("\nCustom fields:")
    logger.info("=" * 80)
    for index, field in enumerate(settings.custom_fields):
        line = f"[{index}] {field.name} ({field.type.value})"
        if field.options:
            line += f": {', '.join(field.options)}"
        suggestions = settings.custom_field_values.get(field.name)
        if suggestions:
            line += f" [{len(suggestions)} suggestion(s)]"
        logger.info(line)


def cmd_add(args, services):
    """Add a custom field."""
    schema = services.schema(args.project_id)
    try:
        field = schema.add_field(args.name, FieldType(args.type), args.option)
    except DuplicateFieldError as e:
        logger.error(f"{e}")
        sys.exit(1)

    logger.info(f"✓ Field '{field.name}' added ({field.type.value})")
    if field.options:
        logger.info(f"  Options: {', '.join(field.options)}")


def cmd_rename(args, services):
    """Rename a field and move existing values to the new name."""
    schema = services.schema(args.project_id)
    try:
        migrated = schema.rename_field(
            args.old_name,
            args.new_name,
            options=args.option,
            field_type=FieldType(args.type) if args.type else None,
        )
    except (DuplicateFieldError, FieldNotFoundError) as e:
        logger.error(f"{e}")
        sys.exit(1)
    except MigrationError as e:
        logger.error(f"{e}")
        logger.error("Re-run the rename to retry the remaining transactions.")
        sys.exit(1)

    logger.info(f"✓ Field updated: {args.old_name} -> {args.new_name}")
    if migrated:
        logger.info(f"  Migrated {migrated} transaction(s)")


def cmd_delete(args, services):
    """Delete a field. Existing transaction values are kept."""
    schema = services.schema(args.project_id)
    try:
        schema.delete_field(args.name)
    except FieldNotFoundError as e:
        logger.error(f"{e}")
        sys.exit(1)

    logger.info(f"✓ Field '{args.name}' deleted")


def cmd_move(args, services):
    """Move a field one position up or down."""
    schema = services.schema(args.project_id)
    if not schema.reorder_field(args.index, args.direction):
        logger.info("Field is already at the edge of the list.")
        return

    logger.info(f"✓ Field order: {', '.join(schema.settings.field_names())}")


def cmd_import_values(args, services):
    """Replace a field's suggestion list from a newline-separated file."""
    path = Path(args.file)
    if not path.exists():
        logger.error(f"File not found: {args.file}")
        sys.exit(1)

    schema = services.schema(args.project_id)
    if schema.settings.find_field(args.name) is None:
        logger.error(f"No field named '{args.name}'")
        sys.exit(1)

    values = schema.import_field_values(args.name, path.read_text())
    logger.info(f"✓ Stored {len(values)} suggestion(s) for '{args.name}'")


def cmd_values(args, services):
    """Print current suggestions merged with values used in transactions."""
    schema = services.schema(args.project_id)
    transactions = services.transactions.find_by_project(args.project_id)
    print(schema.suggestion_seed(args.name, transactions))


def setup_parser(subparsers):
    """Setup fields subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "fields",
        help="Manage custom fields",
        description="Define the custom columns attached to every transaction",
    )

    fields_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available field commands",
        dest="subcommand",
        required=True,
    )

    types = [t.value for t in FieldType]

    list_parser = fields_subparsers.add_parser("list", help="List custom fields")
    list_parser.add_argument("project_id", type=int, help="Project ID")
    list_parser.set_defaults(func=cmd_list)

    add_parser = fields_subparsers.add_parser("add", help="Add a custom field")
    add_parser.add_argument("project_id", type=int, help="Project ID")
    add_parser.add_argument("name", help="Field name")
    add_parser.add_argument("--type", choices=types, default=FieldType.TEXT.value)
    add_parser.add_argument(
        "--option", action="append", help="Select option (repeatable)"
    )
    add_parser.set_defaults(func=cmd_add)

    rename_parser = fields_subparsers.add_parser(
        "rename", help="Rename a field, its options or type"
    )
    rename_parser.add_argument("project_id", type=int, help="Project ID")
    rename_parser.add_argument("old_name", help="Current field name")
    rename_parser.add_argument("new_name", help="New field name")
    rename_parser.add_argument("--type", choices=types, help="New field type")
    rename_parser.add_argument(
        "--option", action="append", help="Replacement select option (repeatable)"
    )
    rename_parser.set_defaults(func=cmd_rename)

    delete_parser = fields_subparsers.add_parser("delete", help="Delete a field")
    delete_parser.add_argument("project_id", type=int, help="Project ID")
    delete_parser.add_argument("name", help="Field name")
    delete_parser.set_defaults(func=cmd_delete)

    move_parser = fields_subparsers.add_parser("move", help="Reorder a field")
    move_parser.add_argument("project_id", type=int, help="Project ID")
    move_parser.add_argument("index", type=int, help="Position shown by 'list'")
    move_parser.add_argument("direction", choices=["up", "down"])
    move_parser.set_defaults(func=cmd_move)

    import_parser = fields_subparsers.add_parser(
        "import-values", help="Replace a field's suggestions from a text file"
    )
    import_parser.add_argument("project_id", type=int, help="Project ID")
    import_parser.add_argument("name", help="Field name")
    import_parser.add_argument("file", help="File with one value per line")
    import_parser.set_defaults(func=cmd_import_values)

    values_parser = fields_subparsers.add_parser(
        "values", help="Print known values of a field, one per line"
    )
    values_parser.add_argument("project_id", type=int, help="Project ID")
    values_parser.add_argument("name", help="Field name")
    values_parser.set_defaults(func=cmd_values)
