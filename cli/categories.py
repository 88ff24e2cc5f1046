#!/usr/bin/env python3

import sys

from cli.projects import get_project
from logger import get_logger
from services.errors import AuthorizationError

logger = get_logger()


def cmd_list(args, services):
    """List a project's categories in display order."""
    get_project(services, args.project_id)
    schema = services.schema(args.project_id)

    if not schema.categories:
        logger.info("No categories found.")
        return

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for index, category in enumerate(schema.categories):
        logger.info(
            f"[{index}] {category.name} (ID: {category.id}, color {category.color}, "
            f"order {category.order})"
        )

    logger.info(f"\nTotal categories: {len(schema.categories)}")


def cmd_add(args, services):
    """Add a category at the end of the list."""
    get_project(services, args.project_id)
    schema = services.schema(args.project_id)

    category = schema.add_category(args.name, args.color)
    logger.info(f"✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    logger.info(f"  Color: {category.color}")


def cmd_edit(args, services):
    """Rename or recolor a category."""
    if args.name is None and args.color is None:
        logger.error("Pass --name and/or --color.")
        sys.exit(1)

    schema = services.schema(args.project_id)
    try:
        category = schema.update_category(args.category_id, name=args.name, color=args.color)
    except AuthorizationError as e:
        logger.error(f"{e}")
        sys.exit(1)

    logger.info(f"✓ Category updated: {category.name} ({category.color})")


def cmd_move(args, services):
    """Move a category one position up or down."""
    schema = services.schema(args.project_id)

    if not schema.reorder_category(args.index, args.direction):
        logger.info("Category is already at the edge of the list.")
        return

    logger.info("✓ Category moved. New order:")
    for index, category in enumerate(schema.categories):
        logger.info(f"  [{index}] {category.name}")


def cmd_delete(args, services):
    """Delete a category. Its transactions become uncategorized."""
    category = services.categories.find(args.category_id)
    if not category or category.project_id != args.project_id:
        logger.error(f"Category with ID {args.category_id} not found.")
        sys.exit(1)

    if not args.yes:
        confirm = (
            input(f"\nDelete category '{category.name}'? (yes/no): ").strip().lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    schema = services.schema(args.project_id)
    if schema.delete_category(category.id):
        logger.info(f"✓ Category '{category.name}' deleted successfully.")
    else:
        logger.error("Failed to delete category.")
        sys.exit(1)


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, list, reorder and delete project categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    list_parser = categories_subparsers.add_parser("list", help="List categories")
    list_parser.add_argument("project_id", type=int, help="Project ID")
    list_parser.set_defaults(func=cmd_list)

    add_parser = categories_subparsers.add_parser("add", help="Add a category")
    add_parser.add_argument("project_id", type=int, help="Project ID")
    add_parser.add_argument("name", help="Category name")
    add_parser.add_argument("--color", help="Hex color, random if omitted")
    add_parser.set_defaults(func=cmd_add)

    edit_parser = categories_subparsers.add_parser(
        "edit", help="Rename or recolor a category"
    )
    edit_parser.add_argument("project_id", type=int, help="Project ID")
    edit_parser.add_argument("category_id", type=int, help="Category ID")
    edit_parser.add_argument("--name", help="New name")
    edit_parser.add_argument("--color", help="New hex color")
    edit_parser.set_defaults(func=cmd_edit)

    move_parser = categories_subparsers.add_parser("move", help="Reorder a category")
    move_parser.add_argument("project_id", type=int, help="Project ID")
    move_parser.add_argument("index", type=int, help="Position shown by 'list'")
    move_parser.add_argument("direction", choices=["up", "down"])
    move_parser.set_defaults(func=cmd_move)

    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category by ID"
    )
    delete_parser.add_argument("project_id", type=int, help="Project ID")
    delete_parser.add_argument("category_id", type=int, help="Category ID")
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)
