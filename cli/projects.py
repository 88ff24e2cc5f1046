#!/usr/bin/env python3

import sys

from logger import get_logger
from models.settings import DatePeriod

logger = get_logger()


def get_project(services, project_id):
    """Load a visible project or exit with an error."""
    project = services.projects.find(project_id)
    if not project:
        logger.error(f"Project with ID {project_id} not found.")
        logger.info("Use 'python -m cli projects list' to see your projects.")
        sys.exit(1)
    return project


def cmd_list(args, services):
    """List the projects the signed-in user belongs to."""
    projects = services.projects.find_for_user()

    if not projects:
        logger.info("No projects found.")
        return

    logger.info("\nProjects:")
    logger.info("=" * 80)
    for project in projects:
        logger.info(f"ID: {project.id}")
        logger.info(f"Name: {project.name}")
        if project.description:
            logger.info(f"Description: {project.description}")
        logger.info(f"Role: {project.role.value if project.role else '-'}")
        logger.info(f"Currency: {project.settings.currency}")
        logger.info("-" * 80)

    logger.info(f"\nTotal projects: {len(projects)}")


def cmd_create(args, services):
    """Create a project, optionally from a template."""
    if args.template and args.template not in services.templates.available():
        logger.error(f"Unknown template '{args.template}'.")
        logger.info(f"Available templates: {', '.join(services.templates.available())}")
        sys.exit(1)

    project = services.projects.create(args.name, args.description, args.template)

    logger.info(f"✓ Project created successfully with ID: {project.id}")
    logger.info(f"  Name: {project.name}")
    if project.template:
        logger.info(f"  Template: {project.template}")


def cmd_show(args, services):
    """Show a project with its settings and members."""
    project = get_project(services, args.project_id)
    settings = project.settings

    logger.info(f"\n{project.name} (ID: {project.id})")
    logger.info("=" * 80)
    if project.description:
        logger.info(project.description)
    logger.info(f"Currency: {settings.currency}")
    logger.info(f"Date format: {settings.date_format}")
    logger.info(f"Default period: {settings.default_date_period.value}")
    logger.info(f"Notifications: {'on' if settings.notifications_enabled else 'off'}")
    logger.info(f"Custom fields: {', '.join(settings.field_names()) or '(none)'}")

    logger.info("\nMembers:")
    for member in services.members.find_by_project(project.id):
        profile = services.auth.find(member.user_id)
        email = profile.email if profile else f"user {member.user_id}"
        logger.info(f"  {email}: {member.role.value}")


def cmd_settings(args, services):
    """Change a project's general settings."""
    get_project(services, args.project_id)

    changes = {}
    if args.currency:
        changes["currency"] = args.currency.upper()
    if args.date_format:
        changes["date_format"] = args.date_format
    if args.period:
        changes["default_date_period"] = DatePeriod(args.period)
    if args.notifications:
        changes["notifications_enabled"] = args.notifications == "on"

    if not changes:
        logger.info("Nothing to change.")
        return

    schema = services.schema(args.project_id)
    schema.update_settings(**changes)
    logger.info("✓ Settings updated")


def cmd_delete(args, services):
    """Delete a project and all its data."""
    project = get_project(services, args.project_id)

    if not args.yes:
        confirm = (
            input(f"\nDelete project '{project.name}' and all its transactions? (yes/no): ")
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    if services.projects.delete(project.id):
        logger.info(f"✓ Project '{project.name}' deleted successfully.")
    else:
        logger.error("Only the project owner can delete it.")
        sys.exit(1)


def cmd_templates(args, services):
    """List the bundled project templates."""
    for name in services.templates.available():
        template = services.templates.load(name)
        logger.info(f"{name}: {template.get('description', '')}")


def setup_parser(subparsers):
    """Setup projects subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "projects",
        help="Manage projects",
        description="Create, list, configure and delete projects",
    )

    projects_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available project commands",
        dest="subcommand",
        required=True,
    )

    list_parser = projects_subparsers.add_parser("list", help="List your projects")
    list_parser.set_defaults(func=cmd_list)

    create_parser = projects_subparsers.add_parser("create", help="Create a project")
    create_parser.add_argument("name", help="Project name")
    create_parser.add_argument("--description", help="Optional description")
    create_parser.add_argument("--template", help="Seed from a bundled template")
    create_parser.set_defaults(func=cmd_create)

    show_parser = projects_subparsers.add_parser("show", help="Show a project")
    show_parser.add_argument("project_id", type=int, help="Project ID")
    show_parser.set_defaults(func=cmd_show)

    settings_parser = projects_subparsers.add_parser(
        "settings", help="Change project settings"
    )
    settings_parser.add_argument("project_id", type=int, help="Project ID")
    settings_parser.add_argument("--currency", help="Currency code, e.g. EUR")
    settings_parser.add_argument("--date-format", help="Date format, e.g. DD/MM/YYYY")
    settings_parser.add_argument(
        "--period",
        choices=[p.value for p in DatePeriod if p != DatePeriod.CUSTOM],
        help="Default date period for listings",
    )
    settings_parser.add_argument("--notifications", choices=["on", "off"])
    settings_parser.set_defaults(func=cmd_settings)

    delete_parser = projects_subparsers.add_parser("delete", help="Delete a project")
    delete_parser.add_argument("project_id", type=int, help="Project ID")
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)

    templates_parser = projects_subparsers.add_parser(
        "templates", help="List project templates"
    )
    templates_parser.set_defaults(func=cmd_templates)
