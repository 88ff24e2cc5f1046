#!/usr/bin/env python3

import sys

from cli.projects import get_project
from config import write_config
from db.client import init_backend
from logger import get_logger
from models.project import Role
from services.base import Services
from services.errors import DuplicateInvitationError, InvitationError
from services.invitations import CLEANUP_AGE_DAYS, InviteCheck
from tools.invite_links import apply_config, generate_invite_link, parse_invite_link

logger = get_logger()


def _tokens_from(value):
    """Accept a bare token, a comma-separated list, or a full invite link."""
    if "://" in value:
        return parse_invite_link(value)["tokens"]
    return [t for t in value.split(",") if t]


def _services_for(value, services):
    """Switch to the database named in an invite link, if it carries one.

    The new location is saved to the config file so later commands use it
    too. The signed-in user carries over to the new database.
    """
    if "://" not in value:
        return services

    encoded = parse_invite_link(value)["config"]
    if not encoded:
        return services

    config = apply_config(services.config, encoded)
    if config is None:
        logger.error("The invite link carries an unreadable database configuration.")
        sys.exit(1)

    write_config(config)
    switched = Services(config, db_manager=init_backend(config))
    user = services.session.user
    if user:
        switched.auth.sign_in(user.email, user.name)

    logger.info(f"Using database {config.db_path} from the invite link")
    return switched


def cmd_send(args, services):
    """Invite an email address to one or more projects."""
    for project_id in args.project_ids:
        get_project(services, project_id)
        if services.members.get_role(project_id) != Role.OWNER:
            logger.error(f"Only the project owner can invite to project {project_id}.")
            sys.exit(1)

    try:
        invitations = services.invitations.create_many(
            args.project_ids, args.email, args.role, replace_existing=args.replace
        )
    except DuplicateInvitationError as e:
        logger.warning(f"{e}")
        confirm = input("Send new invitations instead? (yes/no): ").strip().lower()
        if confirm != "yes":
            logger.info("Invitation cancelled.")
            return
        invitations = services.invitations.create_many(
            args.project_ids, args.email, args.role, replace_existing=True
        )

    tokens = [invitation.token for invitation in invitations]
    link = generate_invite_link(
        services.config.app_url,
        tokens[0] if len(tokens) == 1 else tokens,
        config=services.config if args.embed_config else None,
    )
    logger.info(f"✓ Invited {args.email} as {args.role}")
    logger.info(f"  Link: {link}")


def cmd_list(args, services):
    """List a project's invitations."""
    get_project(services, args.project_id)
    invitations = services.invitations.find_by_project(args.project_id)

    if not invitations:
        logger.info("No invitations found.")
        return

    for invitation in invitations:
        logger.info(
            f"{invitation.email:<30} {invitation.role:<7} {invitation.status.value:<9} "
            f"expires {invitation.expires_at:%Y-%m-%d %H:%M}"
        )


def cmd_check(args, services):
    """Show whether invitation tokens can be accepted."""
    services = _services_for(args.token, services)
    email = services.session.user.email if services.session.user else None
    for token in _tokens_from(args.token):
        check, invitation = services.invitations.validate(token, email)
        if invitation:
            logger.info(f"{token}: {check.value} (project {invitation.project_id})")
        else:
            logger.info(f"{token}: {check.value}")


def cmd_accept(args, services):
    """Accept one invitation, or every token in a combined link."""
    services = _services_for(args.token, services)
    tokens = _tokens_from(args.token)
    if len(tokens) == 1:
        try:
            invitation = services.invitations.accept(tokens[0])
        except InvitationError as e:
            logger.error(f"{e}")
            sys.exit(1)
        logger.info(f"✓ Joined project {invitation.project_id} as {invitation.role}")
        return

    results = services.invitations.accept_many(tokens)
    accepted = [token for token, check in results if check == InviteCheck.VALID]
    logger.info(f"✓ Accepted {len(accepted)} of {len(results)} invitation(s)")


def cmd_expire(args, services):
    """Mark pending invitations past their expiry."""
    count = services.invitations.mark_expired()
    logger.info(f"✓ Marked {count} invitation(s) expired")


def cmd_cleanup(args, services):
    """Delete old expired and accepted invitations."""
    count = services.invitations.cleanup_old(args.days)
    logger.info(f"✓ Deleted {count} old invitation(s)")


def setup_parser(subparsers):
    """Setup invitations subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "invitations",
        help="Invite collaborators",
        description="Send, check, accept and clean up project invitations",
    )

    invitations_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available invitation commands",
        dest="subcommand",
        required=True,
    )

    send_parser = invitations_subparsers.add_parser("send", help="Invite by email")
    send_parser.add_argument("email", help="Invitee email")
    send_parser.add_argument("project_ids", type=int, nargs="+", help="Project IDs")
    send_parser.add_argument("--role", choices=["member", "viewer"], default="member")
    send_parser.add_argument(
        "--replace", action="store_true", help="Replace an active invitation without asking"
    )
    send_parser.add_argument(
        "--embed-config", action="store_true", help="Embed the database location in the link"
    )
    send_parser.set_defaults(func=cmd_send)

    list_parser = invitations_subparsers.add_parser("list", help="List invitations")
    list_parser.add_argument("project_id", type=int, help="Project ID")
    list_parser.set_defaults(func=cmd_list)

    check_parser = invitations_subparsers.add_parser("check", help="Validate a token")
    check_parser.add_argument("token", help="Token, comma-separated tokens or link")
    check_parser.set_defaults(func=cmd_check)

    accept_parser = invitations_subparsers.add_parser("accept", help="Accept invitations")
    accept_parser.add_argument("token", help="Token, comma-separated tokens or link")
    accept_parser.set_defaults(func=cmd_accept)

    expire_parser = invitations_subparsers.add_parser(
        "expire", help="Mark overdue invitations expired"
    )
    expire_parser.set_defaults(func=cmd_expire)

    cleanup_parser = invitations_subparsers.add_parser(
        "cleanup", help="Delete old invitations"
    )
    cleanup_parser.add_argument("--days", type=int, default=CLEANUP_AGE_DAYS)
    cleanup_parser.set_defaults(func=cmd_cleanup)
