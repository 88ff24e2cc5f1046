#!/usr/bin/env python3

from dataclasses import replace

from config import write_config
from logger import get_logger

logger = get_logger()


def cmd_login(args, services):
    """Sign in as an email address and remember it in the config file."""
    profile = services.auth.sign_in(args.email, args.name)

    config = replace(services.config, user_email=profile.email, user_name=profile.name or "")
    write_config(config)

    logger.info(f"✓ Signed in as {profile.name} <{profile.email}>")


def cmd_logout(args, services):
    """Forget the remembered user."""
    services.auth.sign_out()
    write_config(replace(services.config, user_email="", user_name=""))
    logger.info("✓ Signed out")


def cmd_whoami(args, services):
    """Show the signed-in user."""
    user = services.session.user
    if user is None:
        logger.info("Not signed in.")
        return

    logger.info(f"{user.name} <{user.email}> (ID: {user.id})")


def setup_parser(subparsers):
    """Setup auth subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "auth",
        help="Sign in and out",
        description="Sign in with an email address; the profile is created on first use",
    )

    auth_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available auth commands",
        dest="subcommand",
        required=True,
    )

    login_parser = auth_subparsers.add_parser("login", help="Sign in")
    login_parser.add_argument("email", help="Email address")
    login_parser.add_argument("--name", help="Display name for a new profile")
    login_parser.set_defaults(func=cmd_login)

    logout_parser = auth_subparsers.add_parser("logout", help="Sign out")
    logout_parser.set_defaults(func=cmd_logout)

    whoami_parser = auth_subparsers.add_parser("whoami", help="Show the signed-in user")
    whoami_parser.set_defaults(func=cmd_whoami)
