#!/usr/bin/env python3
"""Schema migrations: numbered .sql files applied once each, in name order."""

from logger import get_logger

logger = get_logger()


def ensure_migrations_table(conn):
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            migration_file TEXT PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)
    conn.commit()


def applied_migrations(conn):
    rows = conn.execute("SELECT migration_file FROM schema_migrations").fetchall()
    return {row[0] for row in rows}


def available_migrations(db_manager):
    migrations_dir = db_manager.get_migrations_dir()
    if not migrations_dir.exists():
        return []
    return sorted(path.name for path in migrations_dir.glob("*.sql"))


def pending_migrations(conn, db_manager):
    """Migration files not yet recorded in schema_migrations."""
    ensure_migrations_table(conn)
    done = applied_migrations(conn)
    return [name for name in available_migrations(db_manager) if name not in done]


def apply_migration(conn, migration_file, db_manager):
    """Run one migration file and record it.

    Raises:
        sqlite3.Error: If the script fails; the recording is rolled back.
    """
    sql = (db_manager.get_migrations_dir() / migration_file).read_text()

    try:
        conn.executescript(sql)
        conn.execute(
            "INSERT INTO schema_migrations (migration_file) VALUES (?)",
            (migration_file,),
        )
        conn.commit()
        logger.info(f"Applied migration: {migration_file}")
    except Exception as e:
        conn.rollback()
        logger.error(f"Error applying migration {migration_file}: {e}")
        raise


def apply_pending(db_manager):
    """Apply every pending migration.

    Returns:
        Names of the applied migration files.
    """
    with db_manager.connect() as conn:
        pending = pending_migrations(conn, db_manager)
        for migration in pending:
            apply_migration(conn, migration, db_manager)
        return pending


def cmd_status(args, db_manager):
    """Show migration status."""
    if not db_manager.get_db_path().exists():
        logger.info(
            "Database does not exist. Run 'python -m cli migrate apply' to create it."
        )
        return

    with db_manager.connect() as conn:
        pending = pending_migrations(conn, db_manager)

    available = available_migrations(db_manager)
    if not available:
        logger.info("No migrations found.")
        return

    logger.info("Migration Status:")
    logger.info("================")
    for migration in available:
        logger.info(f"{migration}: {'PENDING' if migration in pending else 'APPLIED'}")

    logger.info(f"\nApplied: {len(available) - len(pending)} of {len(available)}")


def cmd_apply(args, db_manager):
    """Apply pending migrations."""
    applied = apply_pending(db_manager)
    if applied:
        logger.info(f"Successfully applied {len(applied)} migration(s).")
    else:
        logger.info("No pending migrations.")


def setup_parser(subparsers):
    """Setup migrate subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "migrate",
        help="Database migrations",
        description="Create and upgrade the database schema",
    )

    migrate_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available migration commands",
        dest="subcommand",
        required=True,
    )

    status_parser = migrate_subparsers.add_parser(
        "status", help="Show migration status"
    )
    status_parser.set_defaults(func=cmd_status)

    apply_parser = migrate_subparsers.add_parser(
        "apply", help="Apply pending migrations"
    )
    apply_parser.set_defaults(func=cmd_apply)
