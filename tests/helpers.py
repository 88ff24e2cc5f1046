"""Helper utilities for tests."""

from datetime import date
from decimal import Decimal
from pathlib import Path
import sqlite3

from models.transaction import Transaction


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        conn.executescript(migration_file.read_text())

    conn.commit()


def make_transaction(
    amount="-10.00",
    on=date(2024, 3, 15),
    category_id=None,
    custom_data=None,
    project_id=1,
    transaction_id=None,
    description=None,
    currency_code="USD",
) -> Transaction:
    """Build an unsaved (or fake-saved) Transaction with sensible defaults."""
    return Transaction(
        id=transaction_id,
        project_id=project_id,
        amount=Decimal(amount),
        currency_code=currency_code,
        category_id=category_id,
        date=on,
        description=description,
        custom_data=dict(custom_data or {}),
    )
