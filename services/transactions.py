"""Transaction service for database operations."""

import json
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from db.sql import parse_timestamp, read_policy, write_policy
from models.transaction import Transaction
from services.errors import AuthorizationError

# SQL Query Constants
_TRANSACTION_SELECT_FIELDS = """id, project_id, amount, currency_code, category_id, date,
       description, custom_data, created_by, created_at, updated_at"""


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db_manager, session):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
            session: Session holding the acting user.
        """
        self.db_manager = db_manager
        self.session = session

    def create(self, transaction: Transaction) -> Transaction:
        """Create a single transaction in the database.

        The signed-in user is recorded as creator.

        Args:
            transaction: Transaction object to insert (id is ignored).

        Returns:
            The stored Transaction with id and timestamps populated.

        Raises:
            AuthenticationError: If nobody is signed in.
            AuthorizationError: If the user may not write to the project.
        """
        user = self.session.require_user()
        data = transaction.to_dict()

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                INSERT INTO transactions (project_id, amount, currency_code, category_id,
                                          date, description, custom_data, created_by)
                SELECT ?, ?, ?, ?, ?, ?, ?, ?
                WHERE {write_policy("?")}
                """,
                (
                    data["project_id"],
                    data["amount"],
                    data["currency_code"],
                    data["category_id"],
                    data["date"],
                    data["description"],
                    data["custom_data"],
                    user.id,
                    data["project_id"],
                    user.id,
                ),
            )
            conn.commit()

            if cursor.rowcount == 0:
                raise AuthorizationError(
                    f"Not allowed to add transactions to project {transaction.project_id}"
                )
            transaction_id = cursor.lastrowid

        return self.find(transaction_id)

    def update(self, transaction: Transaction) -> bool:
        """Overwrite the editable fields of an existing transaction.

        Args:
            transaction: Transaction carrying the new values.

        Returns:
            True if the row was updated, False if missing or not allowed.
        """
        data = transaction.to_dict()
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE transactions
                SET amount = ?, currency_code = ?, category_id = ?, date = ?,
                    description = ?, custom_data = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND project_id = ? AND {write_policy()}
                """,
                (
                    data["amount"],
                    data["currency_code"],
                    data["category_id"],
                    data["date"],
                    data["description"],
                    data["custom_data"],
                    transaction.id,
                    transaction.project_id,
                    self.session.user_id,
                ),
            )
            conn.commit()
            return cursor.rowcount > 0

    def update_custom_data(self, transaction_id: int, custom_data: Dict[str, Any]) -> bool:
        """Replace a single transaction's custom_data map.

        Returns:
            True if the row was updated, False otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE transactions
                SET custom_data = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND {write_policy()}
                """,
                (
                    json.dumps(custom_data) if custom_data else None,
                    transaction_id,
                    self.session.user_id,
                ),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete(self, transaction_id: int) -> bool:
        """Delete a transaction by ID.

        Returns:
            True if the transaction was deleted, False if not found or not allowed.
        """
        return self.delete_many([transaction_id]) > 0

    def delete_many(self, transaction_ids: Iterable[int]) -> int:
        """Delete several transactions with one statement.

        Args:
            transaction_ids: IDs to delete.

        Returns:
            Number of rows deleted.
        """
        ids = list(transaction_ids)
        if not ids:
            return 0

        placeholders = ", ".join(["?"] * len(ids))
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                DELETE FROM transactions
                WHERE id IN ({placeholders}) AND {write_policy()}
                """,
                (*ids, self.session.user_id),
            )
            conn.commit()
            return cursor.rowcount

    def find(self, transaction_id: int) -> Optional[Transaction]:
        """Get a single transaction by ID.

        Args:
            transaction_id: The transaction ID.

        Returns:
            Transaction object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM transactions
                WHERE id = ? AND {read_policy()}
                """,
                (transaction_id, self.session.user_id),
            ).fetchone()

            return self._row_to_transaction(row) if row else None

    def find_by_project(self, project_id: int) -> List[Transaction]:
        """Get all transactions of a project.

        Args:
            project_id: The project ID to filter by.

        Returns:
            List of Transaction objects ordered by date (newest first).
        """
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM transactions
                WHERE project_id = ? AND {read_policy()}
                ORDER BY date DESC, id DESC
                """,
                (project_id, self.session.user_id),
            ).fetchall()

            return [self._row_to_transaction(row) for row in rows]

    def _row_to_transaction(self, row) -> Transaction:
        """Convert a database row to a Transaction object."""
        return Transaction(
            id=row["id"],
            project_id=row["project_id"],
            amount=Decimal(str(row["amount"])),
            currency_code=row["currency_code"],
            category_id=row["category_id"],
            date=date.fromisoformat(row["date"]),
            description=row["description"],
            custom_data=json.loads(row["custom_data"]) if row["custom_data"] else {},
            created_by=row["created_by"],
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )
