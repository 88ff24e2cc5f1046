"""Category service for database operations."""

from typing import List, Optional

from db.sql import parse_timestamp, read_policy, write_policy
from models.category import Category, DEFAULT_CATEGORY_COLOR
from services.errors import AuthorizationError

_CATEGORY_SELECT_FIELDS = "id, project_id, name, color, sort_order, created_at"


class CategoryService:
    """Service for managing project categories."""

    def __init__(self, db_manager, session):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
            session: Session holding the acting user.
        """
        self.db_manager = db_manager
        self.session = session

    def find_all(self, project_id: int) -> List[Category]:
        """Get all categories of a project.

        Args:
            project_id: Project to list.

        Returns:
            List of Category objects in display order.
        """
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS}
                FROM categories
                WHERE project_id = ? AND {read_policy()}
                ORDER BY sort_order, id
                """,
                (project_id, self.session.user_id),
            ).fetchall()

            return [self._row_to_category(row) for row in rows]

    def find(self, category_id: int) -> Optional[Category]:
        """Get a single category by ID.

        Args:
            category_id: The category ID to find.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS}
                FROM categories
                WHERE id = ? AND {read_policy()}
                """,
                (category_id, self.session.user_id),
            ).fetchone()

            return self._row_to_category(row) if row else None

    def create(
        self,
        project_id: int,
        name: str,
        color: str = DEFAULT_CATEGORY_COLOR,
        order: int = 0,
    ) -> Category:
        """Create a new category.

        Order values are not checked for uniqueness.

        Args:
            project_id: Owning project.
            name: Category name.
            color: Hex color string.
            order: Display position.

        Returns:
            The created Category object with id populated.

        Raises:
            AuthorizationError: If the user may not write to the project.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                INSERT INTO categories (project_id, name, color, sort_order)
                SELECT ?, ?, ?, ?
                WHERE {write_policy("?")}
                """,
                (project_id, name, color, order, project_id, self.session.user_id),
            )
            conn.commit()

            if cursor.rowcount == 0:
                raise AuthorizationError(
                    f"Not allowed to add categories to project {project_id}"
                )
            category_id = cursor.lastrowid

        return self.find(category_id)

    def update(
        self,
        category_id: int,
        project_id: int,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> bool:
        """Rename and/or recolor a category.

        Args:
            category_id: The category ID to update.
            project_id: The project the category must belong to.
            name: New name, or None to keep the current one.
            color: New color, or None to keep the current one.

        Returns:
            True if a row was updated, False if nothing matched (missing row,
            wrong project, or access denied).
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE categories
                SET name = COALESCE(?, name), color = COALESCE(?, color)
                WHERE id = ? AND project_id = ? AND {write_policy()}
                """,
                (name, color, category_id, project_id, self.session.user_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def set_order(self, category_id: int, project_id: int, order: int) -> bool:
        """Set one category's display position.

        Returns:
            True if a row was updated, False otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE categories SET sort_order = ?
                WHERE id = ? AND project_id = ? AND {write_policy()}
                """,
                (order, category_id, project_id, self.session.user_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def swap_order(
        self,
        project_id: int,
        first_id: int,
        first_order: int,
        second_id: int,
        second_order: int,
    ) -> None:
        """Write two new display positions in a single database transaction.

        Either both rows change or neither does.

        Args:
            project_id: The project both categories belong to.
            first_id: First category ID.
            first_order: New order for the first category.
            second_id: Second category ID.
            second_order: New order for the second category.

        Raises:
            AuthorizationError: If either update matched no rows.
        """
        statement = f"""
            UPDATE categories SET sort_order = ?
            WHERE id = ? AND project_id = ? AND {write_policy()}
        """
        user_id = self.session.user_id

        with self.db_manager.connect() as conn:
            try:
                for category_id, order in ((first_id, first_order), (second_id, second_order)):
                    cursor = conn.execute(statement, (order, category_id, project_id, user_id))
                    if cursor.rowcount == 0:
                        raise AuthorizationError(
                            f"Reorder of category {category_id} was not applied"
                        )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def delete(self, category_id: int, project_id: int) -> bool:
        """Delete a category.

        Transactions pointing at it keep the dangling reference.

        Returns:
            True if category was deleted, False if not found or not allowed.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"DELETE FROM categories WHERE id = ? AND project_id = ? AND {write_policy()}",
                (category_id, project_id, self.session.user_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def _row_to_category(self, row) -> Category:
        return Category(
            id=row["id"],
            project_id=row["project_id"],
            name=row["name"],
            color=row["color"],
            order=row["sort_order"],
            created_at=parse_timestamp(row["created_at"]),
        )
