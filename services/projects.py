"""Project service for database operations."""

import json
from typing import List, Optional

from db.sql import owner_policy, parse_timestamp, read_policy, write_policy
from logger import get_logger
from models.category import DEFAULT_CATEGORY_COLOR
from models.project import Project, Role
from models.settings import CustomField, ProjectSettings
from services.errors import AuthorizationError

logger = get_logger()

_PROJECT_SELECT_FIELDS = """p.id, p.name, p.description, p.owner_id, p.template, p.settings,
       p.created_at, p.updated_at, m.role"""


class ProjectService:
    """Service for managing projects and their settings documents."""

    def __init__(self, db_manager, session, templates):
        """Initialize the project service.

        Args:
            db_manager: Database manager instance for database operations.
            session: Session holding the acting user.
            templates: TemplateLoader used to seed new projects.
        """
        self.db_manager = db_manager
        self.session = session
        self.templates = templates

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        template: Optional[str] = None,
    ) -> Project:
        """Create a project owned by the signed-in user.

        The creator becomes the owner member. When a template is given, its
        settings, categories and custom fields seed the new project.

        Args:
            name: Project name.
            description: Optional description.
            template: Optional template name (see TemplateLoader.available()).

        Returns:
            The created Project.

        Raises:
            AuthenticationError: If nobody is signed in.
            FileNotFoundError: If the template does not exist.
        """
        user = self.session.require_user()
        seed = self.templates.load(template) if template else {}

        settings = ProjectSettings.from_document(seed.get("settings"))
        settings.custom_fields = [
            CustomField.model_validate(f) for f in seed.get("custom_fields", [])
        ]

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO projects (name, description, owner_id, template, settings)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    name,
                    description,
                    user.id,
                    template,
                    json.dumps(settings.to_document()),
                ),
            )
            project_id = cursor.lastrowid

            conn.execute(
                "INSERT INTO project_members (project_id, user_id, role) VALUES (?, ?, ?)",
                (project_id, user.id, Role.OWNER.value),
            )

            for order, category in enumerate(seed.get("categories", [])):
                conn.execute(
                    """
                    INSERT INTO categories (project_id, name, color, sort_order)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        project_id,
                        category["name"],
                        category.get("color", DEFAULT_CATEGORY_COLOR),
                        order,
                    ),
                )
            conn.commit()

        logger.info(f"Created project '{name}' (ID: {project_id})")
        return self.find(project_id)

    def find(self, project_id: int) -> Optional[Project]:
        """Get a project visible to the signed-in user.

        Args:
            project_id: The project ID to find.

        Returns:
            Project object if found and visible, None otherwise.
        """
        user_id = self.session.user_id
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_PROJECT_SELECT_FIELDS}
                FROM projects p
                LEFT JOIN project_members m ON m.project_id = p.id AND m.user_id = ?
                WHERE p.id = ? AND {read_policy("p.id")}
                """,
                (user_id, project_id, user_id),
            ).fetchone()
            return self._row_to_project(row) if row else None

    def find_for_user(self) -> List[Project]:
        """Get every project the signed-in user owns or belongs to.

        Returns:
            List of Project objects with their role set, oldest first.
        """
        user_id = self.session.user_id
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_PROJECT_SELECT_FIELDS}
                FROM projects p
                LEFT JOIN project_members m ON m.project_id = p.id AND m.user_id = ?
                WHERE p.owner_id = ? OR m.user_id IS NOT NULL
                ORDER BY p.created_at, p.id
                """,
                (user_id, user_id),
            ).fetchall()
            return [self._row_to_project(row) for row in rows]

    def get_settings(self, project_id: int) -> ProjectSettings:
        """Read a project's settings document with defaults substituted.

        Raises:
            AuthorizationError: If the project is missing or not visible.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT settings FROM projects WHERE id = ? AND {read_policy('id')}",
                (project_id, self.session.user_id),
            ).fetchone()

        if row is None:
            raise AuthorizationError(f"Project {project_id} not found or not accessible")

        return ProjectSettings.from_document(
            json.loads(row["settings"]) if row["settings"] else None
        )

    def save_settings(self, project_id: int, settings: ProjectSettings) -> None:
        """Replace a project's entire settings document.

        Raises:
            AuthorizationError: If the update affected no rows.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE projects
                SET settings = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND {write_policy("id")}
                """,
                (json.dumps(settings.to_document()), project_id, self.session.user_id),
            )
            conn.commit()

            if cursor.rowcount == 0:
                raise AuthorizationError(
                    f"Settings update for project {project_id} was not applied"
                )

    def update(self, project_id: int, name: str, description: Optional[str]) -> bool:
        """Rename or re-describe a project.

        Returns:
            True if the project was updated, False if not found or not allowed.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE projects
                SET name = ?, description = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND {write_policy("id")}
                """,
                (name, description, project_id, self.session.user_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete(self, project_id: int) -> bool:
        """Delete a project and everything it owns. Owner only.

        Returns:
            True if the project was deleted, False if not found or not allowed.
        """
        user_id = self.session.user_id
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"DELETE FROM projects WHERE id = ? AND {owner_policy('id')}",
                (project_id, user_id),
            )
            if cursor.rowcount > 0:
                for table in ("transactions", "categories", "invitations", "project_members"):
                    conn.execute(f"DELETE FROM {table} WHERE project_id = ?", (project_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _row_to_project(self, row) -> Project:
        """Convert a database row to a Project object."""
        role = row["role"]
        if role is None and row["owner_id"] == self.session.user_id:
            role = Role.OWNER.value

        return Project(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            owner_id=row["owner_id"],
            template=row["template"],
            settings=ProjectSettings.from_document(
                json.loads(row["settings"]) if row["settings"] else None
            ),
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
            role=Role(role) if role else None,
        )
