"""Project membership service."""

from typing import List, Optional

from db.sql import parse_timestamp, read_policy
from models.project import ProjectMember, Role


class MemberService:
    """Service for reading and adding project memberships."""

    def __init__(self, db_manager, session):
        self.db_manager = db_manager
        self.session = session

    def get_role(self, project_id: int, user_id: Optional[int] = None) -> Optional[Role]:
        """Get a user's role in a project.

        Args:
            project_id: Project to check.
            user_id: Profile ID. Defaults to the signed-in user.

        Returns:
            The Role, or None when the user is not a member.
        """
        if user_id is None:
            user_id = self.session.user_id

        with self.db_manager.connect() as conn:
            row = conn.execute(
                "SELECT role FROM project_members WHERE project_id = ? AND user_id = ?",
                (project_id, user_id),
            ).fetchone()
            return Role(row["role"]) if row else None

    def find_by_project(self, project_id: int) -> List[ProjectMember]:
        """List members of a project visible to the signed-in user."""
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT id, project_id, user_id, role, joined_at
                FROM project_members
                WHERE project_id = ? AND {read_policy()}
                ORDER BY joined_at, id
                """,
                (project_id, self.session.user_id),
            ).fetchall()

            return [
                ProjectMember(
                    id=row["id"],
                    project_id=row["project_id"],
                    user_id=row["user_id"],
                    role=Role(row["role"]),
                    joined_at=parse_timestamp(row["joined_at"]),
                )
                for row in rows
            ]

    def add(self, project_id: int, user_id: int, role: Role) -> bool:
        """Add a membership unless the user already belongs to the project.

        Returns:
            True if a membership was created, False if one already existed.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO project_members (project_id, user_id, role)
                VALUES (?, ?, ?)
                """,
                (project_id, user_id, Role(role).value),
            )
            conn.commit()
            return cursor.rowcount > 0
