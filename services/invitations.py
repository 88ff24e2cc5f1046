"""Invitation service for project collaboration.

Uniqueness of active invitations per (project, email) is best-effort: a
lookup followed by an update or insert, with no database constraint behind it.
Two owners inviting the same address at the same moment can both succeed.
"""

import secrets
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from db.sql import format_timestamp, owner_policy, parse_timestamp
from logger import get_logger
from models.invitation import Invitation, InvitationStatus
from models.project import Role
from services.errors import (
    AuthorizationError,
    DuplicateInvitationError,
    InvitationError,
)

logger = get_logger()

INVITATION_TTL_DAYS = 7
CLEANUP_AGE_DAYS = 30

_INVITATION_SELECT_FIELDS = """id, project_id, email, role, invited_by, token, expires_at,
       status, accepted_at, created_at"""


class InviteCheck(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"
    ACCEPTED = "accepted"
    WRONG_EMAIL = "wrong-email"


def generate_token() -> str:
    return secrets.token_urlsafe(24)


class InvitationService:
    """Service for issuing, validating and accepting invitations."""

    def __init__(self, db_manager, session, members):
        """Initialize the invitation service.

        Args:
            db_manager: Database manager instance for database operations.
            session: Session holding the acting user.
            members: MemberService used when an invitation is accepted.
        """
        self.db_manager = db_manager
        self.session = session
        self.members = members

    def create(
        self,
        project_id: int,
        email: str,
        role: str = Role.MEMBER.value,
        *,
        replace_existing: bool = False,
        ttl_days: int = INVITATION_TTL_DAYS,
        now: Optional[datetime] = None,
    ) -> Invitation:
        """Invite an email address to a project. Owner only.

        Args:
            project_id: Project to invite to.
            email: Invitee email.
            role: "member" or "viewer".
            replace_existing: Refresh an existing active invitation instead of
                refusing. Callers set this after the user confirmed.
            ttl_days: Days until the invitation expires.
            now: Override for the current time.

        Returns:
            The new or refreshed Invitation.

        Raises:
            ValueError: If the role is not member or viewer.
            DuplicateInvitationError: If an active invitation exists and
                replace_existing is False.
            AuthorizationError: If the user does not own the project.
        """
        user = self.session.require_user()
        role = Role(role)
        if role == Role.OWNER:
            raise ValueError("Invitations can only grant member or viewer roles")

        now = now or datetime.now()
        email = email.strip().lower()
        token = generate_token()
        expires_at = now + timedelta(days=ttl_days)

        existing = self.find_active(project_id, email, now=now)
        if existing and not replace_existing:
            raise DuplicateInvitationError(existing)

        with self.db_manager.connect() as conn:
            if existing:
                cursor = conn.execute(
                    f"""
                    UPDATE invitations
                    SET token = ?, role = ?, expires_at = ?, invited_by = ?
                    WHERE id = ? AND {owner_policy()}
                    """,
                    (
                        token,
                        role.value,
                        format_timestamp(expires_at),
                        user.id,
                        existing.id,
                        user.id,
                    ),
                )
                invitation_id = existing.id
            else:
                cursor = conn.execute(
                    f"""
                    INSERT INTO invitations (project_id, email, role, invited_by, token,
                                             expires_at, status, created_at)
                    SELECT ?, ?, ?, ?, ?, ?, 'pending', ?
                    WHERE {owner_policy("?")}
                    """,
                    (
                        project_id,
                        email,
                        role.value,
                        user.id,
                        token,
                        format_timestamp(expires_at),
                        format_timestamp(now),
                        project_id,
                        user.id,
                    ),
                )
                invitation_id = cursor.lastrowid
            conn.commit()

            if cursor.rowcount == 0:
                raise AuthorizationError(
                    f"Not allowed to invite to project {project_id}"
                )

        logger.info(f"Invited {email} to project {project_id} as {role.value}")
        return self.find_by_token(token, now=now)

    def create_many(
        self,
        project_ids: Iterable[int],
        email: str,
        role: str = Role.MEMBER.value,
        *,
        replace_existing: bool = False,
        now: Optional[datetime] = None,
    ) -> List[Invitation]:
        """Invite one email address to several projects.

        Stops at the first failure; invitations already created are kept.
        replace_existing applies to every project, as in create().

        Returns:
            One Invitation per project, in input order.
        """
        return [
            self.create(
                project_id, email, role, replace_existing=replace_existing, now=now
            )
            for project_id in project_ids
        ]

    def find_active(
        self, project_id: int, email: str, now: Optional[datetime] = None
    ) -> Optional[Invitation]:
        """Find the pending, unexpired invitation for a project and email.

        Returns:
            The Invitation, or None if there is none (or the user cannot see it).
        """
        now = now or datetime.now()
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_INVITATION_SELECT_FIELDS}
                FROM invitations
                WHERE project_id = ? AND email = ? AND status = 'pending'
                  AND expires_at >= ? AND {owner_policy()}
                ORDER BY created_at DESC, id DESC
                LIMIT 1
                """,
                (
                    project_id,
                    email.strip().lower(),
                    format_timestamp(now),
                    self.session.user_id,
                ),
            ).fetchone()
            return self._row_to_invitation(row) if row else None

    def find_by_project(self, project_id: int) -> List[Invitation]:
        """List a project's invitations, newest first. Owner only."""
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_INVITATION_SELECT_FIELDS}
                FROM invitations
                WHERE project_id = ? AND {owner_policy()}
                ORDER BY created_at DESC, id DESC
                """,
                (project_id, self.session.user_id),
            ).fetchall()
            return [self._row_to_invitation(row) for row in rows]

    def find_by_token(
        self, token: str, now: Optional[datetime] = None
    ) -> Optional[Invitation]:
        """Look up an invitation by its token.

        A pending invitation found past its expiry is written back as expired.

        Args:
            token: Token from the invite link.
            now: Override for the current time.

        Returns:
            The Invitation, or None if the token is unknown.
        """
        now = now or datetime.now()
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT {_INVITATION_SELECT_FIELDS} FROM invitations WHERE token = ?",
                (token,),
            ).fetchone()
            if row is None:
                return None

            invitation = self._row_to_invitation(row)
            if invitation.status == InvitationStatus.PENDING and invitation.is_expired(now):
                conn.execute(
                    "UPDATE invitations SET status = 'expired' WHERE id = ? AND status = 'pending'",
                    (invitation.id,),
                )
                conn.commit()
                invitation.status = InvitationStatus.EXPIRED
                logger.debug(f"Invitation {invitation.id} marked expired on read")

            return invitation

    def validate(
        self,
        token: str,
        email: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[InviteCheck, Optional[Invitation]]:
        """Check whether a token can be accepted.

        Args:
            token: Token from the invite link.
            email: Email of the user who wants to accept, if signed in.
            now: Override for the current time.

        Returns:
            Tuple of (InviteCheck, Invitation or None).
        """
        if not token:
            return InviteCheck.INVALID, None

        invitation = self.find_by_token(token, now=now)
        if invitation is None:
            return InviteCheck.INVALID, None

        if invitation.status == InvitationStatus.EXPIRED:
            return InviteCheck.EXPIRED, invitation

        if invitation.status == InvitationStatus.ACCEPTED:
            return InviteCheck.ACCEPTED, invitation

        if email and email.strip().lower() != invitation.email:
            return InviteCheck.WRONG_EMAIL, invitation

        return InviteCheck.VALID, invitation

    def accept(self, token: str, now: Optional[datetime] = None) -> Invitation:
        """Accept an invitation as the signed-in user.

        Adds the membership (unless the user is already a member) and marks
        the invitation accepted.

        Raises:
            AuthenticationError: If nobody is signed in.
            InvitationError: If the token is not acceptable.
        """
        user = self.session.require_user()
        now = now or datetime.now()

        check, invitation = self.validate(token, user.email, now=now)
        if check != InviteCheck.VALID:
            if check == InviteCheck.WRONG_EMAIL:
                message = (
                    f"This invitation is for {invitation.email}, "
                    f"but you're signed in as {user.email}"
                )
            else:
                message = f"Invitation is {check.value}"
            raise InvitationError(message, check)

        if not self.members.add(invitation.project_id, user.id, Role(invitation.role)):
            logger.info(f"{user.email} is already a member of project {invitation.project_id}")

        with self.db_manager.connect() as conn:
            conn.execute(
                "UPDATE invitations SET status = 'accepted', accepted_at = ? WHERE id = ?",
                (format_timestamp(now), invitation.id),
            )
            conn.commit()

        invitation.status = InvitationStatus.ACCEPTED
        invitation.accepted_at = now
        logger.info(f"{user.email} joined project {invitation.project_id} as {invitation.role}")
        return invitation

    def accept_many(
        self, tokens: Iterable[str], now: Optional[datetime] = None
    ) -> List[Tuple[str, InviteCheck]]:
        """Accept a bundle of invitations, continuing past failures.

        Returns:
            (token, outcome) pairs. VALID means the invitation was accepted.
        """
        results = []
        for token in tokens:
            try:
                self.accept(token, now=now)
                results.append((token, InviteCheck.VALID))
            except InvitationError as e:
                logger.warning(f"Skipping invitation: {e}")
                results.append((token, e.status))
        return results

    def mark_expired(self, now: Optional[datetime] = None) -> int:
        """Mark the user's pending invitations that are past expiry.

        Returns:
            Number of invitations marked expired.
        """
        now = now or datetime.now()
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE invitations SET status = 'expired'
                WHERE status = 'pending' AND expires_at < ? AND accepted_at IS NULL
                  AND {owner_policy()}
                """,
                (format_timestamp(now), self.session.user_id),
            )
            conn.commit()
            return cursor.rowcount

    def cleanup_old(
        self, age_days: int = CLEANUP_AGE_DAYS, now: Optional[datetime] = None
    ) -> int:
        """Delete expired and accepted invitations older than age_days.

        Returns:
            Number of invitations deleted.
        """
        now = now or datetime.now()
        cutoff = format_timestamp(now - timedelta(days=age_days))
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                DELETE FROM invitations
                WHERE status IN ('expired', 'accepted') AND created_at < ?
                  AND {owner_policy()}
                """,
                (cutoff, self.session.user_id),
            )
            conn.commit()
            logger.info(f"Removed {cursor.rowcount} old invitation(s)")
            return cursor.rowcount

    def _row_to_invitation(self, row) -> Invitation:
        return Invitation(
            id=row["id"],
            project_id=row["project_id"],
            email=row["email"],
            role=row["role"],
            invited_by=row["invited_by"],
            token=row["token"],
            expires_at=parse_timestamp(row["expires_at"]),
            status=InvitationStatus(row["status"]),
            accepted_at=parse_timestamp(row["accepted_at"]),
            created_at=parse_timestamp(row["created_at"]),
        )
