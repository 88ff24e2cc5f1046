"""Sign-in and profile provisioning."""

import re
from typing import Optional

from db.sql import parse_timestamp
from logger import get_logger
from models.profile import Profile
from services.errors import AuthenticationError

logger = get_logger()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class Session:
    """The signed-in user shared by every service of one Services container."""

    def __init__(self):
        self.user: Optional[Profile] = None

    @property
    def user_id(self) -> Optional[int]:
        return self.user.id if self.user else None

    def require_user(self) -> Profile:
        """Return the signed-in user.

        Raises:
            AuthenticationError: If nobody is signed in.
        """
        if self.user is None:
            raise AuthenticationError("Not signed in")
        return self.user


class AuthService:
    """Service for signing in and managing user profiles."""

    def __init__(self, db_manager, session: Session):
        """Initialize the auth service.

        Args:
            db_manager: Database manager instance for database operations.
            session: Session updated on sign-in and sign-out.
        """
        self.db_manager = db_manager
        self.session = session

    def sign_in(self, email: str, name: Optional[str] = None) -> Profile:
        """Sign in as the given email, creating the profile on first use.

        Args:
            email: User email address.
            name: Display name used when the profile has to be created.

        Returns:
            The signed-in Profile.

        Raises:
            AuthenticationError: If the email is malformed.
        """
        email = (email or "").strip().lower()
        if not _EMAIL_RE.match(email):
            raise AuthenticationError(f"Invalid email address: {email!r}")

        profile = self.find_by_email(email)
        if profile is None:
            profile = self._create_profile(email, name)
            logger.info(f"Created profile for {email}")

        self.session.user = profile
        return profile

    def sign_out(self) -> None:
        self.session.user = None

    def find(self, profile_id: int) -> Optional[Profile]:
        """Get a single profile by ID.

        Args:
            profile_id: The profile ID to find.

        Returns:
            Profile object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                "SELECT id, email, name, created_at FROM profiles WHERE id = ?",
                (profile_id,),
            ).fetchone()
            return self._row_to_profile(row) if row else None

    def find_by_email(self, email: str) -> Optional[Profile]:
        with self.db_manager.connect() as conn:
            row = conn.execute(
                "SELECT id, email, name, created_at FROM profiles WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
            return self._row_to_profile(row) if row else None

    def _create_profile(self, email: str, name: Optional[str]) -> Profile:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO profiles (email, name) VALUES (?, ?)",
                (email, name or email.split("@")[0]),
            )
            conn.commit()
            profile_id = cursor.lastrowid

        return self.find(profile_id)

    def _row_to_profile(self, row) -> Profile:
        return Profile(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            created_at=parse_timestamp(row["created_at"]),
        )
