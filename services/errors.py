"""Exceptions raised by Ledgerly services."""


class LedgerlyError(Exception):
    """Base class for application errors."""


class ConfigurationError(LedgerlyError):
    """The configuration is missing or invalid."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class BackendNotInitializedError(LedgerlyError):
    """The backend handle was used before it was created."""


class AuthenticationError(LedgerlyError):
    """No signed-in user, or the credentials were rejected."""


class AuthorizationError(LedgerlyError):
    """A write was accepted by the database but affected no rows."""


class DuplicateFieldError(LedgerlyError):
    """A custom field with the same name (case-insensitive) already exists."""


class FieldNotFoundError(LedgerlyError):
    """The named custom field does not exist in the project settings."""


class DuplicateInvitationError(LedgerlyError):
    """An active invitation already exists for this project and email.

    Attributes:
        invitation: The existing invitation.
    """

    def __init__(self, invitation):
        self.invitation = invitation
        super().__init__(
            f"{invitation.email} already has a pending invitation "
            f"(expires {invitation.expires_at.isoformat()})"
        )


class MigrationError(LedgerlyError):
    """The custom-field rename sweep stopped partway.

    Records already rewritten stay rewritten.

    Attributes:
        migrated: Number of transactions rewritten before the failure.
        remaining: Number of transactions that still hold the old key.
    """

    def __init__(self, message: str, migrated: int, remaining: int):
        self.migrated = migrated
        self.remaining = remaining
        super().__init__(
            f"{message} ({migrated} migrated, {remaining} not migrated)"
        )


class InvitationError(LedgerlyError):
    """An invitation could not be accepted.

    Attributes:
        status: The InviteCheck explaining why.
    """

    def __init__(self, message: str, status):
        self.status = status
        super().__init__(message)
