"""Invitation model for project collaboration."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"


@dataclass
class Invitation:
    """An emailed, token-addressed offer to join a project.

    Attributes:
        id: Unique identifier (auto-generated).
        project_id: Project the invitee will join.
        email: Invitee email address.
        role: "member" or "viewer".
        invited_by: Profile ID of the inviter.
        token: Random token carried by the invite link.
        expires_at: Expiry timestamp.
        status: pending, accepted or expired.
        accepted_at: When the invitation was accepted, if it was.
        created_at: When the invitation was issued.
    """

    id: int
    project_id: int
    email: str
    role: str
    invited_by: Optional[int]
    token: str
    expires_at: datetime
    status: InvitationStatus = InvitationStatus.PENDING
    accepted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at < (now or datetime.now())

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return self.status == InvitationStatus.PENDING and not self.is_expired(now)
