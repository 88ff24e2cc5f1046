"""Project and membership models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from models.settings import ProjectSettings


class Role(str, Enum):
    OWNER = "owner"
    MEMBER = "member"
    VIEWER = "viewer"

    @property
    def can_write(self) -> bool:
        return self in (Role.OWNER, Role.MEMBER)


@dataclass
class Project:
    """A budget/workspace owning categories, transactions and a settings document.

    Attributes:
        id: Unique identifier (auto-generated).
        name: Display name, also used in export filenames.
        description: Optional free text.
        owner_id: Profile ID of the creator.
        template: Name of the template the project was seeded from, if any.
        settings: Parsed settings document.
        role: The signed-in user's role, when loaded through a membership.
    """

    id: int
    name: str
    description: Optional[str]
    owner_id: int
    template: Optional[str] = None
    settings: ProjectSettings = field(default_factory=ProjectSettings)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    role: Optional[Role] = None


@dataclass
class ProjectMember:
    id: int
    project_id: int
    user_id: int
    role: Role
    joined_at: Optional[datetime] = None
