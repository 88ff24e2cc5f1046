"""Category model for transaction categorization."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

DEFAULT_CATEGORY_NAME = "General"
DEFAULT_CATEGORY_COLOR = "#6B7280"
UNCATEGORIZED = "Uncategorized"


@dataclass
class Category:
    """Represents a project-scoped transaction category.

    Attributes:
        id: Unique identifier (auto-generated).
        project_id: Owning project.
        name: Category name (not required to be unique).
        color: Hex color string, e.g. "#6B7280".
        order: Display position. Expected to be unique within a project but
            duplicates are tolerated.
        created_at: Creation timestamp.
    """

    id: int
    project_id: int
    name: str
    color: str = DEFAULT_CATEGORY_COLOR
    order: int = 0
    created_at: Optional[datetime] = None
