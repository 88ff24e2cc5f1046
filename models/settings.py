"""Project settings document and custom field definitions.

The settings document is stored as one JSON blob per project. It is parsed
with pydantic so absent keys come back as defaults and unknown keys survive a
round trip.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field as PydanticField, model_validator

DEFAULT_SELECT_OPTIONS = ["Option 1", "Option 2", "Option 3"]


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"


class DatePeriod(str, Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"
    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    THIS_YEAR = "thisYear"
    ALL = "all"
    CUSTOM = "custom"


def clean_options(options: Optional[List[str]]) -> List[str]:
    """Trim option labels and drop blanks, keeping input order."""
    if not options:
        return []
    return [option.strip() for option in options if option and option.strip()]


class CustomField(BaseModel):
    """A user-defined column attached to every transaction of a project.

    The name is the field's identity: transaction custom_data is keyed by it.
    Options only exist for select fields.
    """

    name: str
    type: FieldType = FieldType.TEXT
    options: Optional[List[str]] = None

    @model_validator(mode="after")
    def _options_only_for_select(self) -> "CustomField":
        if self.type != FieldType.SELECT:
            self.options = None
        return self

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ProjectSettings(BaseModel):
    """A project's settings document with defaults for every absent key."""

    model_config = ConfigDict(extra="allow")

    currency: str = "USD"
    date_format: str = "YYYY-MM-DD"
    notifications_enabled: bool = True
    custom_fields: List[CustomField] = PydanticField(default_factory=list)
    custom_field_values: Dict[str, List[str]] = PydanticField(default_factory=dict)
    default_date_period: DatePeriod = DatePeriod.THIS_MONTH

    @classmethod
    def from_document(cls, document: Optional[Dict[str, Any]]) -> "ProjectSettings":
        """Parse a stored settings document.

        None, a missing document, and keys stored as null all read as defaults.
        """
        if not document:
            return cls()
        return cls.model_validate(
            {key: value for key, value in document.items() if value is not None}
        )

    def to_document(self) -> Dict[str, Any]:
        """Serialize the whole document for storage."""
        document = self.model_dump(mode="json")
        document["custom_fields"] = [f.to_document() for f in self.custom_fields]
        return document

    def find_field(self, name: str) -> Optional[CustomField]:
        """Find a field by exact name."""
        for field in self.custom_fields:
            if field.name == name:
                return field
        return None

    def has_field_named(self, name: str, exclude: Optional[str] = None) -> bool:
        """Case-insensitive name collision check.

        Args:
            name: Candidate field name.
            exclude: Exact name of a field to ignore (the one being renamed).
        """
        candidate = name.strip().lower()
        return any(
            field.name.lower() == candidate
            for field in self.custom_fields
            if exclude is None or field.name != exclude
        )

    def field_names(self) -> List[str]:
        return [field.name for field in self.custom_fields]
