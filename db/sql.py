"""Shared SQL fragments and column conversions.

Row-level access is written into each statement: a row is visible or writable
only when the acting user holds a suitable membership in its project. A denied
write therefore succeeds at the driver level but affects zero rows, which the
services turn into AuthorizationError.
"""

from datetime import datetime
from typing import Optional

_MEMBERSHIP = "SELECT project_id FROM project_members WHERE user_id = ?"


def read_policy(column: str = "project_id") -> str:
    """Rows whose project the user belongs to, in any role.

    Takes one parameter: the acting user ID.
    """
    return f"{column} IN ({_MEMBERSHIP})"


def write_policy(column: str = "project_id") -> str:
    """Rows whose project the user may modify (owner or member).

    Takes one parameter: the acting user ID.
    """
    return f"{column} IN ({_MEMBERSHIP} AND role IN ('owner', 'member'))"


def owner_policy(column: str = "project_id") -> str:
    """Rows whose project the user owns.

    Takes one parameter: the acting user ID.
    """
    return f"{column} IN ({_MEMBERSHIP} AND role = 'owner')"


def format_timestamp(value: datetime) -> str:
    return value.isoformat(sep=" ", timespec="seconds")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)
