"""Daily cash-count worksheet stored as a JSON file per project.

The worksheet is kept outside the database. A worksheet saved on an earlier
calendar day is discarded when loaded.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from logger import get_logger

logger = get_logger()

DENOMINATIONS = [
    Decimal(value)
    for value in (
        "200", "100", "50", "20", "10", "5", "2", "1",
        "0.50", "0.20", "0.10", "0.05", "0.02", "0.01",
    )
]

MATCH_TOLERANCE = Decimal("0.01")


class EntryKind(str, Enum):
    NAMED = "named"
    ANONYMOUS = "anonymous"


class MatchStatus(str, Enum):
    MATCH = "match"
    EXCESS = "excess"
    SHORTAGE = "shortage"


@dataclass
class CashEntry:
    """One counted batch of bills and coins.

    Attributes:
        kind: Named (who handed the cash in) or anonymous.
        counts: Number of pieces per denomination.
        name: Required for named entries.
        id: Random identifier.
        timestamp: When the entry was recorded.
    """

    kind: EntryKind
    counts: Dict[Decimal, int]
    name: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def total(self) -> Decimal:
        return sum(
            (denomination * count for denomination, count in self.counts.items()),
            Decimal("0"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "counts": {str(d): c for d, c in self.counts.items() if c},
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CashEntry":
        return cls(
            id=data["id"],
            kind=EntryKind(data["kind"]),
            name=data.get("name"),
            counts={Decimal(d): int(c) for d, c in data.get("counts", {}).items()},
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


def make_entry(
    counts: Dict[Decimal, int], name: Optional[str] = None, named: bool = False
) -> CashEntry:
    """Validate counts and build an entry.

    Raises:
        ValueError: For an unknown denomination, a negative count, a named
            entry without a name, or an entry with nothing counted.
    """
    cleaned = {}
    for denomination, count in counts.items():
        denomination = Decimal(str(denomination))
        if denomination not in DENOMINATIONS:
            raise ValueError(f"Unknown denomination: {denomination}")
        if count < 0:
            raise ValueError(f"Count for {denomination} cannot be negative")
        if count:
            cleaned[denomination] = int(count)

    if named and not (name or "").strip():
        raise ValueError("Named entries need a name")
    if not cleaned:
        raise ValueError("Nothing counted")

    if named:
        return CashEntry(kind=EntryKind.NAMED, counts=cleaned, name=name.strip())
    return CashEntry(kind=EntryKind.ANONYMOUS, counts=cleaned)


def match_status(counted: Decimal, expected: Decimal) -> MatchStatus:
    """Compare counted cash with the transactions total (1 cent tolerance)."""
    counted = Decimal(str(counted))
    expected = Decimal(str(expected))
    if abs(counted - expected) <= MATCH_TOLERANCE:
        return MatchStatus.MATCH
    if counted > expected:
        return MatchStatus.EXCESS
    return MatchStatus.SHORTAGE


class CashWorksheet:
    """Today's cash-count entries for one project."""

    def __init__(self, storage_dir: Path, project_id: int, today: Optional[date] = None):
        self.storage_dir = Path(storage_dir)
        self.project_id = project_id
        self.today = today or date.today()
        self.entries: List[CashEntry] = []

    @property
    def path(self) -> Path:
        return self.storage_dir / f"cash_counter_{self.project_id}.json"

    @property
    def total(self) -> Decimal:
        return sum((entry.total for entry in self.entries), Decimal("0"))

    def load(self) -> "CashWorksheet":
        """Read the stored worksheet, discarding it if it is not from today."""
        self.entries = []
        if not self.path.exists():
            return self

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            last_date = data.get("last_date")
            entries = [CashEntry.from_dict(entry) for entry in data.get("entries", [])]
        except (KeyError, TypeError, AttributeError, ValueError, InvalidOperation) as e:
            logger.warning(f"Discarding unreadable cash worksheet {self.path}: {e!r}")
            self.path.unlink()
            return self

        if last_date != self.today.isoformat():
            logger.info(f"Discarding cash worksheet from {last_date}")
            self.path.unlink()
            return self

        self.entries = entries
        return self

    def add(self, entry: CashEntry) -> CashEntry:
        self.entries.append(entry)
        self.save()
        return entry

    def remove(self, entry_id: str) -> bool:
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.id != entry_id]
        if len(self.entries) == before:
            return False
        self.save()
        return True

    def clear(self) -> None:
        self.entries = []
        self.save()

    def save(self) -> None:
        """Write the worksheet. An empty worksheet removes the file."""
        if not self.entries:
            if self.path.exists():
                self.path.unlink()
            return

        self.storage_dir.mkdir(parents=True, exist_ok=True)
        data = {
            "project_id": self.project_id,
            "entries": [entry.to_dict() for entry in self.entries],
            "last_date": self.today.isoformat(),
        }
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
