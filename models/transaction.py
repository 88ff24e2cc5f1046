from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional
import json


@dataclass
class Transaction:
    id: Optional[int]  # None until inserted
    project_id: int
    amount: Decimal  # signed: negative = expense, positive = income
    currency_code: str
    category_id: Optional[int]  # may point at a deleted category
    date: date
    description: Optional[str] = None
    custom_data: Dict[str, Any] = field(default_factory=dict)
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @staticmethod
    def signed_amount(amount, kind: str) -> Decimal:
        """Apply the income/expense sign to an amount entered as a magnitude.

        Args:
            amount: Amount as typed by the user; its own sign is ignored.
            kind: "expense" or "income".

        Returns:
            Negative Decimal for expenses, positive for income.
        """
        if kind not in ("expense", "income"):
            raise ValueError(f"Unknown transaction kind: {kind}")
        magnitude = abs(Decimal(str(amount)))
        return -magnitude if kind == "expense" else magnitude

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    def to_dict(self) -> dict:
        """Convert transaction to dictionary for database storage."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "amount": float(self.amount),
            "currency_code": self.currency_code,
            "category_id": self.category_id,
            "date": self.date.isoformat(),
            "description": self.description,
            "custom_data": json.dumps(self.custom_data) if self.custom_data else None,
            "created_by": self.created_by,
        }
