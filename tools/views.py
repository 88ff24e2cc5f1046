"""Table views over an in-memory transaction list.

Everything here is a pure function of its arguments. Callers recompute the
visible rows from the full list whenever any input changes.
"""

import locale
import unicodedata
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from models.category import Category, UNCATEGORIZED
from models.settings import CustomField, DatePeriod, FieldType
from models.transaction import Transaction
from tools.periods import filter_by_period

SORT_COLUMNS = ("date", "category", "amount")
ALL = "all"


@dataclass
class ViewState:
    """User-selected filter and sort state for the transaction table.

    Attributes:
        period: Date period to show.
        custom_start: Start bound when period is custom.
        custom_end: End bound when period is custom.
        search: Case-insensitive text matched against custom data values.
        category_id: Category to show, or "all".
        sort_column: One of date, category, amount.
        descending: Sort direction.
    """

    period: DatePeriod = DatePeriod.THIS_MONTH
    custom_start: Optional[date] = None
    custom_end: Optional[date] = None
    search: str = ""
    category_id: Any = ALL
    sort_column: str = "date"
    descending: bool = True

    def toggle_sort(self, column: str) -> None:
        """Sort by a column. Choosing the active column flips the direction."""
        if column not in SORT_COLUMNS:
            raise ValueError(f"Cannot sort by {column}")

        if column == self.sort_column:
            self.descending = not self.descending
        else:
            self.sort_column = column
            self.descending = True


def category_names(categories: Iterable[Category]) -> Dict[int, str]:
    return {category.id: category.name for category in categories}


def category_name(transaction: Transaction, names: Dict[int, str]) -> str:
    """Resolve a transaction's category name; missing ones are Uncategorized."""
    return names.get(transaction.category_id, UNCATEGORIZED)


def matches_search(transaction: Transaction, query: str) -> bool:
    """Case-insensitive substring match over custom data values only."""
    query = query.strip().lower()
    if not query:
        return True
    return any(
        query in str(value).lower()
        for value in transaction.custom_data.values()
        if value is not None
    )


def filter_by_category(transactions: Iterable[Transaction], category_id) -> List[Transaction]:
    if category_id in (None, ALL):
        return list(transactions)
    return [t for t in transactions if t.category_id == category_id]


def _collation_key(name: str) -> str:
    # Accents sort with their base letter even under the C locale
    decomposed = unicodedata.normalize("NFKD", name.casefold())
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return locale.strxfrm(base)


def sort_transactions(
    transactions: Iterable[Transaction],
    column: str,
    descending: bool,
    names: Dict[int, str],
) -> List[Transaction]:
    """Sort by date, amount, or resolved category name."""
    def sort_key(transaction: Transaction):
        if column == "date":
            return transaction.date
        if column == "amount":
            return transaction.amount
        return _collation_key(category_name(transaction, names))

    if column not in SORT_COLUMNS:
        raise ValueError(f"Cannot sort by {column}")

    return sorted(transactions, key=sort_key, reverse=descending)


def visible_rows(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    state: ViewState,
    today: Optional[date] = None,
) -> List[Transaction]:
    """Apply period, search and category filters in turn, then sort.

    Args:
        transactions: Full transaction list of the project.
        categories: The project's categories, used to resolve names.
        state: Current filter and sort state.
        today: Reference date for the period filter.

    Returns:
        The rows to display, in display order.
    """
    names = category_names(categories)

    rows = filter_by_period(
        transactions, state.period, today, state.custom_start, state.custom_end
    )
    rows = [t for t in rows if matches_search(t, state.search)]
    rows = filter_by_category(rows, state.category_id)
    return sort_transactions(rows, state.sort_column, state.descending, names)


def format_date(value: date, date_format: str = "YYYY-MM-DD") -> str:
    """Render a date using YYYY, MM and DD tokens."""
    return (
        date_format.replace("YYYY", f"{value.year:04d}")
        .replace("MM", f"{value.month:02d}")
        .replace("DD", f"{value.day:02d}")
    )


def coerce_custom_value(field: CustomField, raw: Any) -> Any:
    """Convert form input for a custom field into its stored value.

    Blank input is stored as None.

    Raises:
        ValueError: If the input does not fit the field type.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None

    if field.type == FieldType.NUMBER:
        return float(raw)
    if field.type == FieldType.DATE:
        if isinstance(raw, date):
            return raw.isoformat()
        return date.fromisoformat(str(raw).strip()).isoformat()
    if field.type == FieldType.SELECT:
        value = str(raw).strip()
        if value not in (field.options or []):
            raise ValueError(f"'{value}' is not an option of {field.name}")
        return value
    return str(raw).strip()


def build_custom_data(
    fields: List[CustomField],
    raw_values: Dict[str, Any],
    is_new: bool = True,
) -> Dict[str, Any]:
    """Build a transaction's custom_data from form input.

    New transactions get the first option of every select field left empty.
    Blank values are omitted.
    """
    custom_data = {}
    for field in fields:
        value = coerce_custom_value(field, raw_values.get(field.name))
        if value is None and is_new and field.type == FieldType.SELECT and field.options:
            value = field.options[0]
        if value is not None:
            custom_data[field.name] = value
    return custom_data
