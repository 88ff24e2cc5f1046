"""Chart-ready aggregates over transactions."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List

from models.category import Category, DEFAULT_CATEGORY_COLOR
from models.transaction import Transaction
from tools.views import category_name, category_names


@dataclass
class CategorySlice:
    """One pie-chart slice."""

    name: str
    color: str
    total: Decimal
    label: str


@dataclass
class TimeSeries:
    """Per-category values aligned on a shared, ascending date axis."""

    dates: List[date] = field(default_factory=list)
    series: Dict[str, List[Decimal]] = field(default_factory=dict)


def category_totals(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    currency: str,
) -> List[CategorySlice]:
    """Sum signed amounts by resolved category name.

    Pass the period-filtered list; search and category filters do not apply
    to the chart.

    Returns:
        Slices in order of first appearance.
    """
    categories = list(categories)
    names = category_names(categories)
    colors = {c.name: c.color for c in categories}

    totals: Dict[str, Decimal] = {}
    for transaction in transactions:
        name = category_name(transaction, names)
        totals[name] = totals.get(name, Decimal("0")) + transaction.amount

    return [
        CategorySlice(
            name=name,
            color=colors.get(name, DEFAULT_CATEGORY_COLOR),
            total=total,
            label=f"{name} ({currency} {total:.2f})",
        )
        for name, total in totals.items()
    ]


def time_series(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    cumulative: bool = False,
) -> TimeSeries:
    """Build daily per-category series for an area/line chart.

    Args:
        transactions: Filtered transactions.
        categories: Categories used to resolve names.
        cumulative: Running totals per category (ascending date order) instead
            of daily sums.

    Returns:
        TimeSeries whose every series has one value per date. Dates with no
        transaction for a category hold 0 (or the running total).
    """
    names = category_names(categories)
    daily: Dict[str, Dict[date, Decimal]] = defaultdict(lambda: defaultdict(Decimal))

    for transaction in transactions:
        daily[category_name(transaction, names)][transaction.date] += transaction.amount

    dates = sorted({d for by_date in daily.values() for d in by_date})
    result = TimeSeries(dates=dates)

    for name, by_date in daily.items():
        values = []
        running = Decimal("0")
        for day in dates:
            amount = by_date.get(day, Decimal("0"))
            if cumulative:
                running += amount
                values.append(running)
            else:
                values.append(amount)
        result.series[name] = values

    return result


def summarize(transactions: Iterable[Transaction]) -> Dict[str, object]:
    """Dashboard totals: sum of amounts, transaction count, category count."""
    transactions = list(transactions)
    return {
        "total": sum((t.amount for t in transactions), Decimal("0")),
        "count": len(transactions),
        "categories": len({t.category_id for t in transactions}),
    }
