"""Named date-period ranges and filtering."""

from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from models.settings import DatePeriod
from models.transaction import Transaction

DateRange = Tuple[date, date]


def period_range(
    period: DatePeriod,
    today: Optional[date] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> Optional[DateRange]:
    """Get the inclusive date range for a named period.

    Args:
        period: The period to evaluate.
        today: Reference date. Defaults to date.today().
        custom_start: Start bound for DatePeriod.CUSTOM.
        custom_end: End bound for DatePeriod.CUSTOM.

    Returns:
        (start, end) tuple, or None when the period does not restrict dates.
        A custom period with either bound missing does not restrict dates.

    Example:
        >>> period_range(DatePeriod.LAST_7_DAYS, date(2024, 3, 15))
        (datetime.date(2024, 3, 8), datetime.date(2024, 3, 15))
    """
    today = today or date.today()
    period = DatePeriod(period)

    if period == DatePeriod.TODAY:
        return today, today
    if period == DatePeriod.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if period == DatePeriod.LAST_7_DAYS:
        return today - timedelta(days=7), today
    if period == DatePeriod.LAST_30_DAYS:
        return today - timedelta(days=30), today
    if period == DatePeriod.THIS_MONTH:
        return today.replace(day=1), today
    if period == DatePeriod.LAST_MONTH:
        first_of_month = today.replace(day=1)
        return first_of_month - relativedelta(months=1), first_of_month - timedelta(days=1)
    if period == DatePeriod.THIS_YEAR:
        return date(today.year, 1, 1), today
    if period == DatePeriod.CUSTOM:
        if custom_start is None or custom_end is None:
            return None
        return custom_start, custom_end
    return None


def filter_by_period(
    transactions: Iterable[Transaction],
    period: DatePeriod,
    today: Optional[date] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> List[Transaction]:
    """Keep transactions dated inside the period (both ends inclusive)."""
    bounds = period_range(period, today, custom_start, custom_end)
    if bounds is None:
        return list(transactions)

    start, end = bounds
    return [t for t in transactions if start <= t.date <= end]
