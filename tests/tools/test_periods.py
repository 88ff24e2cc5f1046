from datetime import date

import pytest

from models.settings import DatePeriod
from tests.helpers import make_transaction
from tools.periods import filter_by_period, period_range

TODAY = date(2024, 3, 15)


class TestPeriodRange:
    """Tests for period_range."""

    @pytest.mark.parametrize(
        "period,expected",
        [
            (DatePeriod.TODAY, (date(2024, 3, 15), date(2024, 3, 15))),
            (DatePeriod.YESTERDAY, (date(2024, 3, 14), date(2024, 3, 14))),
            (DatePeriod.LAST_7_DAYS, (date(2024, 3, 8), date(2024, 3, 15))),
            (DatePeriod.LAST_30_DAYS, (date(2024, 2, 14), date(2024, 3, 15))),
            (DatePeriod.THIS_MONTH, (date(2024, 3, 1), date(2024, 3, 15))),
            (DatePeriod.LAST_MONTH, (date(2024, 2, 1), date(2024, 2, 29))),
            (DatePeriod.THIS_YEAR, (date(2024, 1, 1), date(2024, 3, 15))),
            (DatePeriod.ALL, None),
        ],
    )
    def test_named_periods(self, period, expected):
        assert period_range(period, TODAY) == expected

    def test_last_month_across_year_boundary(self):
        """Test lastMonth in January is December of the previous year."""
        assert period_range(DatePeriod.LAST_MONTH, date(2024, 1, 10)) == (
            date(2023, 12, 1),
            date(2023, 12, 31),
        )

    def test_period_accepts_plain_string(self):
        assert period_range("today", TODAY) == (TODAY, TODAY)

    def test_custom_with_both_bounds(self):
        start, end = date(2024, 1, 1), date(2024, 1, 31)

        assert period_range(DatePeriod.CUSTOM, TODAY, start, end) == (start, end)

    def test_custom_missing_bound_does_not_filter(self):
        """Test a half-filled custom range behaves like all."""
        assert period_range(DatePeriod.CUSTOM, TODAY, date(2024, 1, 1), None) is None
        assert period_range(DatePeriod.CUSTOM, TODAY, None, date(2024, 1, 1)) is None


class TestFilterByPeriod:
    """Tests for filter_by_period."""

    def test_last7days_boundaries(self):
        """Test 2024-03-08 is inside last7days on 2024-03-15 and 2024-03-07 is not."""
        inside = make_transaction(on=date(2024, 3, 8))
        outside = make_transaction(on=date(2024, 3, 7))

        result = filter_by_period([inside, outside], DatePeriod.LAST_7_DAYS, TODAY)

        assert result == [inside]

    def test_all_keeps_everything(self):
        transactions = [make_transaction(on=date(2001, 1, 1)), make_transaction()]

        assert filter_by_period(transactions, DatePeriod.ALL, TODAY) == transactions

    def test_custom_half_range_keeps_everything(self):
        transactions = [make_transaction(on=date(2001, 1, 1)), make_transaction()]

        result = filter_by_period(
            transactions, DatePeriod.CUSTOM, TODAY, custom_start=date(2024, 1, 1)
        )

        assert result == transactions
