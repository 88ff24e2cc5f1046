from datetime import date
from decimal import Decimal

import pytest

from models.category import Category
from models.settings import CustomField, DatePeriod, FieldType
from tests.helpers import make_transaction
from tools.views import (
    ViewState,
    build_custom_data,
    category_name,
    category_names,
    coerce_custom_value,
    format_date,
    matches_search,
    visible_rows,
)

TODAY = date(2024, 3, 15)


@pytest.fixture
def categories():
    # IDs deliberately in reverse alphabetical order
    return [
        Category(id=1, project_id=1, name="Zebra", order=0),
        Category(id=2, project_id=1, name="apple", order=1),
        Category(id=3, project_id=1, name="Mango", order=2),
    ]


class TestViewState:
    """Tests for sort toggling."""

    def test_same_column_flips_direction(self):
        state = ViewState()

        state.toggle_sort("date")

        assert state.sort_column == "date"
        assert state.descending is False

    def test_new_column_resets_to_descending(self):
        state = ViewState(sort_column="date", descending=False)

        state.toggle_sort("amount")

        assert state.sort_column == "amount"
        assert state.descending is True

    def test_unknown_column(self):
        with pytest.raises(ValueError):
            ViewState().toggle_sort("description")


class TestSearch:
    """Tests for matches_search."""

    def test_matches_custom_values_case_insensitively(self):
        transaction = make_transaction(custom_data={"Shop": "ALDI Süd", "Qty": 12})

        assert matches_search(transaction, "aldi")
        assert matches_search(transaction, "12")

    def test_does_not_search_description_or_amount(self):
        transaction = make_transaction("-42.00", description="groceries")

        assert not matches_search(transaction, "groceries")
        assert not matches_search(transaction, "42")

    def test_empty_query_matches_everything(self):
        assert matches_search(make_transaction(), "")
        assert matches_search(make_transaction(), "   ")


class TestVisibleRows:
    """Tests for the combined filter and sort pipeline."""

    def test_category_sort_uses_names(self, categories):
        """Test "Zebra" sorts after "apple" even though its id is smaller."""
        zebra = make_transaction(category_id=1)
        apple = make_transaction(category_id=2)
        state = ViewState(period=DatePeriod.ALL, sort_column="category", descending=False)

        rows = visible_rows([zebra, apple], categories, state, TODAY)

        assert rows == [apple, zebra]

    def test_accented_names_sort_with_base_letter(self, categories):
        """Test "Épicerie" sorts among the E names, before "Mango" and "Zebra"."""
        accented = categories + [Category(id=4, project_id=1, name="Épicerie", order=3)]
        zebra = make_transaction(category_id=1)
        mango = make_transaction(category_id=3)
        epicerie = make_transaction(category_id=4)
        state = ViewState(period=DatePeriod.ALL, sort_column="category", descending=False)

        rows = visible_rows([zebra, mango, epicerie], accented, state, TODAY)

        assert rows == [epicerie, mango, zebra]

    def test_uncategorized_name_is_resolved(self, categories):
        """Test orphaned category references read as Uncategorized."""
        names = category_names(categories)

        assert category_name(make_transaction(category_id=99), names) == "Uncategorized"
        assert category_name(make_transaction(category_id=None), names) == "Uncategorized"

    def test_filters_combine(self, categories):
        """Test period, search and category filters intersect."""
        keep = make_transaction(on=date(2024, 3, 10), category_id=1, custom_data={"Shop": "Aldi"})
        old = make_transaction(on=date(2024, 1, 10), category_id=1, custom_data={"Shop": "Aldi"})
        other_shop = make_transaction(on=date(2024, 3, 10), category_id=1, custom_data={"Shop": "Lidl"})
        other_category = make_transaction(
            on=date(2024, 3, 10), category_id=2, custom_data={"Shop": "Aldi"}
        )
        state = ViewState(period=DatePeriod.THIS_MONTH, search="aldi", category_id=1)

        rows = visible_rows([keep, old, other_shop, other_category], categories, state, TODAY)

        assert rows == [keep]

    def test_default_sort_is_date_descending(self, categories):
        first = make_transaction(on=date(2024, 3, 1))
        second = make_transaction(on=date(2024, 3, 2))

        rows = visible_rows([first, second], categories, ViewState(), TODAY)

        assert rows == [second, first]

    def test_amount_sort(self, categories):
        small = make_transaction("-5")
        large = make_transaction("-50")
        income = make_transaction("100")
        state = ViewState(period=DatePeriod.ALL, sort_column="amount", descending=False)

        assert visible_rows([income, small, large], categories, state, TODAY) == [
            large,
            small,
            income,
        ]


class TestFormatting:
    """Tests for date display and custom value coercion."""

    @pytest.mark.parametrize(
        "fmt,expected",
        [
            ("YYYY-MM-DD", "2024-03-05"),
            ("DD/MM/YYYY", "05/03/2024"),
            ("MM.DD.YYYY", "03.05.2024"),
        ],
    )
    def test_format_date(self, fmt, expected):
        assert format_date(date(2024, 3, 5), fmt) == expected

    def test_coerce_number(self):
        field = CustomField(name="Qty", type=FieldType.NUMBER)

        assert coerce_custom_value(field, "3.5") == 3.5
        with pytest.raises(ValueError):
            coerce_custom_value(field, "three")

    def test_coerce_date(self):
        field = CustomField(name="When", type=FieldType.DATE)

        assert coerce_custom_value(field, "2024-03-05") == "2024-03-05"
        with pytest.raises(ValueError):
            coerce_custom_value(field, "yesterday")

    def test_coerce_select_requires_option(self):
        field = CustomField(name="Method", type=FieldType.SELECT, options=["Cash", "Card"])

        assert coerce_custom_value(field, " Card ") == "Card"
        with pytest.raises(ValueError):
            coerce_custom_value(field, "Crypto")

    def test_blank_is_none(self):
        assert coerce_custom_value(CustomField(name="Note"), "  ") is None

    def test_new_transaction_defaults_select_to_first_option(self):
        fields = [
            CustomField(name="Method", type=FieldType.SELECT, options=["Cash", "Card"]),
            CustomField(name="Note"),
        ]

        assert build_custom_data(fields, {}, is_new=True) == {"Method": "Cash"}
        assert build_custom_data(fields, {}, is_new=False) == {}
        assert build_custom_data(fields, {"Note": "hi"}, is_new=False) == {"Note": "hi"}

    def test_amounts_are_decimals(self):
        assert make_transaction("-1.10").amount == Decimal("-1.10")
