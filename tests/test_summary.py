"""Tests for the pure aggregation functions in utils.summary."""
from datetime import date, datetime

import pytest

from models.expense import Expense
from utils import summary as s

TODAY = date(2025, 3, 20)


def make_expense(category, amount, when=datetime(2025, 3, 10, 9, 30), description="item"):
    return Expense(id=f"{category}-{amount}", description=description, amount=amount, category=category, date=when)


def test_total_is_order_independent():
    expenses = [make_expense("Food", 12.5), make_expense("Transport", 7.5), make_expense("Other", 30)]
    assert s.total_expenses(expenses) == 50
    assert s.total_expenses(list(reversed(expenses))) == 50


def test_average_of_empty_list_is_zero():
    assert s.average_expense([]) == 0


def test_average_is_total_over_count():
    expenses = [make_expense("Food", 10), make_expense("Food", 20), make_expense("Shopping", 60)]
    assert s.average_expense(expenses) == pytest.approx(30)


@pytest.mark.parametrize("budget, spent, expected", [
    (0, 0, 0),
    (0, 50, 0),
    (200, 50, 25),
    (100, 100, 100),
    (100, 250, 100),
])
def test_percentage(budget, spent, expected):
    assert s.percentage(budget, spent) == pytest.approx(expected)


def test_remaining_can_be_negative():
    assert s.remaining(100, 120) == -20
    assert s.remaining(100, 40) == 60


def test_over_budget_scenario():
    expenses = [make_expense("Food", 50), make_expense("Food", 30), make_expense("Transport", 40)]

    result = s.summarize(expenses, 100, today=TODAY)

    assert result.year == 2025 and result.month == 3
    assert result.monthly_total == 120
    assert result.remaining == -20
    assert result.percentage == 100
    assert result.top_category.category == "Food"
    assert result.top_category.amount == 80
    assert result.status == "danger"
    assert result.alert.type == "danger"
    assert result.alert.overage == 20
    assert result.alert.message == "You've exceeded your budget by $20.00!"


def test_empty_list_zero_budget():
    result = s.summarize([], 0, today=TODAY)

    assert result.total_expenses == 0
    assert result.average_expense == 0
    assert result.percentage == 0
    assert result.top_category is None
    assert result.category_totals == {}
    assert result.alert is None
    assert result.status == "safe"


def test_other_month_counts_only_toward_total():
    expenses = [
        make_expense("Food", 25),
        make_expense("Entertainment", 100, when=datetime(2025, 2, 28, 23, 0)),
    ]

    result = s.summarize(expenses, 500, year=2025, month=3)

    assert result.total_expenses == 125
    assert result.monthly_total == 25
    assert result.monthly_count == 1
    assert result.category_totals == {"Food": 25}


def test_month_and_year_must_both_match():
    expenses = [make_expense("Food", 10, when=datetime(2024, 3, 5))]
    assert s.monthly_expenses(expenses, 2025, 3) == []
    assert len(s.monthly_expenses(expenses, 2024, 3)) == 1


def test_top_category_tie_goes_to_first_encountered():
    totals = s.category_totals([make_expense("Utilities", 40), make_expense("Healthcare", 40)])
    assert s.top_category(totals) == ("Utilities", 40)


def test_near_budget_warning():
    alert = s.budget_alert(100, 80)
    assert alert.type == "warning"
    assert alert.message == "You have spent 80% of your budget. Be careful!"
    assert alert.overage is None


def test_exactly_at_budget_warns_without_overage():
    alert = s.budget_alert(100, 100)
    assert alert.type == "warning"


def test_below_threshold_has_no_alert():
    assert s.budget_alert(100, 74.99) is None
    assert s.budget_status(74.99) == "safe"
    assert s.budget_status(75) == "warning"


def test_zero_budget_with_spending_is_exceeded():
    alert = s.budget_alert(0, 15)
    assert alert.type == "danger"
    assert alert.overage == 15


def test_filter_by_category():
    expenses = [make_expense("Food", 1), make_expense("Transport", 2), make_expense("Food", 3)]
    assert s.filter_by_category(expenses) == expenses
    assert [e.amount for e in s.filter_by_category(expenses, "Food")] == [1, 3]
    assert s.filter_by_category(expenses, "Shopping") == []
