"""Pure aggregation functions over an in-memory expense list.

Every function is a plain function of its arguments: the list is re-scanned
on each call and nothing is cached, so the same inputs always give the
same summary.
"""
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models.expense import Expense
from models.summary import BudgetAlert, CategoryTotal, Summary

ALL_CATEGORIES = "All"
NEAR_BUDGET_PERCENTAGE = 75


def total_expenses(expenses: Iterable[Expense]) -> float:
    return sum(expense.amount for expense in expenses)


def average_expense(expenses: Sequence[Expense]) -> float:
    if not expenses:
        return 0
    return total_expenses(expenses) / len(expenses)


def monthly_expenses(expenses: Iterable[Expense], year: int, month: int) -> List[Expense]:
    """Expenses whose calendar year and month (1-12) equal the selected ones."""
    return [e for e in expenses if e.date.year == year and e.date.month == month]


def category_totals(expenses: Iterable[Expense]) -> Dict[str, float]:
    # Insertion order is first-encountered order, which decides ties in top_category
    totals: Dict[str, float] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, 0) + expense.amount
    return totals


def top_category(totals: Dict[str, float]) -> Optional[Tuple[str, float]]:
    best = None
    for category, amount in totals.items():
        if best is None or amount > best[1]:
            best = (category, amount)
    return best


def remaining(budget: float, spent: float) -> float:
    return budget - spent


def percentage(budget: float, spent: float) -> float:
    """Share of the budget spent, capped at 100 for display."""
    if budget <= 0:
        return 0
    return min(spent / budget * 100, 100)


def budget_status(percent: float) -> str:
    if percent >= 100:
        return "danger"
    if percent >= NEAR_BUDGET_PERCENTAGE:
        return "warning"
    return "safe"


def budget_alert(budget: float, spent: float) -> Optional[BudgetAlert]:
    left = remaining(budget, spent)
    if left < 0:
        overage = abs(left)
        return BudgetAlert(
            type="danger",
            message=f"You've exceeded your budget by ${overage:.2f}!",
            overage=overage,
        )
    percent = percentage(budget, spent)
    if percent >= NEAR_BUDGET_PERCENTAGE:
        return BudgetAlert(
            type="warning",
            message=f"You have spent {percent:.0f}% of your budget. Be careful!",
        )
    return None


def filter_by_category(expenses: Iterable[Expense], category: str = ALL_CATEGORIES) -> List[Expense]:
    if category == ALL_CATEGORIES:
        return list(expenses)
    return [e for e in expenses if e.category == category]


def summarize(
    expenses: Sequence[Expense],
    budget: float,
    year: Optional[int] = None,
    month: Optional[int] = None,
    today: Optional[date] = None,
) -> Summary:
    """Builds the summary for (year, month), defaulting to the current month."""
    today = today or date.today()
    year = year if year is not None else today.year
    month = month if month is not None else today.month

    selected = monthly_expenses(expenses, year, month)
    spent = total_expenses(selected)
    totals = category_totals(selected)
    top = top_category(totals)
    percent = percentage(budget, spent)

    return Summary(
        year=year,
        month=month,
        expense_count=len(expenses),
        total_expenses=total_expenses(expenses),
        average_expense=average_expense(expenses),
        monthly_count=len(selected),
        monthly_total=spent,
        category_totals=totals,
        top_category=CategoryTotal(category=top[0], amount=top[1]) if top else None,
        budget=budget,
        remaining=remaining(budget, spent),
        percentage=percent,
        status=budget_status(percent),
        alert=budget_alert(budget, spent),
    )
