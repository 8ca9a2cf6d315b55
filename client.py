"""Async client that keeps the expense tracker's in-memory state in sync with the API.

State only changes after the server confirms a request. A failed call
leaves the state as it was and stores a banner message for its panel in
``errors`` (``"expenses"`` or ``"budget"``); the panels fail independently.
"""
import os
import logging
from datetime import date
from typing import Dict, List, Optional

import httpx
from dotenv import load_dotenv

from models.expense import Expense, Category
from models.budget import Budget
from models.summary import Summary
from utils.summary import ALL_CATEGORIES, filter_by_category, summarize
from utils.export import expenses_to_csv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_API_URL = os.getenv("EXPENSE_API_URL", "http://localhost:8080")

EXPENSES_PANEL = "expenses"
BUDGET_PANEL = "budget"


def validate_expense_input(description: str, amount) -> float:
    """Checks form input before it is sent and returns the amount as a number."""
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValueError("Please enter a valid description and amount")
    if not description or not description.strip() or value <= 0:
        raise ValueError("Please enter a valid description and amount")
    return value


def validate_budget_input(amount) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValueError("Please enter a valid budget amount")
    if value < 0:
        raise ValueError("Please enter a valid budget amount")
    return value


class ExpenseTrackerClient:
    def __init__(self, base_url: str = DEFAULT_API_URL, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=10.0)
        self.expenses: List[Expense] = []
        self.budget: Optional[Budget] = None
        self.editing_expense: Optional[Expense] = None
        self.pending_delete: Optional[str] = None
        self.errors: Dict[str, Optional[str]] = {EXPENSES_PANEL: None, BUDGET_PANEL: None}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def expenses_error(self) -> Optional[str]:
        return self.errors[EXPENSES_PANEL]

    @property
    def budget_error(self) -> Optional[str]:
        return self.errors[BUDGET_PANEL]

    def dismiss_error(self, panel: str) -> None:
        self.errors[panel] = None

    def _fail(self, panel: str, message: str, exc: Exception) -> None:
        logger.error(f"{message} ({exc})")
        self.errors[panel] = message

    # --- Expenses ---

    async def load_expenses(self) -> None:
        try:
            response = await self._http.get("/api/expenses")
            response.raise_for_status()
        except httpx.HTTPError as e:
            self._fail(EXPENSES_PANEL, "Failed to load expenses. Please ensure the server is running.", e)
            return
        self.expenses = [Expense(**item) for item in response.json()]
        self.errors[EXPENSES_PANEL] = None

    async def add_expense(self, description: str, amount, category: Category = "Food") -> Optional[Expense]:
        value = validate_expense_input(description, amount)
        payload = {"description": description.strip(), "amount": value, "category": category}
        try:
            response = await self._http.post("/api/expenses", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            self._fail(EXPENSES_PANEL, "Failed to add expense.", e)
            return None
        created = Expense(**response.json())
        self.expenses = [created] + self.expenses
        self.errors[EXPENSES_PANEL] = None
        return created

    def start_editing(self, expense_id: str) -> None:
        self.editing_expense = next((e for e in self.expenses if e.id == expense_id), None)

    def cancel_editing(self) -> None:
        self.editing_expense = None

    async def update_expense(self, expense_id: str, description: str, amount, category: Category) -> Optional[Expense]:
        value = validate_expense_input(description, amount)
        payload = {"description": description.strip(), "amount": value, "category": category}
        try:
            response = await self._http.put(f"/api/expenses/{expense_id}", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            self._fail(EXPENSES_PANEL, "Failed to update expense.", e)
            return None
        updated = Expense(**response.json())
        self.expenses = [updated if e.id == expense_id else e for e in self.expenses]
        self.editing_expense = None
        self.errors[EXPENSES_PANEL] = None
        return updated

    def request_delete(self, expense_id: str) -> None:
        """First step of a delete: remember which expense awaits confirmation."""
        self.pending_delete = expense_id

    def cancel_delete(self) -> None:
        self.pending_delete = None

    async def confirm_delete(self) -> bool:
        """Deletes the expense passed to request_delete, if any."""
        expense_id = self.pending_delete
        if expense_id is None:
            return False
        self.pending_delete = None
        try:
            response = await self._http.delete(f"/api/expenses/{expense_id}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            self._fail(EXPENSES_PANEL, "Failed to delete expense.", e)
            return False
        self.expenses = [e for e in self.expenses if e.id != expense_id]
        self.errors[EXPENSES_PANEL] = None
        return True

    # --- Budget ---

    async def load_budget(self) -> None:
        try:
            response = await self._http.get("/api/budget")
            response.raise_for_status()
        except httpx.HTTPError as e:
            self._fail(BUDGET_PANEL, "Failed to load budget from server.", e)
            return
        self.budget = Budget(**response.json())
        self.errors[BUDGET_PANEL] = None

    async def set_budget(self, amount) -> Optional[Budget]:
        value = validate_budget_input(amount)
        try:
            response = await self._http.post("/api/budget", json={"amount": value})
            response.raise_for_status()
        except httpx.HTTPError as e:
            self._fail(BUDGET_PANEL, "Failed to update budget. Please try again.", e)
            return None
        self.budget = Budget(**response.json())
        self.errors[BUDGET_PANEL] = None
        return self.budget

    # --- Derived views ---

    def summary(self, year: Optional[int] = None, month: Optional[int] = None, today: Optional[date] = None) -> Summary:
        budget = self.budget.amount if self.budget else 0
        return summarize(self.expenses, budget, year=year, month=month, today=today)

    def filtered(self, category: str = ALL_CATEGORIES) -> List[Expense]:
        return filter_by_category(self.expenses, category)

    def export_csv(self) -> str:
        return expenses_to_csv(self.expenses)
