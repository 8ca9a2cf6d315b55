"""Pydantic models for the derived expense summary"""
from pydantic import BaseModel
from typing import Dict, Literal, Optional


class CategoryTotal(BaseModel):
    category: str
    amount: float


class BudgetAlert(BaseModel):
    type: Literal['danger', 'warning']
    message: str
    overage: Optional[float] = None


class Summary(BaseModel):
    """
    Aggregates over the full expense list and the budget for one calendar month.
    Nothing here is persisted; it is recomputed on every request.
    """
    year: int
    month: int
    expense_count: int
    total_expenses: float
    average_expense: float
    monthly_count: int
    monthly_total: float
    category_totals: Dict[str, float]
    top_category: Optional[CategoryTotal] = None
    budget: float
    remaining: float
    percentage: float
    status: Literal['safe', 'warning', 'danger']
    alert: Optional[BudgetAlert] = None
