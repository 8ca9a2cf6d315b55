"""Pydantic models for the monthly budget"""
from pydantic import BaseModel

# Key of the one budget document
BUDGET_IDENTIFIER = "main_budget"


class Budget(BaseModel):
    """The single global spending ceiling compared against monthly totals."""
    identifier: str = BUDGET_IDENTIFIER
    amount: float = 0

    class Config:
        from_attributes = True


class BudgetUpdate(BaseModel):
    amount: float
