"""Pydantic models for Expense data"""
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Literal, Optional, get_args

Category = Literal['Food', 'Transport', 'Utilities', 'Entertainment', 'Healthcare', 'Shopping', 'Other']
CATEGORIES = get_args(Category)


class ExpenseUpdate(BaseModel):
    """Mutable fields of an expense. The date is fixed at creation."""
    description: str = Field(..., min_length=1)
    amount: float
    category: Category

    @field_validator('description', mode='before')
    @classmethod
    def strip_description(cls, value):
        return value.strip() if isinstance(value, str) else value


class ExpenseCreate(ExpenseUpdate):
    date: Optional[datetime] = None

    @field_validator('date', mode='before')
    @classmethod
    def blank_date_means_now(cls, value):
        # An empty date falls back to the insert time like a missing one
        return value or None


class Expense(BaseModel):
    """
    Represents a single recorded expense.
    """
    id: Optional[str] = None
    description: str
    amount: float
    category: Category
    date: datetime

    class Config:
        populate_by_name = True
        from_attributes = True


class DeleteResult(BaseModel):
    id: str
    message: str
