"""Pydantic models for Expense data"""
from pydantic import BaseModel
from datetime import datetime

DEFAULT_CATEGORY = "Others"


class ExpenseFields(BaseModel):
    """
    The four mutable fields of an expense, as accepted by create and update.
    """
    title: str
    amount: float
    category: str = DEFAULT_CATEGORY
    date: datetime


class Expense(ExpenseFields):
    """
    Represents a stored expense, including the id assigned by the database.
    """
    id: str
