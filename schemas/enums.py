from __future__ import annotations

from enum import Enum


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"


class TransactionCategory(str, Enum):
    # expense
    food = "Food"
    transportation = "Transportation"
    entertainment = "Entertainment"
    bills = "Bills"
    shopping = "Shopping"
    healthcare = "Healthcare"
    education = "Education"
    travel = "Travel"
    personal = "Personal"
    # income
    salary = "Salary"
    freelance = "Freelance"
    investment = "Investment"
    gift = "Gift"
    business = "Business"
    other = "Other"


class BudgetCategory(str, Enum):
    food = "Food"
    transportation = "Transportation"
    entertainment = "Entertainment"
    bills = "Bills"
    shopping = "Shopping"
    healthcare = "Healthcare"
    education = "Education"
    other = "Other"


class BudgetPeriod(str, Enum):
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"


class StatsPeriod(str, Enum):
    week = "week"
    month = "month"
    year = "year"

    @classmethod
    def parse(cls, value: str | None) -> "StatsPeriod":
        """Unknown or missing values fall back to the current month."""
        try:
            return cls(value)
        except ValueError:
            return cls.month
