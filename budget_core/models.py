"""Data models for the daily budget ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterator, List, Optional

from .exceptions import InvalidConfigError

__all__ = ["CENT", "ZERO", "DayRecord", "Ledger", "Transaction", "quantize"]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(amount: Decimal) -> Decimal:
    """Round to cents using HALF_UP, the rounding used for every stored amount."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Transaction:
    amount: Decimal
    category: str

    def matches(self, category: str) -> bool:
        return self.category.lower() == category.strip().lower()

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": f"{self.amount:.2f}", "category": self.category}


@dataclass
class DayRecord:
    date: int
    budget: Decimal
    remaining: Decimal
    # Newest first.
    transactions: List[Transaction] = field(default_factory=list)

    @property
    def spent(self) -> Decimal:
        return sum((t.amount for t in self.transactions), start=ZERO)

    def find_transaction(self, category: str) -> Optional[int]:
        """Return the index of the first transaction matching ``category``."""
        for index, transaction in enumerate(self.transactions):
            if transaction.matches(category):
                return index
        return None

    def clamp_remaining(self) -> None:
        self.remaining = quantize(min(max(self.remaining, ZERO), self.budget))

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the day to JSON-friendly natives."""
        return {
            "date": self.date,
            "budget": f"{self.budget:.2f}",
            "remaining": f"{self.remaining:.2f}",
            "transactions": [t.to_dict() for t in self.transactions],
        }


@dataclass
class Ledger:
    """One month of day records, dates contiguous from 1."""

    monthly_budget: Decimal
    days_in_month: int
    days: List[DayRecord] = field(default_factory=list)

    @classmethod
    def create(cls, monthly_budget: Decimal, days_in_month: int) -> "Ledger":
        if not isinstance(days_in_month, int) or days_in_month <= 0:
            raise InvalidConfigError("days_in_month must be a positive integer")
        if monthly_budget <= 0:
            raise InvalidConfigError("monthly_budget must be greater than zero")
        per_day = quantize(Decimal(monthly_budget) / days_in_month)
        days = [
            DayRecord(date=date, budget=per_day, remaining=per_day)
            for date in range(1, days_in_month + 1)
        ]
        return cls(monthly_budget=quantize(Decimal(monthly_budget)), days_in_month=days_in_month, days=days)

    def __iter__(self) -> Iterator[DayRecord]:
        return iter(self.days)

    def __len__(self) -> int:
        return len(self.days)

    def find_day(self, date: int) -> Optional[DayRecord]:
        for day in self.days:
            if day.date == date:
                return day
        return None

    def days_after(self, date: int) -> List[DayRecord]:
        return [day for day in self.days if day.date > date]

    def total_remaining(self) -> Decimal:
        return sum((day.remaining for day in self.days), start=ZERO)

    def total_budget(self) -> Decimal:
        return sum((day.budget for day in self.days), start=ZERO)

    def total_spent(self) -> Decimal:
        return sum((day.spent for day in self.days), start=ZERO)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monthly_budget": f"{self.monthly_budget:.2f}",
            "days_in_month": self.days_in_month,
            "days": [day.to_dict() for day in self.days],
        }
