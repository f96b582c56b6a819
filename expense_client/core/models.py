# expense_client/core/models.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import List, Optional

CATEGORIES = (
    "Food",
    "Transportation",
    "Housing",
    "Utilities",
    "Entertainment",
    "Healthcare",
    "Shopping",
    "Education",
    "Other",
)

TRANSACTION_TYPES = ("expense", "income")


def parse_api_date(value) -> date:
    """Return the calendar date of an API value, dropping any time suffix."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).split("T")[0])


@dataclass
class Transaction:
    id: Optional[str]
    description: str
    amount: float
    category: str
    date: date
    type: str = "expense"

    @classmethod
    def from_api(cls, payload: dict) -> "Transaction":
        return cls(
            id=payload.get("_id", payload.get("id")),
            description=payload.get("description", ""),
            amount=float(payload.get("amount", 0.0)),
            category=payload.get("category", ""),
            date=parse_api_date(payload["date"]),
            type=payload.get("type", "expense"),
        )

    def to_payload(self) -> dict:
        return {
            "description": self.description,
            "amount": self.amount,
            "category": self.category,
            "date": self.date.isoformat(),
            "type": self.type,
        }


@dataclass
class UserProfile:
    id: str
    name: str
    email: str
    currency: str = "USD"

    @classmethod
    def from_api(cls, payload: dict) -> "UserProfile":
        return cls(
            id=str(payload.get("id", payload.get("_id", ""))),
            name=payload.get("name", ""),
            email=payload.get("email", ""),
            currency=payload.get("currency") or "USD",
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CategoryTotal:
    category: str
    total: float


@dataclass
class MonthlySummary:
    total_income: float = 0.0
    total_expenses: float = 0.0
    balance: float = 0.0
    category_breakdown: List[CategoryTotal] = field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict) -> "MonthlySummary":
        breakdown = [
            CategoryTotal(
                category=str(row.get("category", row.get("_id", ""))),
                total=float(row.get("total", 0.0)),
            )
            for row in payload.get("categoryBreakdown") or []
        ]
        return cls(
            total_income=float(payload.get("totalIncome", 0.0)),
            total_expenses=float(payload.get("totalExpenses", 0.0)),
            balance=float(payload.get("balance", 0.0)),
            category_breakdown=breakdown,
        )
