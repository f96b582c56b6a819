# expense_client/views/summary_view.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from expense_client.core.models import MonthlySummary
from expense_client.currency import format_currency
from expense_client.errors import ExpenseClientError
from expense_client.store import ExpenseStore
from expense_client.utils import current_month, validate_month

logger = logging.getLogger(__name__)

# Positional palette shared by the bar chart, the pie chart and the table.
CHART_COLORS = (
    "rgba(255, 61, 61, 0.85)",
    "rgba(0, 198, 255, 0.85)",
    "rgba(255, 215, 0, 0.85)",
    "rgba(147, 112, 219, 0.85)",
    "rgba(255, 165, 0, 0.85)",
    "rgba(0, 255, 127, 0.85)",
    "rgba(255, 20, 147, 0.85)",
    "rgba(0, 191, 255, 0.85)",
)
BORDER_COLORS = tuple(color.replace("0.85)", "1)") for color in CHART_COLORS)


@dataclass
class ChartSeries:
    labels: List[str] = field(default_factory=list)
    values: List[float] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)
    border_colors: List[str] = field(default_factory=list)


@dataclass
class BreakdownRow:
    category: str
    total: float
    amount: str
    percentage: float
    percentage_label: str
    color: str


def category_percentage(total: float, total_expenses: float) -> float:
    """Share of ``total_expenses``; 0.0 when there are no expenses at all."""
    if not total_expenses:
        return 0.0
    return total / total_expenses * 100


def chart_series(summary: MonthlySummary) -> ChartSeries:
    rows = summary.category_breakdown
    return ChartSeries(
        labels=[row.category for row in rows],
        values=[row.total for row in rows],
        colors=[CHART_COLORS[i % len(CHART_COLORS)] for i in range(len(rows))],
        border_colors=[BORDER_COLORS[i % len(BORDER_COLORS)] for i in range(len(rows))],
    )


def breakdown_rows(summary: MonthlySummary, currency: str = "USD") -> List[BreakdownRow]:
    rows = []
    for i, item in enumerate(summary.category_breakdown):
        pct = category_percentage(item.total, summary.total_expenses)
        rows.append(
            BreakdownRow(
                category=item.category,
                total=item.total,
                amount=format_currency(item.total, currency),
                percentage=pct,
                percentage_label=f"{pct:.1f}%",
                color=CHART_COLORS[i % len(CHART_COLORS)],
            )
        )
    return rows


class SummaryViewModel:
    """One MonthlySummary per selected month plus its chart and table data."""

    def __init__(self, store: ExpenseStore, month: Optional[str] = None) -> None:
        self.store = store
        self.month = validate_month(month) if month else current_month()
        self.summary: Optional[MonthlySummary] = None
        self.series = ChartSeries()
        self.rows: List[BreakdownRow] = []
        self.loading = False
        self.error: Optional[str] = None

    def load(self) -> Optional[MonthlySummary]:
        self.loading = True
        try:
            summary = self.store.get_monthly_summary(self.month)
        except ExpenseClientError as exc:
            self.error = exc.message
            logger.error("Error loading summary for %s: %s", self.month, exc.message)
            return None
        finally:
            self.loading = False
        self.error = None
        self.summary = summary
        self.series = chart_series(summary)
        self.rows = breakdown_rows(summary, self.store.currency)
        return summary

    def select_month(self, month: str) -> Optional[MonthlySummary]:
        self.month = validate_month(month)
        return self.load()

    def format_amount(self, amount: float) -> str:
        return format_currency(amount, self.store.currency)
