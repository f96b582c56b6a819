# expense_client/outputs/excel_output.py

"""Excel output module backed by XlsxWriter.

Writes a list-view projection to a workbook with a ``Transactions``
worksheet and a ``Summary`` worksheet that aggregates expenses by category
(in first-seen order) with the share of total expenses, followed by income,
expense and balance totals. Bar and pie charts of the category totals sit
next to the summary table.
"""

from __future__ import annotations

import os
import xlsxwriter

from expense_client.outputs.base import BaseOutput
from expense_client.utils import filter_transactions_by_month
from expense_client.views.summary_view import category_percentage


class ExcelOutput(BaseOutput):
    """Generate a local Excel workbook for one month of transactions."""

    TRANSACTIONS = "Transactions"
    SUMMARY = "Summary"
    HEADERS = ["date", "description", "category", "type", "amount"]

    def __init__(self, config: dict):
        self.config = config
        self.output_dir = config.get("output_dir", "data")
        os.makedirs(self.output_dir, exist_ok=True)

    def append(self, transactions, month=None):
        if month:
            transactions = filter_transactions_by_month(transactions, month)
        if not transactions:
            print("No transactions to write.")
            return None

        label = month or transactions[0].date.strftime("%Y-%m")
        out_path = os.path.join(self.output_dir, f"expenses-{label}.xlsx")

        workbook = xlsxwriter.Workbook(out_path)
        amount_fmt = workbook.add_format({"num_format": "#,##0.00"})

        ws = workbook.add_worksheet(self.TRANSACTIONS)
        ws.freeze_panes(1, 0)
        ws.write_row(0, 0, self.HEADERS)
        for idx, tx in enumerate(transactions, start=1):
            ws.write_row(idx, 0, [tx.date.isoformat(), tx.description, tx.category, tx.type])
            ws.write_number(idx, 4, float(tx.amount), amount_fmt)
        ws.set_column(4, 4, None, amount_fmt)
        ws.add_table(0, 0, len(transactions), len(self.HEADERS) - 1, {
            "columns": [{"header": h} for h in self.HEADERS]
        })

        category_totals = {}
        total_income = 0.0
        total_expenses = 0.0
        for tx in transactions:
            if tx.type == "income":
                total_income += tx.amount
                continue
            total_expenses += tx.amount
            category_totals[tx.category] = category_totals.get(tx.category, 0.0) + tx.amount

        summary_ws = self._write_summary(
            workbook, amount_fmt, category_totals, total_income, total_expenses
        )
        self._insert_charts(workbook, summary_ws, len(category_totals))

        workbook.close()
        print(f"Written Excel workbook {out_path}")
        return out_path

    def _write_summary(self, workbook, amount_fmt, category_totals, total_income, total_expenses):
        summary_ws = workbook.add_worksheet(self.SUMMARY)
        summary_ws.freeze_panes(1, 0)
        summary_ws.set_column(1, 1, None, amount_fmt)
        summary_ws.write_row(0, 0, ["category", "total", "percentage"])
        row_idx = 1
        for category, total in category_totals.items():
            pct = category_percentage(total, total_expenses)
            summary_ws.write(row_idx, 0, category)
            summary_ws.write_number(row_idx, 1, total, amount_fmt)
            summary_ws.write_number(row_idx, 2, round(pct, 1))
            row_idx += 1

        row_idx += 1
        for name, value in (
            ("Total Income", total_income),
            ("Total Expenses", total_expenses),
            ("Balance", total_income - total_expenses),
        ):
            summary_ws.write(row_idx, 0, name)
            summary_ws.write_number(row_idx, 1, value, amount_fmt)
            row_idx += 1
        return summary_ws

    def _insert_charts(self, workbook, summary_ws, row_count):
        if not row_count:
            return
        series = {
            "categories": [summary_ws.name, 1, 0, row_count, 0],
            "values": [summary_ws.name, 1, 1, row_count, 1],
            "name": "Expenses by Category",
        }

        bar = workbook.add_chart({"type": "column"})
        bar.add_series(series)
        bar.set_title({"name": "Monthly Expense Summary"})
        bar.set_legend({"position": "bottom"})
        summary_ws.insert_chart(0, 5, bar, {"x_offset": 0, "y_offset": 0})

        pie = workbook.add_chart({"type": "pie"})
        pie.add_series(series)
        pie.set_title({"name": "Expenses by Category"})
        pie.set_legend({"position": "right"})
        pie.set_size({"width": 480, "height": 300})
        summary_ws.insert_chart(18, 5, pie, {"x_offset": 0, "y_offset": 0})
