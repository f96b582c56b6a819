# expense_client/outputs/csv_output.py

import os
import csv
from decimal import Decimal
from expense_client.outputs.base import BaseOutput
from expense_client.utils import filter_transactions_by_month


class CSVOutput(BaseOutput):
    """
    Writes a list-view projection to expenses-<month>.csv, keeping the order
    the rows were given in.
    """
    def __init__(self, config):
        self.config     = config
        self.output_dir = config.get('output_dir', 'data')
        os.makedirs(self.output_dir, exist_ok=True)

    def append(self, transactions, month=None):
        if month:
            transactions = filter_transactions_by_month(transactions, month)
        if not transactions:
            print("No transactions to write.")
            return None

        label    = month or transactions[0].date.strftime('%Y-%m')
        out_path = os.path.join(self.output_dir, f"expenses-{label}.csv")

        with open(out_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(['id', 'date', 'description', 'category', 'type', 'amount'])
            for tx in transactions:
                writer.writerow([
                    tx.id or '',
                    tx.date.isoformat(),
                    str(tx.description).strip(),
                    tx.category,
                    tx.type,
                    f"{Decimal(str(tx.amount)):.2f}",
                ])

        print(f"Written {len(transactions)} transactions to {out_path}")
        return out_path
