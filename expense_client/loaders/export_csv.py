# expense_client/loaders/export_csv.py
import io
import re
import pandas as pd
from expense_client.loaders.base import BaseLoader
from expense_client.core.models import Transaction

_CLEAN_AMOUNT = re.compile(r"[^\d\-\.]")

class ExportCSVLoader(BaseLoader):
    """Read a server CSV export back into Transaction objects."""

    def load(self, source):
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        df = pd.read_csv(source, skip_blank_lines=True, dtype=str)

        # Column lookup, case-insensitive
        cols = {c.strip().lower(): c for c in df.columns}
        def find(*names):
            return next((cols[n] for n in names if n in cols), None)

        date_col = find('date')
        desc_col = find('description')
        amt_col  = find('amount')
        cat_col  = find('category')
        type_col = find('type')
        id_col   = find('_id', 'id')

        for name, col in (('date', date_col), ('description', desc_col), ('amount', amt_col)):
            if col is None:
                raise RuntimeError(
                    f"Missing required column '{name}' in export. "
                    f"Found: {list(df.columns)}"
                )

        txs = []
        for _, row in df.iterrows():
            amt_raw = row[amt_col]
            if pd.isna(amt_raw) or str(amt_raw).strip() == '':
                continue
            cleaned = _CLEAN_AMOUNT.sub("", str(amt_raw))
            try:
                amount = float(cleaned)
            except ValueError:
                raise ValueError(f"Could not parse amount '{amt_raw}' in export")

            def text(col, default=''):
                if col is None or pd.isna(row[col]):
                    return default
                return str(row[col]).strip()

            txs.append(Transaction(
                id=text(id_col) or None,
                description=text(desc_col),
                amount=amount,
                category=text(cat_col, 'Other'),
                date=pd.to_datetime(row[date_col]).date(),
                type=text(type_col, 'expense').lower(),
            ))
        return txs
