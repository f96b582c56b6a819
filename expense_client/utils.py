# expense_client/utils.py
from datetime import date

from expense_client.errors import ValidationError


def current_month(today=None):
    """Return the YYYY-MM string for ``today`` (defaults to the local date)."""
    today = today or date.today()
    return f"{today.year}-{today.month:02d}"


def validate_month(month_str):
    """
    Return ``month_str`` if it is a well formed YYYY-MM value, else raise
    ValidationError.
    """
    try:
        year_s, month_s = str(month_str).split('-')
        year, month = int(year_s), int(month_s)
    except ValueError:
        raise ValidationError(f"Invalid month '{month_str}', expected YYYY-MM",
                              errors={'month': 'Month must be in YYYY-MM format'})
    if len(year_s) != 4 or len(month_s) != 2 or not 1 <= month <= 12:
        raise ValidationError(f"Invalid month '{month_str}', expected YYYY-MM",
                              errors={'month': 'Month must be in YYYY-MM format'})
    return f"{year:04d}-{month:02d}"


def filter_transactions_by_month(transactions, month_str):
    """
    Return only those transactions whose date falls in the given YYYY-MM.
    """
    year, month = map(int, month_str.split('-'))
    return [tx for tx in transactions if tx.date.year == year and tx.date.month == month]
