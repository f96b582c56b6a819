# expense_client/currency.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN

SUPPORTED_CURRENCIES = {
    "USD": "US Dollar",
    "EUR": "Euro",
    "GBP": "British Pound",
    "JPY": "Japanese Yen",
    "INR": "Indian Rupee",
    "CAD": "Canadian Dollar",
}

# Symbols used when rendering amounts (en-US number formatting).
_DISPLAY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "AUD": "A$",
    "CAD": "CA$",
}

# Symbols shown next to input fields and in the currency picker.
_PICKER_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "AUD": "A$",
    "CAD": "C$",
}


def _is_currency_code(code):
    return isinstance(code, str) and len(code) == 3 and code.isascii() and code.isalpha()


def format_currency(amount, currency):
    """
    Render ``amount`` in ``currency`` as ``$1,234.50`` style text. Unknown but
    well-formed codes are used as a prefix, anything else falls back to
    ``"<amount> <currency>"``.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return f"{amount} {currency}"
    if not value.is_finite() or not _is_currency_code(currency):
        return f"{amount} {currency}"

    code = currency.upper()
    value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)
    sign = "-" if value < 0 else ""
    number = f"{abs(value):,.2f}"
    symbol = _DISPLAY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {number}"
    return f"{sign}{symbol}{number}"


def get_currency_symbol(currency):
    return _PICKER_SYMBOLS.get(currency, currency)
