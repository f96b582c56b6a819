# expense_client/core/validator.py
from __future__ import annotations

import math
from datetime import date
from typing import Mapping

from expense_client.core.models import TRANSACTION_TYPES, parse_api_date
from expense_client.errors import ValidationError

REQUIRED_FIELDS = ("description", "amount", "category", "date", "type")


def _parse_amount(value) -> float:
    # bool is an int subclass; a checkbox value is never an amount
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    if isinstance(value, str):
        value = value.strip()
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValueError("Amount must be a number")
    if math.isnan(amount) or math.isinf(amount):
        raise ValueError("Amount must be a number")
    if amount < 0:
        raise ValueError("Amount cannot be negative")
    return amount


def _parse_date(value) -> date:
    try:
        return parse_api_date(value)
    except (TypeError, ValueError):
        raise ValueError("Date must be in YYYY-MM-DD format")


def validate_expense(data: Mapping) -> dict:
    """
    Check a create/update payload and return it normalized for the API.
    Raises ValidationError listing every offending field.
    """
    errors = {}
    for name in REQUIRED_FIELDS:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors[name] = f"{name.capitalize()} is required"

    payload = {}
    if "description" not in errors:
        payload["description"] = str(data["description"]).strip()
    if "category" not in errors:
        payload["category"] = str(data["category"]).strip()
    if "amount" not in errors:
        try:
            payload["amount"] = _parse_amount(data["amount"])
        except ValueError as exc:
            errors["amount"] = str(exc)
    if "date" not in errors:
        try:
            payload["date"] = _parse_date(data["date"]).isoformat()
        except ValueError as exc:
            errors["date"] = str(exc)
    if "type" not in errors:
        kind = str(data["type"]).strip().lower()
        if kind not in TRANSACTION_TYPES:
            errors["type"] = "Type must be 'expense' or 'income'"
        payload["type"] = kind

    if errors:
        raise ValidationError("; ".join(errors.values()), errors=errors)
    return payload


def validate_currency(code) -> str:
    text = str(code or "").strip().upper()
    if len(text) != 3 or not text.isascii() or not text.isalpha():
        raise ValidationError(
            f"Invalid currency code: {code!r}", errors={"currency": "Currency must be a 3-letter code"}
        )
    return text
