from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional

from pst.domain.errors import ValidationError
from pst.domain.models import PAYMENT_STATUSES, VENDORS


def money(value: object, label: str, allow_negative: bool = False) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number. Received: {value!r}") from None
    if not math.isfinite(amount):
        raise ValidationError(f"{label} must be a finite number.")
    if amount < 0 and not allow_negative:
        raise ValidationError(f"{label} must be >= 0. Received: {amount}")
    return round(amount, 2)


def whole_number(value: object, label: str, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a whole number. Received: {value!r}") from None
    if not number.is_integer():
        raise ValidationError(f"{label} must be a whole number. Received: {value!r}")
    if number < minimum:
        raise ValidationError(f"{label} must be >= {minimum}. Received: {int(number)}")
    return int(number)


def required_text(value: object, label: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(f"{label} is required.")
    return text


def optional_text(value: object) -> Optional[str]:
    text = str(value).strip() if value is not None else ""
    return text or None


def vendor(value: object) -> Optional[str]:
    name = optional_text(value)
    if name is not None and name not in VENDORS:
        raise ValidationError(f"Unknown vendor: {name}. Expected one of: {', '.join(VENDORS)}")
    return name


def payment_status(value: object) -> str:
    status = str(value or "").strip().lower()
    if status not in PAYMENT_STATUSES:
        raise ValidationError(f"Payment status must be one of: {', '.join(PAYMENT_STATUSES)}")
    return status


def iso_date(value: object, label: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        raise ValidationError(f"{label} must be an ISO date (YYYY-MM-DD). Received: {text}") from None
