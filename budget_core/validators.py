"""Validation helpers shared across the ledger services and outer layers."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from .exceptions import ValidationError
from .models import quantize

CATEGORY_MAX_LENGTH = 49


def parse_amount(raw: object, field: str, *, allow_zero: bool = False) -> Decimal:
    """Convert raw input to a Decimal with exactly two fraction digits."""
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value")
    try:
        amount = Decimal(str(raw))
    except (InvalidOperation, TypeError) as exc:  # type: ignore[arg-type]
        raise ValidationError(f"{field} must be a numeric value") from exc

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if allow_zero:
        if amount < 0:
            raise ValidationError(f"{field} must not be negative")
    elif amount <= 0:
        raise ValidationError(f"{field} must be greater than zero")

    return quantize(amount)


def parse_int(raw: object, field: str, *, minimum: Optional[int] = None) -> int:
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw).strip())
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"{field} must be an integer") from exc
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return value


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_category(value: object, field: str = "category") -> str:
    return validate_required_str(value, field, CATEGORY_MAX_LENGTH)


def parse_percent(raw: object, field: str) -> Decimal:
    """Parse a percentage in the closed range 0..100."""
    percent = parse_amount(raw, field, allow_zero=True)
    if percent > 100:
        raise ValidationError(f"{field} must be at most 100")
    return percent
