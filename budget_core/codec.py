"""Conversion between a Ledger and its persisted two-table form.

The day table holds one row per day (``date``, ``budget``, ``remaining``) and the
transaction table one row per transaction (``date``, ``amount``, ``category``).
Rows are joined on ``date``; transactions carry no identifier of their own.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .exceptions import MalformedRecordError, ValidationError
from .logging_setup import get_logger
from .models import ZERO, DayRecord, Ledger, Transaction, quantize
from .validators import parse_amount, parse_int, validate_category

__all__ = [
    "CSV_HEADERS",
    "dump_tables",
    "export_csv_rows",
    "load_tables",
    "parse_day_row",
    "parse_transaction_row",
]

CSV_HEADERS = ["date", "amount", "category"]

logger = get_logger(__name__)

Row = Dict[str, Any]


def dump_tables(ledger: Ledger) -> Tuple[List[Row], List[Row]]:
    """Return ``(day_rows, transaction_rows)`` for ``ledger``."""
    day_rows: List[Row] = []
    transaction_rows: List[Row] = []
    for day in ledger:
        day_rows.append(
            {
                "date": day.date,
                "budget": f"{day.budget:.2f}",
                "remaining": f"{day.remaining:.2f}",
            }
        )
        for transaction in day.transactions:
            transaction_rows.append(
                {
                    "date": day.date,
                    "amount": f"{transaction.amount:.2f}",
                    "category": transaction.category,
                }
            )
    return day_rows, transaction_rows


def export_csv_rows(ledger: Ledger) -> List[Row]:
    """Flat reporting rows: ledger date order, then stored per-day order."""
    _, transaction_rows = dump_tables(ledger)
    return [{key: row[key] for key in CSV_HEADERS} for row in transaction_rows]


def parse_day_row(row: Mapping[str, Any]) -> DayRecord:
    if not isinstance(row, Mapping):
        raise MalformedRecordError(f"Day row must be an object, got {type(row).__name__}")
    try:
        date = parse_int(row.get("date"), "date", minimum=1)
        budget = parse_amount(row.get("budget"), "budget", allow_zero=True)
        remaining = Decimal(str(row.get("remaining")))
        if not remaining.is_finite():
            raise ValidationError("remaining must be a finite number")
    except ArithmeticError as exc:
        raise MalformedRecordError(f"Unreadable day row {dict(row)!r}") from exc
    except ValidationError as exc:
        raise MalformedRecordError(f"Unreadable day row {dict(row)!r}: {exc}") from exc
    day = DayRecord(date=date, budget=budget, remaining=quantize(remaining))
    if not ZERO <= day.remaining <= day.budget:
        logger.warning("Clamping remaining %s of day %s into [0, %s]", day.remaining, date, budget)
        day.clamp_remaining()
    return day


def parse_transaction_row(row: Mapping[str, Any]) -> Tuple[int, Transaction]:
    if not isinstance(row, Mapping):
        raise MalformedRecordError(
            f"Transaction row must be an object, got {type(row).__name__}"
        )
    try:
        date = parse_int(row.get("date"), "date", minimum=1)
        amount = parse_amount(row.get("amount"), "amount", allow_zero=True)
        category = validate_category(row.get("category"))
    except ValidationError as exc:
        raise MalformedRecordError(f"Unreadable transaction row {dict(row)!r}: {exc}") from exc
    return date, Transaction(amount=amount, category=category)


def load_tables(
    day_rows: Iterable[Mapping[str, Any]],
    transaction_rows: Iterable[Mapping[str, Any]],
    *,
    monthly_budget: Optional[Decimal] = None,
    days_in_month: Optional[int] = None,
) -> Ledger:
    """Rebuild a Ledger from its two tables.

    Malformed rows, duplicate day rows and transactions referencing unknown
    dates are logged and skipped. Missing dates below ``days_in_month`` (by
    default the highest date seen) are filled with untouched days at the average
    observed per-day budget so that the ledger stays contiguous.
    """
    days: Dict[int, DayRecord] = {}
    for row in day_rows:
        try:
            day = parse_day_row(row)
        except MalformedRecordError as exc:
            logger.warning("Skipping day row: %s", exc)
            continue
        if day.date in days:
            logger.warning("Skipping duplicate day row for date %s", day.date)
            continue
        if days_in_month is not None and day.date > days_in_month:
            logger.warning("Skipping day row for date %s beyond day %s", day.date, days_in_month)
            continue
        days[day.date] = day

    if not days:
        raise MalformedRecordError("Day table contains no usable rows")

    count = days_in_month if days_in_month is not None else max(days)
    missing = [date for date in range(1, count + 1) if date not in days]
    if missing:
        fill = quantize(sum((d.budget for d in days.values()), start=ZERO) / len(days))
        logger.warning("Day table is missing dates %s; filling with budget %s", missing, fill)
        for date in missing:
            days[date] = DayRecord(date=date, budget=fill, remaining=fill)

    ordered = [days[date] for date in sorted(days)]
    for row in transaction_rows:
        try:
            date, transaction = parse_transaction_row(row)
        except MalformedRecordError as exc:
            logger.warning("Skipping transaction row: %s", exc)
            continue
        day = days.get(date)
        if day is None:
            logger.warning("Skipping transaction for unknown date %s", date)
            continue
        # Rows are written newest first per day, so appending keeps that order.
        day.transactions.append(transaction)

    if monthly_budget is None:
        monthly_budget = sum((d.budget for d in ordered), start=ZERO)
    return Ledger(
        monthly_budget=quantize(Decimal(monthly_budget)),
        days_in_month=count,
        days=ordered,
    )
