"""Framework-agnostic business services for the daily budget ledger."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .codec import CSV_HEADERS, dump_tables, export_csv_rows, load_tables
from .exceptions import (
    InvalidDateError,
    InvalidRangeError,
    MalformedRecordError,
    PersistenceError,
    RecordNotFoundError,
    TransactionNotFoundError,
    ValidationError,
)
from .logging_setup import get_logger
from .models import CENT, ZERO, DayRecord, Ledger, Transaction, quantize
from .storage import JSONStorage
from .validators import parse_amount, parse_int, parse_percent, validate_category

logger = get_logger(__name__)

LEDGER_RESOURCE = "ledger.json"
DAYS_RESOURCE = "days.json"
TRANSACTIONS_RESOURCE = "transactions.json"
RESOURCES = (LEDGER_RESOURCE, DAYS_RESOURCE, TRANSACTIONS_RESOURCE)
DEFAULT_EXPORT_NAME = "transactions.csv"


@dataclass(frozen=True)
class AddOutcome:
    day: DayRecord
    transaction: Transaction
    deficit: Decimal = ZERO
    share: Decimal = ZERO
    future_days: int = 0

    @property
    def overspent(self) -> bool:
        return self.deficit > 0

    @property
    def spread(self) -> bool:
        """True when later days took part of the deficit."""
        return self.overspent and self.future_days > 0


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: Decimal
    percent: Decimal


@dataclass(frozen=True)
class AlertStatus:
    below_threshold: bool
    total_remaining: Decimal
    threshold_value: Decimal


@dataclass(frozen=True)
class MonthlySummary:
    total_budget: Decimal
    total_spent: Decimal
    savings: Decimal
    total_remaining: Decimal


def redistribute_deficit(ledger: Ledger, origin_date: int, deficit: Decimal) -> Decimal:
    """Spread ``deficit`` evenly over the days after ``origin_date``.

    The deficit is split in whole cents; when it does not divide evenly the
    leftover cents go to the earliest later days, so the portions always add
    up to the deficit. Each later day absorbs at most its own remaining
    balance; whatever a day cannot absorb is dropped rather than carried to the
    next day. With no later days the deficit is tolerated and nothing changes.
    Returns the even share rounded to cents.
    """
    if deficit <= 0:
        return ZERO
    future_days = ledger.days_after(origin_date)
    if not future_days:
        logger.info("Deficit %s on day %s has no later days to absorb it", deficit, origin_date)
        return ZERO

    base, extra = divmod(int(quantize(deficit) / CENT), len(future_days))
    for index, day in enumerate(future_days):
        portion = (base + 1 if index < extra else base) * CENT
        day.remaining = max(ZERO, quantize(day.remaining - portion))
    share = quantize(deficit / len(future_days))
    logger.info(
        "Spread deficit %s from day %s over %d days (%s each)",
        deficit,
        origin_date,
        len(future_days),
        share,
    )
    return share


class CategoryAggregator:
    """Per-category spending totals derived from a ledger snapshot."""

    def __init__(self, ledger: Ledger) -> None:
        self._ledger = ledger

    def summarize(self) -> Dict[str, Decimal]:
        totals: Dict[str, Decimal] = {}
        display: Dict[str, str] = {}
        for day in self._ledger:
            for transaction in day.transactions:
                key = transaction.category.lower()
                # First-seen casing is kept for display.
                label = display.setdefault(key, transaction.category)
                totals[label] = totals.get(label, ZERO) + transaction.amount
        return totals

    def percent_of_monthly_budget(self, total: Decimal) -> Decimal:
        monthly_budget = self._ledger.monthly_budget
        if monthly_budget <= 0:
            return ZERO
        return quantize(total / monthly_budget * 100)

    def breakdown(self) -> List[CategoryTotal]:
        items = [
            CategoryTotal(category=name, total=total, percent=self.percent_of_monthly_budget(total))
            for name, total in self.summarize().items()
        ]
        return sorted(items, key=lambda item: (-item.total, item.category.lower()))


class QueryService:
    """Read-only lookups over a ledger."""

    def __init__(self, ledger: Ledger) -> None:
        self._ledger = ledger

    def find_day(self, date: object) -> DayRecord:
        day = self._ledger.find_day(parse_int(date, "date"))
        if day is None:
            raise InvalidDateError(date)
        return day

    def remaining_for(self, date: object) -> Decimal:
        return self.find_day(date).remaining

    def transactions_for(self, date: object) -> List[Transaction]:
        return list(self.find_day(date).transactions)

    def total_remaining(self) -> Decimal:
        return self._ledger.total_remaining()

    def filter_by_date_range(
        self, start: object, end: object
    ) -> List[Tuple[DayRecord, List[Transaction]]]:
        start_date = parse_int(start, "start")
        end_date = parse_int(end, "end")
        if start_date > end_date:
            raise InvalidRangeError(f"start ({start_date}) must not be after end ({end_date})")
        return [
            (day, list(day.transactions))
            for day in self._ledger
            if start_date <= day.date <= end_date
        ]

    def search_by_category(self, category: object) -> List[Tuple[int, Decimal]]:
        wanted = validate_category(category)
        return [
            (day.date, transaction.amount)
            for day in self._ledger
            for transaction in day.transactions
            if transaction.matches(wanted)
        ]

    def check_alert(self, monthly_budget: object, threshold_percent: object) -> AlertStatus:
        budget = parse_amount(monthly_budget, "monthly_budget", allow_zero=True)
        percent = parse_percent(threshold_percent, "threshold_percent")
        threshold_value = quantize(budget * percent / 100)
        total_remaining = self._ledger.total_remaining()
        return AlertStatus(
            below_threshold=total_remaining < threshold_value,
            total_remaining=total_remaining,
            threshold_value=threshold_value,
        )

    def monthly_summary(self) -> MonthlySummary:
        total_budget = self._ledger.total_budget()
        total_spent = self._ledger.total_spent()
        return MonthlySummary(
            total_budget=total_budget,
            total_spent=total_spent,
            savings=total_budget - total_spent,
            total_remaining=self._ledger.total_remaining(),
        )


class LedgerService:
    """Owns the current ledger, applies mutations and mediates persistence."""

    def __init__(
        self,
        storage: Optional[JSONStorage] = None,
        *,
        ledger: Optional[Ledger] = None,
        autosave: bool = True,
    ) -> None:
        self._storage = storage
        self._ledger = ledger
        self._autosave = autosave

    # Public API -----------------------------------------------------------
    @property
    def ledger(self) -> Ledger:
        if self._ledger is None:
            raise RecordNotFoundError("No ledger exists yet; create one first")
        return self._ledger

    @property
    def has_ledger(self) -> bool:
        return self._ledger is not None

    def queries(self) -> QueryService:
        return QueryService(self.ledger)

    def categories(self) -> CategoryAggregator:
        return CategoryAggregator(self.ledger)

    def create(self, monthly_budget: object, days_in_month: object) -> Ledger:
        budget = parse_amount(monthly_budget, "monthly_budget")
        days = parse_int(days_in_month, "days_in_month")
        self._ledger = Ledger.create(budget, days)
        logger.info("Created ledger: %s over %d days", budget, days)
        self._persist()
        return self._ledger

    def add_transaction(self, date: object, amount: object, category: object) -> AddOutcome:
        day = self._resolve_day(date)
        value = parse_amount(amount, "amount", allow_zero=True)
        label = validate_category(category)

        transaction = Transaction(amount=value, category=label)
        day.transactions.insert(0, transaction)

        difference = day.remaining - value
        if difference >= 0:
            day.remaining = difference
            outcome = AddOutcome(day=day, transaction=transaction)
        else:
            day.remaining = ZERO
            deficit = -difference
            future_days = len(self.ledger.days_after(day.date))
            share = redistribute_deficit(self.ledger, day.date, deficit)
            outcome = AddOutcome(
                day=day,
                transaction=transaction,
                deficit=deficit,
                share=share,
                future_days=future_days,
            )
        self._persist()
        return outcome

    def edit_transaction(
        self,
        date: object,
        match_category: object,
        new_amount: object,
        new_category: Optional[object] = None,
    ) -> Transaction:
        day = self._resolve_day(date)
        wanted = validate_category(match_category, "match_category")
        value = parse_amount(new_amount, "amount", allow_zero=True)
        index = self._resolve_transaction(day, wanted)
        existing = day.transactions[index]
        label = (
            validate_category(new_category, "new_category")
            if new_category is not None
            else existing.category
        )

        # Edits never spread a deficit; the result is only clamped.
        day.remaining += existing.amount
        updated = replace(existing, amount=value, category=label)
        day.transactions[index] = updated
        day.remaining -= value
        day.clamp_remaining()
        self._persist()
        return updated

    def delete_transaction(self, date: object, match_category: object) -> Transaction:
        day = self._resolve_day(date)
        wanted = validate_category(match_category, "match_category")
        index = self._resolve_transaction(day, wanted)
        removed = day.transactions.pop(index)
        day.remaining = min(day.budget, day.remaining + removed.amount)
        self._persist()
        return removed

    def save(self) -> None:
        self._write(self._require_storage(), self.ledger)

    def load(self) -> Optional[Ledger]:
        """Load the ledger held by storage, or return ``None`` if there is none."""
        storage = self._require_storage()
        ledger = self._read(storage)
        if ledger is not None:
            self._ledger = ledger
        return ledger

    def snapshot_to(self, directory: Path) -> Path:
        target = JSONStorage(Path(directory))
        self._write(target, self.ledger)
        return target.base_path

    def restore_from(self, directory: Path) -> Ledger:
        source = Path(directory)
        if not source.is_dir():
            raise PersistenceError(f"Snapshot directory {source} does not exist")
        ledger = self._read(JSONStorage(source))
        if ledger is None:
            raise PersistenceError(f"No ledger files found in {source}")
        self._ledger = ledger
        self._persist()
        return ledger

    def archive_and_reset(self, monthly_budget: object, days_in_month: object) -> Tuple[Path, Ledger]:
        storage = self._require_storage()
        budget = parse_amount(monthly_budget, "monthly_budget")
        days = parse_int(days_in_month, "days_in_month")
        fresh = Ledger.create(budget, days)
        if self._ledger is not None:
            self._write(storage, self._ledger)
        location = storage.archive(RESOURCES)
        self._ledger = fresh
        self._persist()
        return location, fresh

    def export_csv(self, name: str = DEFAULT_EXPORT_NAME) -> Path:
        storage = self._require_storage()
        return storage.write_csv(name, CSV_HEADERS, export_csv_rows(self.ledger))

    # Internal helpers -----------------------------------------------------
    def _resolve_day(self, date: object) -> DayRecord:
        day = self.ledger.find_day(parse_int(date, "date"))
        if day is None:
            raise InvalidDateError(date)
        return day

    @staticmethod
    def _resolve_transaction(day: DayRecord, category: str) -> int:
        index = day.find_transaction(category)
        if index is None:
            raise TransactionNotFoundError(day.date, category)
        return index

    def _require_storage(self) -> JSONStorage:
        if self._storage is None:
            raise PersistenceError("No storage configured for this ledger")
        return self._storage

    def _persist(self) -> None:
        if self._storage is None or not self._autosave:
            return
        self._write(self._storage, self.ledger)

    @staticmethod
    def _write(storage: JSONStorage, ledger: Ledger) -> None:
        day_rows, transaction_rows = dump_tables(ledger)
        try:
            storage.save(
                LEDGER_RESOURCE,
                {
                    "monthly_budget": f"{ledger.monthly_budget:.2f}",
                    "days_in_month": ledger.days_in_month,
                },
            )
            storage.save(DAYS_RESOURCE, day_rows)
            storage.save(TRANSACTIONS_RESOURCE, transaction_rows)
        except PersistenceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            raise PersistenceError("Unexpected error while saving the ledger") from exc
        logger.debug("Saved ledger to %s", storage.base_path)

    @staticmethod
    def _read(storage: JSONStorage) -> Optional[Ledger]:
        if not storage.exists(DAYS_RESOURCE):
            return None
        meta = storage.load_object(LEDGER_RESOURCE) or {}
        monthly_budget: Optional[Decimal] = None
        days_in_month: Optional[int] = None
        try:
            if meta.get("monthly_budget") is not None:
                monthly_budget = parse_amount(meta["monthly_budget"], "monthly_budget")
            if meta.get("days_in_month") is not None:
                days_in_month = parse_int(meta["days_in_month"], "days_in_month", minimum=1)
        except ValidationError as exc:
            logger.warning("Ignoring malformed ledger header in %s: %s", storage.base_path, exc)
            monthly_budget, days_in_month = None, None
        try:
            ledger = load_tables(
                storage.load(DAYS_RESOURCE),
                storage.load(TRANSACTIONS_RESOURCE),
                monthly_budget=monthly_budget,
                days_in_month=days_in_month,
            )
        except MalformedRecordError as exc:
            raise PersistenceError(f"Unable to rebuild ledger from {storage.base_path}: {exc}") from exc
        logger.info("Loaded ledger from %s", storage.base_path)
        return ledger
