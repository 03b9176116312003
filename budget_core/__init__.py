"""Core business logic package for the daily budget ledger."""

from .codec import dump_tables, export_csv_rows, load_tables
from .config import Settings
from .exceptions import (
    InvalidConfigError,
    InvalidDateError,
    InvalidRangeError,
    MalformedRecordError,
    PersistenceError,
    RecordNotFoundError,
    TransactionNotFoundError,
    ValidationError,
)
from .models import DayRecord, Ledger, Transaction
from .services import (
    AddOutcome,
    AlertStatus,
    CategoryAggregator,
    CategoryTotal,
    LedgerService,
    MonthlySummary,
    QueryService,
    redistribute_deficit,
)
from .storage import JSONStorage

__all__ = [
    "AddOutcome",
    "AlertStatus",
    "CategoryAggregator",
    "CategoryTotal",
    "DayRecord",
    "InvalidConfigError",
    "InvalidDateError",
    "InvalidRangeError",
    "JSONStorage",
    "Ledger",
    "LedgerService",
    "MalformedRecordError",
    "MonthlySummary",
    "PersistenceError",
    "QueryService",
    "RecordNotFoundError",
    "Settings",
    "Transaction",
    "TransactionNotFoundError",
    "ValidationError",
    "dump_tables",
    "export_csv_rows",
    "load_tables",
    "redistribute_deficit",
]
