"""Domain-specific exceptions for the daily budget ledger core."""

class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements."""


class InvalidConfigError(ValidationError):
    """Raised when a ledger cannot be built from the given parameters."""


class InvalidRangeError(ValidationError):
    """Raised when a date range starts after it ends."""


class MalformedRecordError(ValidationError):
    """Raised when a persisted row cannot be parsed."""


class RecordNotFoundError(LookupError):
    """Raised when a day or transaction cannot be located."""


class InvalidDateError(RecordNotFoundError):
    """Raised when a date does not exist in the ledger."""

    def __init__(self, date: object) -> None:
        super().__init__(f"Invalid date: {date}")
        self.date = date


class TransactionNotFoundError(RecordNotFoundError):
    """Raised when no transaction on a day matches the requested category."""

    def __init__(self, date: int, category: str) -> None:
        super().__init__(f"No transaction in category '{category}' on day {date}")
        self.date = date
        self.category = category


class PersistenceError(IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""
