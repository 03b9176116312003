"""Console interface for the daily budget ledger."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Mapping, Optional

from budget_access.gate import AccessDeniedError, PasswordGate
from budget_core.config import Settings
from budget_core.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from budget_core.logging_setup import configure_logging
from budget_core.models import DayRecord, Transaction
from budget_core.services import DEFAULT_EXPORT_NAME, LedgerService
from budget_core.storage import JSONStorage

PRIVILEGED_COMMANDS = {"save", "load", "archive"}


def _replaces_ledger(args: argparse.Namespace) -> bool:
    if args.command == "create":
        return args.force
    return args.command in {"load", "archive"}


def _load_existing(args: argparse.Namespace, service: LedgerService) -> None:
    try:
        service.load()
    except PersistenceError as exc:
        # Commands that replace the stored ledger only report an unreadable one.
        if not _replaces_ledger(args):
            raise
        print(f"Warning: ignoring unreadable ledger: {exc}", file=sys.stderr)


def _parse_amount(value: str) -> str:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    if not amount.is_finite():
        raise argparse.ArgumentTypeError("Amount must be a finite number")
    if amount < 0:
        raise argparse.ArgumentTypeError("Amount must not be negative")
    return value


def _parse_day(value: str) -> int:
    try:
        day = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}'. Expected a day number.") from exc
    if day < 1:
        raise argparse.ArgumentTypeError("Date must be 1 or greater")
    return day


def _format_transaction(transaction: Transaction) -> str:
    return f"  {transaction.amount:.2f} spent on {transaction.category}"


def _format_day(day: DayRecord) -> str:
    lines = [f"Day {day.date}: budget {day.budget:.2f}, remaining {day.remaining:.2f}"]
    if not day.transactions:
        lines.append("  No transactions recorded.")
    lines.extend(_format_transaction(t) for t in day.transactions)
    return "\n".join(lines)


def handle_create(args: argparse.Namespace, service: LedgerService) -> None:
    if service.has_ledger and not args.force:
        raise ValidationError("A ledger already exists; archive it or pass --force")
    ledger = service.create(args.budget, args.days)
    per_day = ledger.days[0].budget
    print(f"Ledger created: {ledger.monthly_budget:.2f} over {ledger.days_in_month} days ({per_day:.2f} per day).")


def handle_transaction(args: argparse.Namespace, service: LedgerService) -> None:
    if args.command == "add":
        outcome = service.add_transaction(args.date, args.amount, args.category)
        print(f"Transaction added to day {outcome.day.date}:")
        print(_format_transaction(outcome.transaction))
        if outcome.overspent:
            if outcome.spread:
                print(
                    f"Overspent by {outcome.deficit:.2f}; "
                    f"spread over the {outcome.future_days} remaining days."
                )
            else:
                print(f"Overspent by {outcome.deficit:.2f} on the last day of the month.")
        print(f"Remaining for day {outcome.day.date}: {outcome.day.remaining:.2f}")
    elif args.command == "edit":
        updated = service.edit_transaction(args.date, args.category, args.amount, args.new_category)
        print(f"Transaction on day {args.date} updated:")
        print(_format_transaction(updated))
    elif args.command == "delete":
        removed = service.delete_transaction(args.date, args.category)
        print(f"Deleted {removed.amount:.2f} spent on {removed.category} from day {args.date}.")


def handle_query(args: argparse.Namespace, service: LedgerService, settings: Settings) -> None:
    queries = service.queries()
    if args.command == "remaining":
        if args.date is None:
            print(f"Total remaining: {queries.total_remaining():.2f}")
        else:
            print(f"Remaining budget for day {args.date}: {queries.remaining_for(args.date):.2f}")
    elif args.command == "day":
        print(_format_day(queries.find_day(args.date)))
    elif args.command == "summary":
        summary = queries.monthly_summary()
        print("Monthly Summary:")
        print(f"Total Budget: {summary.total_budget:.2f}")
        print(f"Total Spent: {summary.total_spent:.2f}")
        print(f"Savings: {summary.savings:.2f}")
        print(f"Total Remaining: {summary.total_remaining:.2f}")
    elif args.command == "categories":
        breakdown = service.categories().breakdown()
        if not breakdown:
            print("No transactions recorded.")
            return
        for item in breakdown:
            print(f"{item.category}: {item.total:.2f} ({item.percent:.2f}% of monthly budget)")
    elif args.command == "range":
        results = queries.filter_by_date_range(args.start, args.end)
        for day, _ in results:
            print(_format_day(day))
    elif args.command == "search":
        matches = queries.search_by_category(args.category)
        if not matches:
            print(f"No transactions found for {args.category}.")
            return
        for date, amount in matches:
            print(f"Day {date}: {amount:.2f}")
    elif args.command == "alert":
        threshold = args.threshold if args.threshold is not None else settings.alert_threshold
        status = queries.check_alert(service.ledger.monthly_budget, threshold)
        print(f"Total remaining: {status.total_remaining:.2f} (threshold {status.threshold_value:.2f})")
        if status.below_threshold:
            print("ALERT: remaining budget is below the threshold.")
        else:
            print("Remaining budget is above the threshold.")


def handle_persistence(args: argparse.Namespace, service: LedgerService, gate: PasswordGate) -> None:
    if args.command in PRIVILEGED_COMMANDS:
        gate.require(args.password, args.command)
    if args.command == "save":
        location = service.snapshot_to(args.destination)
        print(f"Ledger saved to {location}.")
    elif args.command == "load":
        ledger = service.restore_from(args.source)
        print(f"Ledger loaded from {args.source} ({ledger.days_in_month} days).")
    elif args.command == "archive":
        location, ledger = service.archive_and_reset(args.budget, args.days)
        print(f"Previous ledger archived to {location}.")
        print(f"New ledger: {ledger.monthly_budget:.2f} over {ledger.days_in_month} days.")
    elif args.command == "export-csv":
        path = service.export_csv(args.name)
        print(f"Transactions exported to {path}.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Daily Budget CLI")
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory holding the ledger files (default: $DAILY_BUDGET_DATA_DIR or ./data)",
    )
    parser.add_argument("--log-level", help="Logging level, e.g. INFO or DEBUG")

    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a ledger for a new month")
    create.add_argument("budget", type=_parse_amount)
    create.add_argument("days", type=int)
    create.add_argument("--force", action="store_true", help="Replace an existing ledger")

    add = subparsers.add_parser("add", help="Record a transaction")
    add.add_argument("date", type=_parse_day)
    add.add_argument("amount", type=_parse_amount)
    add.add_argument("category")

    edit = subparsers.add_parser("edit", help="Edit the first transaction matching a category")
    edit.add_argument("date", type=_parse_day)
    edit.add_argument("category")
    edit.add_argument("amount", type=_parse_amount)
    edit.add_argument("--category", dest="new_category")

    delete = subparsers.add_parser("delete", help="Delete the first transaction matching a category")
    delete.add_argument("date", type=_parse_day)
    delete.add_argument("category")

    remaining = subparsers.add_parser("remaining", help="Show remaining budget")
    remaining.add_argument("date", type=_parse_day, nargs="?")

    day = subparsers.add_parser("day", help="Show a day and its transactions")
    day.add_argument("date", type=_parse_day)

    subparsers.add_parser("summary", help="Show the monthly summary")
    subparsers.add_parser("categories", help="Show spending per category")

    date_range = subparsers.add_parser("range", help="Show days within a date range")
    date_range.add_argument("start", type=_parse_day)
    date_range.add_argument("end", type=_parse_day)

    search = subparsers.add_parser("search", help="Find transactions by category")
    search.add_argument("category")

    alert = subparsers.add_parser("alert", help="Check remaining budget against a threshold")
    alert.add_argument("--threshold", type=_parse_amount, help="Percent of the monthly budget")

    save = subparsers.add_parser("save", help="Save a snapshot of the ledger")
    save.add_argument("destination", type=Path)
    save.add_argument("--password")

    load = subparsers.add_parser("load", help="Replace the ledger with a saved snapshot")
    load.add_argument("source", type=Path)
    load.add_argument("--password")

    archive = subparsers.add_parser("archive", help="Archive the ledger and start a new month")
    archive.add_argument("budget", type=_parse_amount)
    archive.add_argument("days", type=int)
    archive.add_argument("--password")

    export = subparsers.add_parser("export-csv", help="Export all transactions as CSV")
    export.add_argument("name", nargs="?", default=DEFAULT_EXPORT_NAME)

    return parser


def main(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env(environ)
    except ValidationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1
    if args.data_dir is not None:
        settings = replace(settings, data_dir=args.data_dir)
    configure_logging(args.log_level or settings.log_level)

    try:
        service = LedgerService(JSONStorage(settings.data_dir))
        _load_existing(args, service)
        if args.command == "create":
            handle_create(args, service)
        elif args.command in {"add", "edit", "delete"}:
            handle_transaction(args, service)
        elif args.command in {"remaining", "day", "summary", "categories", "range", "search", "alert"}:
            handle_query(args, service, settings)
        else:
            handle_persistence(args, service, PasswordGate(settings.password))
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except AccessDeniedError as exc:
        print(f"Access denied: {exc}", file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
