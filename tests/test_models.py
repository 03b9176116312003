from decimal import Decimal

import pytest

from budget_core.exceptions import InvalidConfigError
from budget_core.models import DayRecord, Ledger, Transaction


def test_create_splits_budget_evenly(ledger):
    assert len(ledger) == 5
    assert [day.date for day in ledger] == [1, 2, 3, 4, 5]
    for day in ledger:
        assert day.budget == Decimal("20.00")
        assert day.remaining == day.budget
        assert day.transactions == []


@pytest.mark.parametrize(
    "monthly, days",
    [(Decimal("100"), 3), (Decimal("3000"), 31), (Decimal("1234.56"), 28), (Decimal("0.05"), 7)],
)
def test_create_budget_sums_back_within_rounding(monthly, days):
    ledger = Ledger.create(monthly, days)
    assert abs(ledger.total_budget() - monthly) <= Decimal("0.005") * days
    assert all(day.remaining == day.budget for day in ledger)


@pytest.mark.parametrize("days", [0, -3])
def test_create_rejects_non_positive_day_count(days):
    with pytest.raises(InvalidConfigError):
        Ledger.create(Decimal("100"), days)


def test_create_rejects_non_positive_budget():
    with pytest.raises(InvalidConfigError):
        Ledger.create(Decimal("0"), 30)


def test_find_day_returns_none_for_unknown_date(ledger):
    assert ledger.find_day(3).date == 3
    assert ledger.find_day(0) is None
    assert ledger.find_day(6) is None


def test_days_after_is_strict_and_ordered(ledger):
    assert [day.date for day in ledger.days_after(2)] == [3, 4, 5]
    assert ledger.days_after(5) == []


def test_totals(ledger):
    ledger.days[0].transactions.append(Transaction(Decimal("5.00"), "Food"))
    ledger.days[0].remaining = Decimal("15.00")
    assert ledger.total_remaining() == Decimal("95.00")
    assert ledger.total_spent() == Decimal("5.00")
    assert ledger.total_budget() == Decimal("100.00")


def test_transaction_matches_case_insensitively():
    transaction = Transaction(Decimal("3.50"), "Coffee")
    assert transaction.matches("coffee")
    assert transaction.matches("  COFFEE ")
    assert not transaction.matches("tea")


def test_day_clamp_remaining_bounds():
    day = DayRecord(date=1, budget=Decimal("10.00"), remaining=Decimal("12.50"))
    day.clamp_remaining()
    assert day.remaining == Decimal("10.00")
    day.remaining = Decimal("-4")
    day.clamp_remaining()
    assert day.remaining == Decimal("0.00")


def test_day_to_dict_formats_money():
    day = DayRecord(
        date=2,
        budget=Decimal("20"),
        remaining=Decimal("7.5"),
        transactions=[Transaction(Decimal("12.5"), "Food")],
    )
    assert day.to_dict() == {
        "date": 2,
        "budget": "20.00",
        "remaining": "7.50",
        "transactions": [{"amount": "12.50", "category": "Food"}],
    }
