"""Shared fixtures for the ledger tests."""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Iterator

import pytest

from budget_core import logging_setup
from budget_core.models import Ledger
from budget_core.services import LedgerService
from budget_core.storage import JSONStorage


@pytest.fixture
def ledger() -> Ledger:
    """Five days at 20.00 each."""
    return Ledger.create(Decimal("100"), 5)


@pytest.fixture
def service(ledger: Ledger) -> LedgerService:
    return LedgerService(ledger=ledger)


@pytest.fixture
def storage(tmp_path: Path) -> JSONStorage:
    return JSONStorage(tmp_path / "data")


@pytest.fixture
def stored_service(storage: JSONStorage) -> LedgerService:
    service = LedgerService(storage)
    service.create("100", 5)
    return service


@pytest.fixture(autouse=True)
def _isolate_package_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Give each test an unconfigured ``budget_core`` logger.

    Entrypoints configure logging once per process; tests that call them must
    not leave a handler bound to another test's captured stream.
    """

    pkg_logger = logging.getLogger("budget_core")
    saved_level = pkg_logger.level
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    monkeypatch.setattr(pkg_logger, "handlers", [])
    monkeypatch.setattr(pkg_logger, "propagate", pkg_logger.propagate)
    yield
    pkg_logger.setLevel(saved_level)
