import json
from datetime import datetime, timezone

import pytest

from budget_core.exceptions import PersistenceError
from budget_core.storage import JSONStorage


def test_missing_resource_loads_empty(storage):
    assert storage.load("days.json") == []
    assert storage.load_object("ledger.json") is None


def test_save_and_load_round_trip(storage):
    storage.save("days.json", [{"date": 1}])
    storage.save("ledger.json", {"days_in_month": 1})
    assert storage.load("days.json") == [{"date": 1}]
    assert storage.load_object("ledger.json") == {"days_in_month": 1}
    assert not (storage.base_path / "days.json.tmp").exists()


def test_corrupted_json_raises(storage):
    (storage.base_path / "days.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(PersistenceError):
        storage.load("days.json")


def test_wrong_payload_shape_raises(storage):
    (storage.base_path / "days.json").write_text(json.dumps({"date": 1}), encoding="utf-8")
    with pytest.raises(PersistenceError):
        storage.load("days.json")


def test_archive_moves_files_into_timestamped_directory(storage):
    storage.save("days.json", [])
    storage.save("transactions.json", [])
    moment = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)
    first = storage.archive(["days.json", "transactions.json", "ledger.json"], now=moment)
    assert first == storage.base_path / "archive" / "20240301T123000Z"
    assert (first / "days.json").exists()
    assert not storage.exists("days.json")

    storage.save("days.json", [])
    second = storage.archive(["days.json"], now=moment)
    assert second.name == "20240301T123000Z-2"


def test_write_csv(storage):
    path = storage.write_csv("out.csv", ["date", "amount"], [{"date": 1, "amount": "2.00"}])
    assert path.read_text(encoding="utf-8").splitlines() == ["date,amount", "1,2.00"]
