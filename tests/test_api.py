import inspect
from pathlib import Path

import pytest

import budget_api.app
from budget_api.app import PASSWORD_HEADER, create_app
from budget_core.config import Settings
from budget_core.storage import JSONStorage


@pytest.fixture
def client(tmp_path: Path):
    app = create_app(settings=Settings(data_dir=tmp_path / "data", password="secret"))
    app.config.update(TESTING=True)
    client = app.test_client()
    response = client.post("/ledger", json={"monthly_budget": "100", "days_in_month": 5})
    assert response.status_code == 201
    return client


def test_ledger_created(client):
    body = client.get("/ledger").get_json()
    assert body["days_in_month"] == 5
    assert body["days"][0] == {"date": 1, "budget": "20.00", "remaining": "20.00", "transactions": []}


def test_add_transaction_redistributes(client):
    response = client.post("/days/2/transactions", json={"amount": "70", "category": "Travel"})
    assert response.status_code == 201
    body = response.get_json()
    assert body["deficit"] == "50.00"
    assert body["share"] == "16.67"
    assert body["future_days"] == 3
    assert client.get("/days/3").get_json()["remaining"] == "3.33"


def test_edit_and_delete_transaction(client):
    client.post("/days/1/transactions", json={"amount": "5", "category": "Food"})
    response = client.put("/days/1/transactions/food", json={"amount": "7"})
    assert response.get_json() == {"amount": "7.00", "category": "Food"}
    assert client.get("/days/1").get_json()["remaining"] == "13.00"

    assert client.delete("/days/1/transactions/Food").status_code == 204
    assert client.delete("/days/1/transactions/Food").status_code == 404


def test_errors_map_to_statuses(client):
    assert client.get("/days/9").status_code == 404
    response = client.post("/days/1/transactions", json={"amount": "x", "category": "Food"})
    assert response.status_code == 400
    assert response.get_json()["error"] == "Validation error"
    assert client.get("/days?start=4&end=2").status_code == 400
    assert client.post("/days/1/transactions", data="nope").status_code == 400


def test_reports(client):
    client.post("/days/1/transactions", json={"amount": "10", "category": "Food"})
    client.post("/days/2/transactions", json={"amount": "20", "category": "food"})
    categories = client.get("/categories").get_json()["items"]
    assert categories == [{"category": "Food", "total": "30.00", "percent": "30.00"}]

    search = client.get("/search?category=FOOD").get_json()["items"]
    assert search == [{"date": 1, "amount": "10.00"}, {"date": 2, "amount": "20.00"}]

    days = client.get("/days?start=2&end=3").get_json()["items"]
    assert [day["date"] for day in days] == [2, 3]

    alert = client.get("/alert?threshold=75").get_json()
    assert alert == {"below_threshold": True, "total_remaining": "70.00", "threshold_value": "75.00"}

    summary = client.get("/summary").get_json()
    assert summary["total_spent"] == "30.00"
    assert summary["savings"] == "70.00"


def test_privileged_routes_need_password(client):
    assert client.post("/save").status_code == 403
    assert client.post("/save", headers={PASSWORD_HEADER: "secret"}).status_code == 200
    assert client.post("/load", headers={PASSWORD_HEADER: "secret"}).status_code == 200

    response = client.post(
        "/archive",
        json={"monthly_budget": "300", "days_in_month": 30},
        headers={PASSWORD_HEADER: "secret"},
    )
    assert response.status_code == 201
    assert response.get_json()["ledger"]["days_in_month"] == 30


def test_app_reloads_existing_ledger(tmp_path):
    settings = Settings(data_dir=tmp_path / "data")
    first = create_app(settings=settings).test_client()
    first.post("/ledger", json={"monthly_budget": "60", "days_in_month": 3})
    first.post("/days/1/transactions", json={"amount": "5", "category": "Tea"})

    second = create_app(settings=settings).test_client()
    assert second.get("/days/1").get_json()["remaining"] == "15.00"


def test_app_reports_skipped_rows_on_stderr(tmp_path, capsys):
    storage = JSONStorage(tmp_path / "data")
    storage.save(
        "days.json",
        [
            {"date": 1, "budget": "20.00", "remaining": "20.00"},
            {"date": 2, "budget": "20.00", "remaining": "20.00"},
        ],
    )
    storage.save("transactions.json", [{"date": 9, "amount": "5.00", "category": "Ghost"}])

    client = create_app(
        settings=Settings(data_dir=storage.base_path, log_level="WARNING")
    ).test_client()

    assert "Skipping transaction for unknown date 9" in capsys.readouterr().err
    assert client.get("/days/2").get_json()["transactions"] == []


def test_api_does_not_depend_on_the_console_package():
    assert "daily_budget" not in inspect.getsource(budget_api.app)
