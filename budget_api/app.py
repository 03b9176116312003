"""Flask REST API exposing the daily budget ledger services."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from budget_access.gate import AccessDeniedError, PasswordGate
from budget_core.config import Settings
from budget_core.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from budget_core.logging_setup import configure_logging
from budget_core.services import LedgerService
from budget_core.storage import JSONStorage

PASSWORD_HEADER = "X-Budget-Password"


def create_app(data_dir: Optional[Path] = None, settings: Optional[Settings] = None) -> Flask:
    app = Flask(__name__)

    settings = settings or Settings.from_env()
    if data_dir is not None:
        settings = replace(settings, data_dir=Path(data_dir))
    configure_logging(settings.log_level)

    if settings.is_dev:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    elif settings.allowed_origins:
        CORS(app, resources={r"/*": {"origins": settings.allowed_origins}}, supports_credentials=True)
    else:
        CORS(app)

    service = LedgerService(JSONStorage(settings.data_dir))
    service.load()
    gate = PasswordGate(settings.password)

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(AccessDeniedError)
    def handle_access_denied(exc: AccessDeniedError):
        return _handle_error(exc, 403, "Access denied")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _require_password(action: str) -> None:
        gate.require(request.headers.get(PASSWORD_HEADER), action)

    @app.post("/ledger")
    def create_ledger():
        payload = _json_body()
        if service.has_ledger and not payload.get("force"):
            raise ValidationError("A ledger already exists; archive it or pass force")
        ledger = service.create(payload.get("monthly_budget"), payload.get("days_in_month"))
        return _success(ledger.to_dict(), 201)

    @app.get("/ledger")
    def get_ledger():
        return _success(service.ledger.to_dict())

    @app.get("/days")
    def list_days():
        start = request.args.get("start")
        end = request.args.get("end")
        ledger = service.ledger
        if start in (None, "") and end in (None, ""):
            days = list(ledger)
        else:
            days = [
                day
                for day, _ in service.queries().filter_by_date_range(
                    start or 1, end or ledger.days_in_month
                )
            ]
        return _success({"items": [day.to_dict() for day in days]})

    @app.get("/days/<int:date>")
    def get_day(date: int):
        return _success(service.queries().find_day(date).to_dict())

    @app.post("/days/<int:date>/transactions")
    def add_transaction(date: int):
        payload = _json_body()
        outcome = service.add_transaction(date, payload.get("amount"), payload.get("category"))
        return _success(
            {
                "day": outcome.day.to_dict(),
                "transaction": outcome.transaction.to_dict(),
                "deficit": f"{outcome.deficit:.2f}",
                "share": f"{outcome.share:.2f}",
                "future_days": outcome.future_days,
            },
            201,
        )

    @app.put("/days/<int:date>/transactions/<category>")
    def edit_transaction(date: int, category: str):
        payload = _json_body()
        updated = service.edit_transaction(
            date, category, payload.get("amount"), payload.get("category")
        )
        return _success(updated.to_dict())

    @app.delete("/days/<int:date>/transactions/<category>")
    def delete_transaction(date: int, category: str):
        service.delete_transaction(date, category)
        return _success({}, 204)

    @app.get("/categories")
    def category_summary():
        items = [
            {
                "category": item.category,
                "total": f"{item.total:.2f}",
                "percent": f"{item.percent:.2f}",
            }
            for item in service.categories().breakdown()
        ]
        return _success({"items": items})

    @app.get("/search")
    def search():
        matches = service.queries().search_by_category(request.args.get("category"))
        return _success(
            {"items": [{"date": date, "amount": f"{amount:.2f}"} for date, amount in matches]}
        )

    @app.get("/alert")
    def alert():
        threshold = request.args.get("threshold") or settings.alert_threshold
        status = service.queries().check_alert(service.ledger.monthly_budget, threshold)
        return _success(
            {
                "below_threshold": status.below_threshold,
                "total_remaining": f"{status.total_remaining:.2f}",
                "threshold_value": f"{status.threshold_value:.2f}",
            }
        )

    @app.get("/summary")
    def summary():
        result = service.queries().monthly_summary()
        return _success(
            {
                "total_budget": f"{result.total_budget:.2f}",
                "total_spent": f"{result.total_spent:.2f}",
                "savings": f"{result.savings:.2f}",
                "total_remaining": f"{result.total_remaining:.2f}",
            }
        )

    @app.post("/save")
    def save():
        _require_password("save")
        service.save()
        return _success({"saved_to": str(settings.data_dir)})

    @app.post("/load")
    def load():
        _require_password("load")
        ledger = service.load()
        if ledger is None:
            raise RecordNotFoundError("No saved ledger to load")
        return _success(ledger.to_dict())

    @app.post("/archive")
    def archive():
        _require_password("archive")
        payload = _json_body()
        location, ledger = service.archive_and_reset(
            payload.get("monthly_budget"), payload.get("days_in_month")
        )
        return _success({"archived_to": str(location), "ledger": ledger.to_dict()}, 201)

    return app
