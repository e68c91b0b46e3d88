# backend/icebox/routes/cash.py
"""
Cash register ledger API routes.
"""
from flask import Blueprint, g, jsonify, request

from ..actor import MANAGER_ROLES
from ..errors import BadRequestError
from ..services import cash_service
from ..services.cash_service import EntryMetadata
from ..services.schemas import to_datetime
from ..decorators import require_actor, require_role
from .params import json_body, optional_int, optional_str, required_int, required_str

cash_bp = Blueprint("cash", __name__, url_prefix="/api/cash")


def _entries(entries):
    return jsonify({"items": [e.to_dict() for e in entries]}), 200


@cash_bp.get("/balance")
def balance():
    return jsonify({"balance_cents": cash_service.get_current_balance()}), 200


@cash_bp.get("/consistency")
def consistency():
    info = cash_service.consistency_check()
    return jsonify(info.to_dict()), 200


@cash_bp.get("/entries")
def list_entries():
    """
    Entries in a window, newest first.

    Query:
        from, to: ISO-8601 datetimes, [from, to)
        year, month: calendar month
        (neither): today
    """
    start_raw = request.args.get("from")
    end_raw = request.args.get("to")
    year = request.args.get("year", type=int)
    month = request.args.get("month", type=int)

    if start_raw or end_raw:
        if not (start_raw and end_raw):
            raise BadRequestError("Both from and to are required")
        start = to_datetime(start_raw, "from")
        end = to_datetime(end_raw, "to")
        return _entries(cash_service.entries_by_range(start, end))
    if year is not None or month is not None:
        if year is None or month is None:
            raise BadRequestError("Both year and month are required")
        return _entries(cash_service.monthly_entries(year, month))
    return _entries(cash_service.todays_entries())


@cash_bp.post("/entries")
@require_actor
@require_role(*MANAGER_ROLES)
def add_entry():
    """
    Append a signed entry.

    Request body:
    {
        "type": str,
        "amount_cents": int (signed, non-zero),
        "description": str (optional),
        "category": str (optional),
        "related_doc_type": str (optional),
        "related_doc_id": int (optional)
    }
    """
    data = json_body()
    entry = cash_service.add_cash_entry(
        required_str(data, "type"),
        required_int(data, "amount_cents"),
        g.actor,
        EntryMetadata(
            description=optional_str(data, "description"),
            category=optional_str(data, "category"),
            related_doc_type=optional_str(data, "related_doc_type"),
            related_doc_id=optional_int(data, "related_doc_id"),
        ),
    )
    return jsonify(entry.to_dict()), 201


@cash_bp.post("/expenses")
@require_actor
@require_role(*MANAGER_ROLES)
def add_expense():
    data = json_body()
    entry = cash_service.add_expense(
        required_int(data, "amount_cents"),
        required_str(data, "category"),
        g.actor,
        description=optional_str(data, "description"),
    )
    return jsonify(entry.to_dict()), 201


@cash_bp.post("/withdrawals")
@require_actor
@require_role(*MANAGER_ROLES)
def add_withdrawal():
    data = json_body()
    entry = cash_service.add_withdrawal(
        required_int(data, "amount_cents"),
        g.actor,
        description=optional_str(data, "description"),
    )
    return jsonify(entry.to_dict()), 201
