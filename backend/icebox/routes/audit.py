# backend/icebox/routes/audit.py
from flask import Blueprint, jsonify, request

from ..services import audit_service
from .params import limit_arg

audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit")


@audit_bp.get("")
def list_audit_entries():
    entries = audit_service.list_audit_entries(
        table_name=request.args.get("table_name"),
        record_id=request.args.get("record_id", type=int),
        limit=limit_arg(),
    )
    return jsonify({"items": [e.to_dict() for e in entries]}), 200
