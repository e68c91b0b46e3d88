# Overview: Request parsing helpers shared by the blueprints.

from flask import current_app, request

from ..errors import BadRequestError
from ..services.schemas import to_datetime, to_int, to_str


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequestError("Request body must be a JSON object")
    return data


def required(data: dict, key: str):
    if data.get(key) is None:
        raise BadRequestError(f"Missing required field: {key}")
    return data[key]


def required_int(data: dict, key: str) -> int:
    return to_int(required(data, key), key)


def required_str(data: dict, key: str) -> str:
    return to_str(required(data, key), key)


def optional_str(data: dict, key: str):
    if data.get(key) is None:
        return None
    return to_str(data[key], key)


def optional_int(data: dict, key: str):
    if data.get(key) is None:
        return None
    return to_int(data[key], key)


def required_datetime(data: dict, key: str):
    return to_datetime(required(data, key), key)


def limit_arg() -> int:
    """?limit=N clamped to [1, MAX_LIST_LIMIT]."""
    default = current_app.config["DEFAULT_LIST_LIMIT"]
    limit = request.args.get("limit", default=default, type=int)
    return max(1, min(limit, current_app.config["MAX_LIST_LIMIT"]))
