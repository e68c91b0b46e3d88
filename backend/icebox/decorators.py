# Overview: Request decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .actor import Actor
from .logging_config import ActorContext, get_logger

logger = get_logger("decorators")


def _parse_actor():
    raw_id = request.headers.get("X-Actor-Id", "").strip()
    role = request.headers.get("X-Actor-Role", "").strip()
    if not role or not raw_id.isdigit() or int(raw_id) <= 0:
        return None
    return Actor(actor_id=int(raw_id), role=role)


def require_actor(f):
    """
    Require an identity on the request.

    The upstream gateway authenticates the caller and forwards who they are
    in X-Actor-Id / X-Actor-Role. Sets g.actor and the logging context.

    Returns 401 if either header is missing or the id is not a positive integer.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = _parse_actor()
        if actor is None:
            return jsonify({"error": "Actor identity required"}), 401

        g.actor = actor
        ActorContext.set(actor_id=actor.actor_id, actor_role=actor.role, request_path=request.path)
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require the acting identity to hold one of the given roles.

    Must be applied below @require_actor. Returns 403 otherwise.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            actor = g.get("actor")
            if actor is None:
                return jsonify({"error": "Actor identity required"}), 401

            if actor.role not in roles:
                logger.warning(
                    "Role denied",
                    extra={"actor_id": actor.actor_id, "actor_role": actor.role, "path": request.path},
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                    "message": f"Role '{actor.role}' may not perform this action",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
