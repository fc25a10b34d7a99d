# utils/auth.py
from dataclasses import dataclass
from functools import wraps

from flask import current_app, jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as supplied by the identity service."""
    member_id: int
    organization_id: int
    role: str = "member"

    @property
    def is_operator(self):
        return self.role in current_app.config.get("OPERATOR_ROLES", ())


def current_actor():
    claims = get_jwt()
    return Actor(
        member_id=int(get_jwt_identity()),
        organization_id=int(claims.get("org")),
        role=claims.get("role", "member"),
    )


def actor_required(fn):
    """Require a valid token carrying an ``org`` claim; injects ``actor``."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if get_jwt().get("org") is None:
            return jsonify({"error": "Token has no organization scope"}), 401
        return fn(*args, actor=current_actor(), **kwargs)
    return wrapper


def operator_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if get_jwt().get("org") is None:
            return jsonify({"error": "Token has no organization scope"}), 401
        actor = current_actor()
        if not actor.is_operator:
            return jsonify({"error": "Forbidden: operators only"}), 403
        return fn(*args, actor=actor, **kwargs)
    return wrapper
