# utils/errors.py
"""
Domain error taxonomy.

Every failure in the core is raised synchronously to the caller with a short
machine-readable ``code`` naming the precondition that failed. Routes render
them through the handler registered in ``app.create_app``.
"""


class SaccoError(Exception):
    status_code = 400
    default_code = "error"

    def __init__(self, message, code=None, **context):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.context = context

    def to_dict(self):
        payload = {"error": self.message, "code": self.code}
        if self.context:
            payload["context"] = {k: str(v) for k, v in self.context.items()}
        return payload


class ValidationError(SaccoError):
    """Amount, period or date out of bounds. No state change."""
    status_code = 400
    default_code = "validation_failed"


class NotFoundError(SaccoError):
    status_code = 404
    default_code = "not_found"


class ConflictError(SaccoError):
    """Duplicate target, duplicate initiation, conflicting loan, re-run."""
    status_code = 409
    default_code = "conflict"


class StateError(SaccoError):
    """Operation attempted from the wrong lifecycle state."""
    status_code = 422
    default_code = "invalid_state"
