"""
Domain error taxonomy.

Services raise these; ``fitleague.main`` renders them as
``{"detail": <message>, "error": <code>}`` with the matching status code.
"""
from __future__ import annotations


class DomainError(Exception):
    status_code = 400
    code = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(DomainError):
    status_code = 401
    code = "unauthorized"


class Forbidden(DomainError):
    status_code = 403
    code = "forbidden"


class NotFound(DomainError):
    status_code = 404
    code = "not_found"


class InvalidTransition(DomainError):
    """A lifecycle gate rejected the action (e.g. reviewing before submissions close)."""
    status_code = 409
    code = "invalid_transition"


class ValidationError(DomainError):
    status_code = 422
    code = "validation_error"
