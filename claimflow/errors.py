"""Error taxonomy for the approval workflow and its HTTP mapping."""
from __future__ import annotations

from typing import Any, Dict, Optional

from flask import Flask


class ClaimflowError(Exception):
    """Base class for errors surfaced to callers of the workflow engine."""

    code = "error"
    status = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ClaimflowError):
    code = "validation_error"
    status = 400


class ForbiddenError(ClaimflowError):
    code = "forbidden"
    status = 403


class NotFoundError(ClaimflowError):
    code = "not_found"
    status = 404


class ConflictError(ClaimflowError):
    code = "conflict"
    status = 409


class DependencyError(ClaimflowError):
    """An external collaborator (e.g. the rate feed) failed or timed out."""

    code = "dependency_error"
    status = 502


def register_error_handlers(app: Flask) -> None:
    from claimflow.utils.helpers import json_response

    @app.errorhandler(ClaimflowError)
    def handle_claimflow_error(exc: ClaimflowError):
        if exc.status >= 500:
            app.logger.error("%s: %s", exc.code, exc.message)
        return json_response(exc.to_dict(), status=exc.status)
