"""General helper utilities."""
from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Dict

from flask import jsonify, request
from flask_login import current_user
from werkzeug.datastructures import MultiDict

from claimflow.errors import ForbiddenError, ValidationError
from claimflow.models import Capability

JsonView = Callable[..., Any]


def json_response(payload: Any, status: int = 200):
    """Return a JSON response with status code."""
    return jsonify(payload), status


def json_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def bind_form(form_class, payload: Dict[str, Any]):
    """Bind the scalar fields of a JSON payload to a form and validate it.

    Lists, objects and nulls are left for the caller to read from the payload.
    """
    formdata = MultiDict(
        {
            key: _form_value(value)
            for key, value in payload.items()
            if value is not None and not isinstance(value, (list, dict))
        }
    )
    form = form_class(formdata=formdata)
    if not form.validate():
        raise ValidationError("Invalid request.", details={"fields": form.errors})
    return form


def capability_required(capability: Capability):
    """Restrict a route to users whose role grants ``capability``."""
    def decorator(view_func: JsonView) -> JsonView:
        @wraps(view_func)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                return json_response(
                    {"error": "Authentication required.", "code": "unauthenticated"}, status=401
                )
            if not current_user.can(capability):
                raise ForbiddenError("Insufficient permissions.")
            return view_func(*args, **kwargs)

        return wrapped

    return decorator
