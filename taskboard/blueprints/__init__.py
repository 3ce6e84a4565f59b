"""Request parsing helpers shared by the API blueprints.

Validation lives here, in the HTTP layer: the services only ever see
well-formed values. PATCH bodies distinguish "key absent" (MISSING) from
an explicit value.
"""

import bleach
from flask import current_app, request

from taskboard.errors import ValidationFailed
from taskboard.services import MISSING


def request_token():
    """Session token from ``Authorization: Bearer`` or the session cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])


def json_body():
    """Return the request JSON object, or raise ValidationFailed."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailed("invalid request body")
    return data


def sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(text, tags=[], strip=True).strip()


def required_text(data, key):
    value = data.get(key)
    if not isinstance(value, str) or not sanitize(value):
        raise ValidationFailed(f"{key} required")
    return sanitize(value)


def optional_text(data, key, nullable=False):
    """PATCH text field: MISSING if absent; None becomes "" when nullable."""
    if key not in data:
        return MISSING
    value = data[key]
    if value is None and nullable:
        return ""
    if not isinstance(value, str):
        raise ValidationFailed(f"{key} must be a string")
    value = sanitize(value)
    if not value and not nullable:
        raise ValidationFailed(f"{key} cannot be empty")
    return value


def position_field(data, key="position", required=True):
    """Non-negative integer position. Booleans are rejected."""
    if key not in data:
        if required:
            raise ValidationFailed(f"{key} required")
        return MISSING
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationFailed(f"{key} must be a non-negative integer")
    return value
