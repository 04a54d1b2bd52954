"""JSON request/response helpers shared by the API views."""

import json

from django.http import JsonResponse


class InvalidJSON(ValueError):
    """Request body is not a JSON object."""


def parse_json(request):
    """Decode the request body as a JSON object.

    Raises:
        InvalidJSON: If the body is not valid JSON or not an object.
    """
    try:
        data = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidJSON(str(e)) from e
    if not isinstance(data, dict):
        raise InvalidJSON("Expected a JSON object")
    return data


def invalid_json_response():
    return JsonResponse({"error": "Invalid JSON"}, status=400)


def json_error(message, status=400, **extra):
    """Error envelope used by the store and payment endpoints."""
    return JsonResponse({"ok": False, "error": message, **extra}, status=status)


class InvalidField(ValueError):
    """A JSON field has a type the endpoint cannot use."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"{name} must be a string")


def text_field(data, name, lower=False) -> str:
    """Stripped string value of `data[name]`; missing or null gives "".

    Numbers are accepted as their text form (phone numbers are often sent
    unquoted).

    Raises:
        InvalidField: The value is a bool, list or object
    """
    value = data.get(name)
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise InvalidField(name)
    text = str(value).strip()
    return text.lower() if lower else text


def invalid_field_response(exc):
    return JsonResponse({"error": str(exc)}, status=400)


def server_error(request):
    """Project-wide 500 handler; keeps API errors in the JSON envelope."""
    return JsonResponse({"ok": False, "error": "Internal server error"}, status=500)
