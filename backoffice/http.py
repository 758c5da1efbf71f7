"""
JSON request/response helpers shared by the API views.
"""
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from functools import wraps

from django.core.exceptions import BadRequest
from django.http import Http404, JsonResponse

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def json_error(message, status=400, **extra):
    payload = {"error": message}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def form_error_response(form, status=400):
    """400 with the first problem as `error` and every field message under `fields`."""
    fields = {name: [str(m) for m in messages] for name, messages in form.errors.items()}
    first = next(iter(fields.items()), None)
    if first is None:
        message = "Invalid input"
    elif first[0] == "__all__":
        message = first[1][0]
    else:
        message = f"{first[0]}: {first[1][0]}"
    return json_error(message, status=status, fields=fields)


def parse_json_body(request):
    """Decode a JSON object body. Empty body -> {}."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise BadRequest("Invalid JSON body")
    if not isinstance(data, dict):
        raise BadRequest("JSON body must be an object")
    return data


def money(value):
    if value is None:
        value = Decimal("0")
    return str(Decimal(value).quantize(TWO_PLACES))


def iso(value):
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def parse_int(value, default=None):
    if value in (None, "", "all"):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_date(value):
    """YYYY-MM-DD (or a datetime string starting with one) -> date, else None."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def api_view(methods, login_required=True):
    """
    Wrap a JSON view: restrict methods, require an authenticated session,
    map malformed bodies to 400 and anything unexpected to a logged 500.
    """
    allowed = [m.upper() for m in methods]

    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if request.method not in allowed:
                response = json_error("Method not allowed", status=405)
                response["Allow"] = ", ".join(allowed)
                return response
            if login_required and not request.user.is_authenticated:
                return json_error("Authentication required", status=401)
            try:
                return view(request, *args, **kwargs)
            except BadRequest as e:
                return json_error(str(e), status=400)
            except Http404:
                return json_error("Not found", status=404)
            except Exception:
                logger.exception("%s %s failed", request.method, request.path)
                return json_error("Failed to process request", status=500)

        return wrapper

    return decorator
