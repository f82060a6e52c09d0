"""JSON API plumbing shared by every app.

``api_view`` authenticates the caller, enforces the allowed methods and
turns ``StorageError`` subclasses into JSON error responses.
"""

import functools
import json
import logging
from collections.abc import Callable
from datetime import datetime
from http import HTTPStatus
from typing import Any, Final

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.views.decorators.csrf import csrf_exempt

from server.apps.accounts.authentication import (
    REALM,
    authenticate_request,
)
from server.apps.files.exceptions import (
    AccessDeniedError,
    InvalidOperationError,
    NotFoundError,
    PersistenceError,
    QuotaExceededError,
    StorageError,
    StorageIOError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

_DEFAULT_IP: Final = '0.0.0.0'  # noqa: S104
_SERVER_ERROR_MESSAGE: Final = 'Internal server error'

# Most specific classes first
_ERROR_STATUSES: Final[tuple[tuple[type[StorageError], HTTPStatus], ...]] = (
    (UnauthenticatedError, HTTPStatus.UNAUTHORIZED),
    (AccessDeniedError, HTTPStatus.FORBIDDEN),
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (QuotaExceededError, HTTPStatus.BAD_REQUEST),
    (InvalidOperationError, HTTPStatus.BAD_REQUEST),
    (StorageIOError, HTTPStatus.INTERNAL_SERVER_ERROR),
    (PersistenceError, HTTPStatus.INTERNAL_SERVER_ERROR),
)

AuthenticatedView = Callable[..., HttpResponse]


def error_status(error: StorageError) -> HTTPStatus:
    """Map a storage error to its HTTP status.

    Args:
        error: Raised error.

    Returns:
        HTTP status for the error class.
    """
    for error_class, status in _ERROR_STATUSES:
        if isinstance(error, error_class):
            return status
    return HTTPStatus.INTERNAL_SERVER_ERROR


def error_response(error: StorageError) -> JsonResponse:
    """Build the JSON response for a storage error.

    Server-side failures get a generic message, the cause is logged.

    Args:
        error: Raised error.

    Returns:
        JsonResponse with ``error`` and ``reason`` keys.
    """
    status = error_status(error)
    message = str(error)
    if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error('Request failed: %s', message, exc_info=error)
        message = _SERVER_ERROR_MESSAGE

    response = JsonResponse(
        {'error': message, 'reason': error.reason},
        status=status,
    )
    if status == HTTPStatus.UNAUTHORIZED:
        response['WWW-Authenticate'] = f'Basic realm="{REALM}"'
    return response


def api_view(
    *methods: str,
    admin_only: bool = False,
    public: bool = False,
) -> Callable[[AuthenticatedView], Callable[..., HttpResponse]]:
    """Turn a function into a JSON API view.

    Authenticated views receive the caller's ``Identity`` after the
    request. Public views receive only the request.

    Args:
        methods: Allowed HTTP methods.
        admin_only: Reject non-administrators with 403.
        public: Skip authentication.

    Returns:
        View decorator.
    """
    allowed = frozenset(method.upper() for method in methods)

    def decorator(view: AuthenticatedView) -> Callable[..., HttpResponse]:
        @csrf_exempt
        @functools.wraps(view)
        def wrapper(
            request: HttpRequest,
            *args: Any,
            **kwargs: Any,
        ) -> HttpResponse:
            if request.method not in allowed:
                response = JsonResponse(
                    {'error': 'Method not allowed', 'reason': 'method'},
                    status=HTTPStatus.METHOD_NOT_ALLOWED,
                )
                response['Allow'] = ', '.join(sorted(allowed))
                return response

            try:
                if public:
                    return view(request, *args, **kwargs)

                identity = authenticate_request(request)
                if admin_only and not identity.is_admin:
                    logger.warning(
                        'Non-admin user %s requested %s',
                        identity.employee_id,
                        request.path,
                    )
                    raise AccessDeniedError('Admin access required')
                return view(request, identity, *args, **kwargs)
            except StorageError as error:
                return error_response(error)

        return wrapper

    return decorator


def get_client_ip(request: HttpRequest) -> str:
    """Best guess of the client's IP address behind proxies.

    Checks CF-Connecting-IP, the first X-Forwarded-For entry, X-Real-IP
    and finally REMOTE_ADDR.

    Args:
        request: Incoming HTTP request.

    Returns:
        IP address, '0.0.0.0' when unknown.
    """
    cloudflare_ip = request.headers.get('CF-Connecting-IP')
    if cloudflare_ip:
        return cloudflare_ip.strip()

    forwarded_for = request.headers.get('X-Forwarded-For')
    if forwarded_for:
        first = forwarded_for.split(',')[0].strip()
        if first:
            return first

    real_ip = request.headers.get('X-Real-IP')
    if real_ip:
        return real_ip.strip()

    return request.META.get('REMOTE_ADDR') or _DEFAULT_IP


def parse_json_body(request: HttpRequest) -> dict[str, Any]:
    """Decode a JSON object request body.

    Args:
        request: Incoming HTTP request.

    Returns:
        Decoded object, empty for an empty body.

    Raises:
        InvalidOperationError: If the body is not a JSON object.
    """
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (ValueError, UnicodeDecodeError) as error:
        raise InvalidOperationError('Invalid JSON body') from error
    if not isinstance(payload, dict):
        raise InvalidOperationError('JSON body must be an object')
    return payload


def parse_optional_id(raw_value: Any, field_name: str) -> int | None:
    """Parse an optional integer identifier from a request.

    Args:
        raw_value: Value from the body or query string.
        field_name: Name used in the error message.

    Returns:
        Parsed ID, None when the value is absent or empty.

    Raises:
        InvalidOperationError: If the value is not a positive integer.
    """
    if raw_value in (None, '', 'null'):
        return None
    if isinstance(raw_value, bool):
        raise InvalidOperationError(f'Invalid {field_name}')
    try:
        parsed = int(raw_value)
    except (TypeError, ValueError) as error:
        raise InvalidOperationError(f'Invalid {field_name}') from error
    if parsed <= 0:
        raise InvalidOperationError(f'Invalid {field_name}')
    return parsed


def parse_optional_datetime(raw_value: Any, field_name: str) -> datetime | None:
    """Parse an optional ISO 8601 timestamp from a request.

    Naive timestamps are taken to be in the current time zone.

    Args:
        raw_value: Value from the body.
        field_name: Name used in the error message.

    Returns:
        Aware datetime, None when the value is absent or empty.

    Raises:
        InvalidOperationError: If the value is not a timestamp.
    """
    if raw_value in (None, ''):
        return None
    if not isinstance(raw_value, str):
        raise InvalidOperationError(f'Invalid {field_name}')
    try:
        parsed = parse_datetime(raw_value)
    except ValueError as error:
        raise InvalidOperationError(f'Invalid {field_name}') from error
    if parsed is None:
        raise InvalidOperationError(f'Invalid {field_name}')
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed
