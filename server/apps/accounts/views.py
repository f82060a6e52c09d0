"""JSON API views for registration, login and user administration."""

import logging
from http import HTTPStatus
from typing import Any

from django.http import HttpRequest, HttpResponse, JsonResponse

from server.apps.accounts.authentication import Identity, verify_credentials
from server.apps.accounts.logic.user_operations import (
    delete_user,
    get_user,
    list_users_with_usage,
    register_user,
    reset_password,
)
from server.apps.accounts.models import User
from server.apps.activity.logic.activity_operations import list_user_activities
from server.apps.core.http import api_view, parse_json_body
from server.apps.files.exceptions import InvalidOperationError
from server.apps.files.logic.quota_operations import (
    get_quota_bytes,
    set_user_quota,
)
from server.apps.files.logic.storage_service import StorageService

logger = logging.getLogger(__name__)


def _user_payload(user: User) -> dict[str, Any]:
    return {
        'id': user.pk,
        'employeeId': user.employee_id,
        'email': user.email,
        'name': user.name,
        'isAdmin': user.is_admin,
        'storageQuota': get_quota_bytes(user),
        'forcePasswordChange': user.force_password_change,
    }


def _required_text(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        return ''
    return value


@api_view('POST', public=True)
def register(request: HttpRequest) -> HttpResponse:
    """Create an account from employee ID, email, password and name."""
    payload = parse_json_body(request)
    user = register_user(
        employee_id=_required_text(payload, 'employeeId'),
        email=_required_text(payload, 'email'),
        password=_required_text(payload, 'password'),
        name=_required_text(payload, 'name'),
    )
    StorageService().ensure_user_root(user)
    return JsonResponse(
        {'success': True, 'user': _user_payload(user)},
        status=HTTPStatus.CREATED,
    )


@api_view('POST', public=True)
def login(request: HttpRequest) -> HttpResponse:
    """Check credentials and return the user's profile."""
    payload = parse_json_body(request)
    employee_id = _required_text(payload, 'employeeId')
    password = _required_text(payload, 'password')
    if not employee_id or not password:
        raise InvalidOperationError('Employee ID and password are required')

    user = verify_credentials(request, employee_id, password)
    logger.info('User logged in: %s', user.employee_id)
    return JsonResponse({'success': True, 'user': _user_payload(user)})


@api_view('GET')
def me(request: HttpRequest, identity: Identity) -> HttpResponse:
    """Profile of the caller."""
    return JsonResponse(_user_payload(identity.user))


@api_view('GET', admin_only=True)
def users(request: HttpRequest, identity: Identity) -> HttpResponse:
    """All users with file counts and used storage."""
    return JsonResponse({
        'users': [
            {
                **_user_payload(user),
                'fileCount': user.file_count,
                'storageUsed': user.used_bytes or 0,
            }
            for user in list_users_with_usage()
        ],
    })


@api_view('DELETE', admin_only=True)
def user_detail(
    request: HttpRequest,
    identity: Identity,
    user_id: int,
) -> HttpResponse:
    """Delete a user and everything they own."""
    delete_user(identity.user, get_user(user_id))
    return JsonResponse({'message': 'User deleted successfully'})


@api_view('POST', admin_only=True)
def user_quota(
    request: HttpRequest,
    identity: Identity,
    user_id: int,
) -> HttpResponse:
    """Set a user's quota in bytes; null restores the default."""
    payload = parse_json_body(request)
    if 'quota' not in payload:
        raise InvalidOperationError('Invalid quota value')

    user = set_user_quota(get_user(user_id), payload['quota'])
    return JsonResponse({
        'message': 'Storage quota updated successfully',
        'userId': user.pk,
        'newQuota': user.storage_quota,
    })


@api_view('POST', admin_only=True)
def user_password(
    request: HttpRequest,
    identity: Identity,
    user_id: int,
) -> HttpResponse:
    """Reset a user's password."""
    payload = parse_json_body(request)
    user = reset_password(
        get_user(user_id),
        _required_text(payload, 'password'),
        force_change=bool(payload.get('forceChange', False)),
    )
    return JsonResponse({
        'message': 'Password updated successfully',
        'userId': user.pk,
    })


@api_view('GET', admin_only=True)
def user_activity(
    request: HttpRequest,
    identity: Identity,
    user_id: int,
) -> HttpResponse:
    """Activity feed of a user, newest first."""
    user = get_user(user_id)
    activities = []
    for entry in list_user_activities(user):
        file_info = None
        if entry.file is not None:
            file_info = {
                'id': entry.file.file_id,
                'name': entry.file.name,
                'size': entry.file.size_bytes,
                'type': entry.file.mime_type,
                'createdAt': entry.file.created_at.isoformat(),
            }
        activities.append({
            'id': entry.activity_id,
            'action': entry.action,
            'ipAddress': entry.ip_address,
            'details': entry.details,
            'timestamp': entry.timestamp.isoformat(),
            'file': file_info,
        })

    return JsonResponse({
        'userId': user.pk,
        'userName': user.name,
        'email': user.email,
        'employeeId': user.employee_id,
        'activities': activities,
    })
