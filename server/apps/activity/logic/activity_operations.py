"""Business logic for the file activity log.

Recording is fire-and-forget: a failure to write an activity row is
logged and never aborts the operation being recorded.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Final

from django.db import DatabaseError, transaction

from server.apps.activity.models import Action, Activity

if TYPE_CHECKING:
    from server.apps.files.models import File

# User type for Django's dynamic user model
_User = Any

_DETAILS_SEPARATOR: Final = ' - '
_UNKNOWN_NAME: Final = 'Unknown file'
_UNKNOWN_TYPE: Final = 'unknown'
_DEFAULT_IP: Final = '0.0.0.0'  # noqa: S104

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActivityFileInfo:
    """File described by an activity, live or reconstructed."""

    file_id: int | None
    name: str
    size_bytes: int
    mime_type: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ActivityEntry:
    """Activity row prepared for display."""

    activity_id: int
    action: str
    ip_address: str
    details: str
    timestamp: datetime
    file: ActivityFileInfo | None


def describe_file(file_instance: 'File') -> str:
    """Build the details string stored for delete activities.

    Example: 'report.pdf - 1024 - application/pdf'

    Args:
        file_instance: File about to be deleted.

    Returns:
        Name, size and MIME type joined by ' - '.
    """
    return _DETAILS_SEPARATOR.join((
        file_instance.name,
        str(file_instance.size_bytes),
        file_instance.mime_type,
    ))


def record_activity(  # noqa: WPS211
    user: _User,
    action: Action | str,
    file: 'File | None' = None,
    ip_address: str | None = None,
    details: str = '',
    file_reference: int | None = None,
) -> Activity | None:
    """Record a file activity.

    Args:
        user: User performing the action.
        action: One of upload, download, share, delete.
        file: File the action applies to.
        ip_address: Client IP address.
        details: Free-form description.
        file_reference: ID kept for files that no longer exist.

    Returns:
        Created Activity, or None if it could not be stored.
    """
    try:
        with transaction.atomic():
            activity = Activity.objects.create(
                user=user,
                file=file,
                file_reference=file.pk if file is not None else file_reference,
                action=action,
                ip_address=ip_address or _DEFAULT_IP,
                details=details,
            )
    except (DatabaseError, ValueError):
        logger.exception(
            'Failed to record %s activity for user %s',
            action,
            user.pk,
        )
        return None

    logger.debug('Recorded %s activity for user %s', action, user.pk)
    return activity


def _parse_details(activity: Activity) -> ActivityFileInfo:
    # Names may contain the separator, size and type never do
    parts = activity.details.rsplit(_DETAILS_SEPARATOR, 2)
    if len(parts) < 3:
        parts = [activity.details, '0', _UNKNOWN_TYPE]
    name, size_text, mime_type = parts
    try:
        size_bytes = int(size_text)
    except ValueError:
        size_bytes = 0
    name = name or _UNKNOWN_NAME
    return ActivityFileInfo(
        file_id=activity.file_reference,
        name=name,
        size_bytes=size_bytes,
        mime_type=mime_type,
        created_at=activity.timestamp,
    )


def _file_info(activity: Activity) -> ActivityFileInfo | None:
    if activity.file is not None:
        return ActivityFileInfo(
            file_id=activity.file.pk,
            name=activity.file.name,
            size_bytes=activity.file.size_bytes,
            mime_type=activity.file.mime_type,
            created_at=activity.file.created_at,
        )
    if activity.action == Action.DELETE and activity.details:
        return _parse_details(activity)
    return None


def list_user_activities(user: _User) -> list[ActivityEntry]:
    """List a user's activities, newest first.

    Delete records whose file row is gone get their file information
    rebuilt from the stored details.

    Args:
        user: User whose activities to list.

    Returns:
        List of ActivityEntry.
    """
    activities = Activity.objects.filter(user=user).select_related('file')
    return [
        ActivityEntry(
            activity_id=activity.pk,
            action=activity.action,
            ip_address=activity.ip_address,
            details=activity.details,
            timestamp=activity.timestamp,
            file=_file_info(activity),
        )
        for activity in activities
    ]
