"""Business logic for storage quota operations.

Usage is always the live sum of a user's file sizes; nothing is cached.
The check in ``check_quota`` is read-then-act: two concurrent uploads by
the same user may each pass and together exceed the quota.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Final

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Count, Max, Q, Sum  # noqa: WPS347
from django.utils import timezone

from server.apps.files.exceptions import (
    InvalidOperationError,
    QuotaExceededError,
)
from server.apps.files.models import File

# User type for Django's dynamic user model
_User = Any

_OLD_FILE_DAYS: Final = 90
_ACTIVE_USER_DAYS: Final = 30
_PERCENT: Final = 100

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StorageUsage:
    """Used and allowed bytes for a user."""

    used_bytes: int
    quota_bytes: int

    @property
    def available_bytes(self) -> int:
        """Get available storage space (never negative)."""
        return max(0, self.quota_bytes - self.used_bytes)

    def has_space_for(self, size_bytes: int) -> bool:
        """Check if there's enough space for the given size.

        Args:
            size_bytes: Size to check in bytes.

        Returns:
            True if there's enough space, False otherwise.
        """
        return self.used_bytes + size_bytes <= self.quota_bytes


@dataclass(frozen=True, slots=True)
class UserStorageStats:
    """Per-user row of the admin storage overview."""

    user_id: int
    name: str
    email: str
    employee_id: str
    used_bytes: int
    quota_bytes: int
    usage_percentage: float
    file_count: int
    old_files: int
    last_active: datetime | None


@dataclass(frozen=True, slots=True)
class StorageOverview:
    """System-wide storage statistics."""

    total_bytes: int
    used_bytes: int
    available_bytes: int
    utilization_percentage: float
    total_users: int
    active_users: int
    users: list[UserStorageStats]


@dataclass(frozen=True, slots=True)
class UserQuotaShare:
    """Per-user row of the quota distribution."""

    user_id: int
    name: str
    email: str
    used_bytes: int
    quota_bytes: int
    file_count: int


@dataclass(frozen=True, slots=True)
class QuotaDistribution:
    """System envelope divided among users."""

    total_bytes: int
    used_bytes: int
    users: list[UserQuotaShare]


def default_quota_bytes() -> int:
    """Quota applied to users without an override."""
    return settings.STORAGE_DEFAULT_QUOTA_BYTES


def total_storage_bytes() -> int:
    """System-wide storage envelope."""
    return settings.STORAGE_TOTAL_BYTES


def get_quota_bytes(user: _User) -> int:
    """Get user's quota, falling back to the default quota.

    Args:
        user: User to get quota for.

    Returns:
        Quota in bytes.
    """
    if user.storage_quota is None:
        return default_quota_bytes()
    return user.storage_quota


def get_used_bytes(user: _User) -> int:
    """Sum sizes of all files owned by the user.

    Args:
        user: User to sum files for.

    Returns:
        Used storage in bytes.
    """
    return File.objects.filter(owner=user).aggregate(
        total=Sum('size_bytes'),
    )['total'] or 0


def get_usage(user: _User) -> StorageUsage:
    """Get live storage usage for a user.

    Args:
        user: User to get usage for.

    Returns:
        StorageUsage with used and quota bytes.
    """
    return StorageUsage(
        used_bytes=get_used_bytes(user),
        quota_bytes=get_quota_bytes(user),
    )


def can_accept(user: _User, incoming_bytes: int) -> bool:
    """Check whether the user's quota can take more bytes.

    Args:
        user: User receiving the upload.
        incoming_bytes: Size of the upload.

    Returns:
        True if used + incoming stays within the quota.
    """
    return get_usage(user).has_space_for(incoming_bytes)


def check_quota(user: _User, size_bytes: int) -> None:
    """Check if user has enough quota for an upload.

    Args:
        user: User to check quota for.
        size_bytes: Size of the upload in bytes.

    Raises:
        QuotaExceededError: If upload would exceed quota.
    """
    usage = get_usage(user)

    if not usage.has_space_for(size_bytes):
        logger.warning(
            'Quota exceeded for user %s: need %d, have %d available',
            user.employee_id,
            size_bytes,
            usage.available_bytes,
        )
        raise QuotaExceededError(
            quota_bytes=usage.quota_bytes,
            used_bytes=usage.used_bytes,
            required_bytes=size_bytes,
        )


def set_user_quota(user: _User, quota_bytes: int | None) -> _User:
    """Set or clear a user's quota override.

    Args:
        user: User to update.
        quota_bytes: New quota in bytes, None to use the default quota.

    Returns:
        Updated user.

    Raises:
        InvalidOperationError: If quota is negative or not an integer.
    """
    if quota_bytes is not None:
        if isinstance(quota_bytes, bool) or not isinstance(quota_bytes, int):
            raise InvalidOperationError('Invalid quota value')
        if quota_bytes < 0:
            raise InvalidOperationError('Invalid quota value')

    old_quota = user.storage_quota
    user.storage_quota = quota_bytes
    user.save(update_fields=['storage_quota'])

    logger.info(
        'Quota for user %s changed: %s -> %s',
        user.employee_id,
        old_quota,
        quota_bytes,
    )
    return user


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return part * _PERCENT / whole


def get_storage_overview() -> StorageOverview:
    """Build system-wide and per-user storage statistics.

    Users are sorted by quota usage, highest first.

    Returns:
        StorageOverview for the admin storage page.
    """
    now = timezone.now()
    old_cutoff = now - timedelta(days=_OLD_FILE_DAYS)
    active_cutoff = now - timedelta(days=_ACTIVE_USER_DAYS)

    users = get_user_model().objects.annotate(
        used=Sum('files__size_bytes'),
        file_count=Count('files'),
        old_files=Count('files', filter=Q(files__created_at__lt=old_cutoff)),
        last_active=Max('files__updated_at'),
    )

    rows: list[UserStorageStats] = []
    for user in users:
        used = user.used or 0
        quota = get_quota_bytes(user)
        rows.append(UserStorageStats(
            user_id=user.pk,
            name=user.name,
            email=user.email,
            employee_id=user.employee_id,
            used_bytes=used,
            quota_bytes=quota,
            usage_percentage=(
                _percentage(used, quota) if user.file_count else 0.0
            ),
            file_count=user.file_count,
            old_files=user.old_files,
            last_active=user.last_active,
        ))

    rows.sort(key=lambda row: row.usage_percentage, reverse=True)

    total = total_storage_bytes()
    used_total = sum(row.used_bytes for row in rows)
    return StorageOverview(
        total_bytes=total,
        used_bytes=used_total,
        available_bytes=total - used_total,
        utilization_percentage=_percentage(used_total, total),
        total_users=len(rows),
        active_users=sum(
            1 for row in rows
            if row.last_active is not None and row.last_active > active_cutoff
        ),
        users=rows,
    )


def get_storage_distribution() -> QuotaDistribution:
    """Split the system envelope evenly among users without an override.

    Unlike ``get_quota_bytes``, users without an override get the total
    storage divided by the number of users.

    Returns:
        QuotaDistribution with per-user shares.
    """
    users = list(get_user_model().objects.annotate(
        used=Sum('files__size_bytes'),
        file_count=Count('files'),
    ).order_by('employee_id'))

    total = total_storage_bytes()
    even_share = total // len(users) if users else total

    shares = [
        UserQuotaShare(
            user_id=user.pk,
            name=user.name,
            email=user.email,
            used_bytes=user.used or 0,
            quota_bytes=(
                even_share
                if user.storage_quota is None
                else user.storage_quota
            ),
            file_count=user.file_count,
        )
        for user in users
    ]

    return QuotaDistribution(
        total_bytes=total,
        used_bytes=sum(share.used_bytes for share in shares),
        users=shares,
    )
