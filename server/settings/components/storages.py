"""Django storage configuration for the local filesystem backend.

User files are written under ``MEDIA_ROOT``, one directory per user:
{user_id}/[folder dirs]/{timestamp}-{filename}
"""

from typing import Any, Final

from server.settings.components import BASE_DIR, config

MEDIA_ROOT = config(
    'DJANGO_MEDIA_ROOT',
    default=str(BASE_DIR.joinpath('uploads')),
)
MEDIA_URL = '/media/'

# Storage configuration dictionary
# Uses local storage for both user files and static files
STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'server.apps.files.infrastructure.storage.LocalFileStorage',
    },
    'staticfiles': {
        # Keep static files separate from user files
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

FILE_UPLOAD_PERMISSIONS = 0o640
FILE_UPLOAD_DIRECTORY_PERMISSIONS = 0o750

_GIB: Final = 1024 * 1024 * 1024

# Per-user default quota when the user has no override
STORAGE_DEFAULT_QUOTA_BYTES = config(
    'STORAGE_DEFAULT_QUOTA_BYTES',
    cast=int,
    default=5 * _GIB,
)

# System-wide envelope shown on the admin storage pages
STORAGE_TOTAL_BYTES = config(
    'STORAGE_TOTAL_BYTES',
    cast=int,
    default=5 * 1024 * _GIB,
)

# Expired shares older than this are purged by `cleanup_expired_shares`
SHARE_RETENTION_DAYS = config('SHARE_RETENTION_DAYS', cast=int, default=30)
