"""Directory resolution for users and folders.

Storage layout is flat per user:
{user_id}/                      user root
{user_id}/{folder-dir}/         top-level folder
{user_id}/{folder-dir}/{sub}/   nested folder

Folder directories are stored on the Folder row, so resolution is a
lookup and never depends on the current date.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Final, final

from django.contrib.auth import get_user_model
from django.core.files.storage import default_storage

from server.apps.files.exceptions import NotFoundError
from server.apps.files.infrastructure.metadata import build_directory_name
from server.apps.files.models import Folder

if TYPE_CHECKING:
    from server.apps.files.infrastructure.storage import LocalFileStorage

logger = logging.getLogger(__name__)

_PATH_SEPARATOR: Final = '/'


def user_root(user_id: int) -> str:
    """Storage path of a user's root directory.

    Args:
        user_id: ID of the user.

    Returns:
        Root directory (e.g., '42').
    """
    return str(user_id)


def join_storage_path(directory: str, name: str) -> str:
    """Join a storage directory and a name.

    Args:
        directory: Storage directory (e.g., '42/reports-x1').
        name: File or directory name.

    Returns:
        Joined storage path (e.g., '42/reports-x1/file.pdf').
    """
    return directory.rstrip(_PATH_SEPARATOR) + _PATH_SEPARATOR + name


@final
class PathResolver:
    """Maps (user, folder) to a directory in storage."""

    def __init__(self, storage: 'LocalFileStorage | None' = None) -> None:
        """Initialize resolver.

        Args:
            storage: Storage backend, default storage when omitted.
        """
        self._storage = storage or default_storage

    def resolve(self, user_id: int, folder_id: int | None = None) -> str:
        """Resolve the storage directory for a user or one of the folders.

        Args:
            user_id: ID of the user.
            folder_id: Optional folder ID.

        Returns:
            Storage-relative directory path.

        Raises:
            NotFoundError: If user or folder doesn't exist.
        """
        if folder_id is not None:
            folder_path = (
                Folder.objects.filter(pk=folder_id)
                .values_list('path', flat=True)
                .first()
            )
            if folder_path is None:
                raise NotFoundError('Folder not found')
            return folder_path

        if not get_user_model().objects.filter(pk=user_id).exists():
            raise NotFoundError('User not found')
        return user_root(user_id)

    def absolute(self, directory: str) -> Path:
        """Absolute filesystem path of a storage directory.

        Args:
            directory: Storage-relative directory path.

        Returns:
            Absolute path on disk.
        """
        return Path(self._storage.path(directory))

    def new_folder_directory(
        self,
        user_id: int,
        folder_name: str,
        parent_id: int | None = None,
    ) -> str:
        """Build a fresh directory path for a new folder.

        Args:
            user_id: Owner of the new folder.
            folder_name: Display name of the new folder.
            parent_id: Optional parent folder ID.

        Returns:
            Storage path that no existing directory uses.
        """
        base = self.resolve(user_id, parent_id)
        candidate = join_storage_path(base, build_directory_name(folder_name))
        directory = self._storage.get_available_name(candidate)
        logger.debug('New folder directory: %s', directory)
        return directory
