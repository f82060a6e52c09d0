"""Local filesystem storage for user files."""

import logging
import shutil
from pathlib import Path
from typing import Any, final, override

from django.core.files.storage import FileSystemStorage

logger = logging.getLogger(__name__)


@final
class LocalFileStorage(FileSystemStorage):
    """FileSystemStorage that also manages folder directories.

    Writes and deletes are logged with their storage paths. The
    ``rollback_*`` methods undo a write whose database row was never
    committed and never raise.
    """

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Write content under ``MEDIA_ROOT``, creating parent directories.

        When ``name`` is taken, the parent class picks a free name by
        appending a random suffix.

        Args:
            name: Storage path requested for the file.
            content: File-like object to write.
            max_length: Optional maximum length for the stored name.

        Returns:
            Storage path actually written.

        Raises:
            OSError: If the directory or the file cannot be written.
        """
        try:
            saved_name = super().save(name, content, max_length)
        except OSError:
            logger.exception('Failed to write file to disk: %s', name)
            raise
        logger.info('Wrote file to disk: %s', saved_name)
        return saved_name

    @override
    def delete(self, name: str) -> None:
        """Remove a file from disk.

        A file that is already gone is not an error.

        Args:
            name: Storage path of the file.

        Raises:
            OSError: If the file exists but cannot be removed.
        """
        try:
            super().delete(name)
        except OSError:
            logger.exception('Failed to remove file from disk: %s', name)
            raise
        logger.info('Removed file from disk: %s', name)

    def rollback_upload(self, name: str) -> None:
        """Remove a file whose database row was not created.

        Args:
            name: Storage path of the written file.
        """
        logger.warning('Rolling back upload, removing file: %s', name)
        try:
            self.delete(name)
        except OSError:
            logger.exception('Upload rollback left an orphaned file: %s', name)

    def make_directory(self, name: str) -> Path:
        """Create a directory (and parents), tolerating existing ones.

        Args:
            name: Storage path of the directory.

        Returns:
            Absolute path of the directory.
        """
        directory = Path(self.path(name))
        directory.mkdir(parents=True, exist_ok=True)
        logger.debug('Directory ready: %s', name)
        return directory

    def remove_directory(self, name: str) -> None:
        """Remove a directory tree, tolerating a missing directory.

        Args:
            name: Storage path of the directory.

        Raises:
            OSError: If removal fails.
        """
        directory = Path(self.path(name))
        if not directory.exists():
            logger.debug('Directory already absent: %s', name)
            return

        logger.info('Removing directory from storage: %s', name)
        shutil.rmtree(directory)

    def rollback_directory(self, name: str) -> None:
        """Remove a directory whose database row was not created.

        Args:
            name: Storage path of the created directory.
        """
        logger.warning('Rolling back folder, removing directory: %s', name)
        try:
            self.remove_directory(name)
        except OSError:
            logger.exception(
                'Folder rollback left an orphaned directory: %s',
                name,
            )
