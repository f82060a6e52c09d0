"""Storage service: files and folders on disk with metadata in the database.

Transaction safety: bytes are written to storage first, then the database
row is created inside ``transaction.atomic()``. If the database step fails,
the written bytes are removed (best effort) and ``PersistenceError`` is
raised with the original error as its cause.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Final, final

from django.core.files.storage import default_storage
from django.db import DatabaseError, transaction
from django.db.models import Count, QuerySet
from django.utils import timezone

from server.apps.activity.logic.activity_operations import (
    describe_file,
    record_activity,
)
from server.apps.activity.models import Action
from server.apps.files.exceptions import (
    InvalidOperationError,
    NotFoundError,
    PersistenceError,
    StorageError,
    StorageIOError,
)
from server.apps.files.infrastructure.metadata import (
    build_stored_filename,
    calculate_checksum,
    detect_mime_type,
    format_bytes,
    format_relative_date,
    get_file_size,
    sanitize_filename,
)
from server.apps.files.logic.access import (
    get_any_file,
    get_owned_file,
    get_owned_folder,
    get_readable_file,
    get_readable_folder,
    get_writable_folder,
    visible_root_files_q,
    visible_root_folders_q,
)
from server.apps.files.logic.paths import PathResolver, join_storage_path
from server.apps.files.logic.quota_operations import check_quota
from server.apps.files.models import NAME_MAX_LENGTH, File, Folder

if TYPE_CHECKING:
    from server.apps.files.infrastructure.storage import LocalFileStorage

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)

# Characters of an over-long name quoted in errors
_NAME_PREVIEW: Final = 32


@dataclass(frozen=True, slots=True)
class UploadFailure:
    """File from a batch that could not be stored."""

    name: str
    error: StorageError

    @property
    def reason(self) -> str:
        """Machine-readable failure reason."""
        return self.error.reason

    @property
    def message(self) -> str:
        """Human-readable failure message."""
        return str(self.error)


@dataclass(slots=True)
class BatchUploadResult:
    """Outcome of a multi-file upload."""

    uploaded: list[File] = field(default_factory=list)
    failures: list[UploadFailure] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ListedFile:
    """File entry of a folder listing."""

    file: File
    updated_label: str
    size_label: str


@dataclass(frozen=True, slots=True)
class ListedFolder:
    """Folder entry of a folder listing."""

    folder: Folder
    updated_label: str
    file_count: int
    subfolder_count: int


@dataclass(frozen=True, slots=True)
class FolderContents:
    """Direct children of a folder, or of a user's root."""

    folder: Folder | None
    files: list[ListedFile]
    folders: list[ListedFolder]


@final
class StorageService:
    """Create, list, download and delete files and folders."""

    def __init__(
        self,
        storage: 'LocalFileStorage | None' = None,
        resolver: PathResolver | None = None,
    ) -> None:
        """Initialize service.

        Args:
            storage: Storage backend, default storage when omitted.
            resolver: Path resolver, one over ``storage`` when omitted.
        """
        self._storage = storage or default_storage
        self._resolver = resolver or PathResolver(self._storage)

    def ensure_user_root(self, user: _User) -> Path:
        """Create the user's root directory if it is missing.

        Args:
            user: Owner of the directory.

        Returns:
            Absolute path of the root directory.

        Raises:
            NotFoundError: If the user doesn't exist.
            StorageIOError: If the directory cannot be created.
        """
        root = self._resolver.resolve(user.pk)
        try:
            self._storage.make_directory(root)
        except OSError as error:
            logger.exception('Failed to create root for user %s', user.pk)
            raise StorageIOError('Failed to create user directory') from error
        return self._resolver.absolute(root)

    def upload_file(
        self,
        user: _User,
        file_obj: IO[bytes] | Any,
        folder_id: int | None = None,
        ip_address: str | None = None,
    ) -> File:
        """Store an uploaded file and create its database record.

        Args:
            user: Uploading user, charged for the bytes.
            file_obj: Uploaded file with a ``name``.
            folder_id: Target folder, user's root when omitted.
            ip_address: Client IP for the activity log.

        Returns:
            Created File instance.

        Raises:
            InvalidOperationError: If the file is empty, or its name is missing
                or too long.
            NotFoundError: If the folder doesn't exist.
            AccessDeniedError: If user cannot write into the folder.
            QuotaExceededError: If the upload would exceed the quota.
            StorageIOError: If writing to disk fails.
            PersistenceError: If the database record cannot be created.
        """
        uploaded_name = getattr(file_obj, 'name', None) or ''
        display_name = sanitize_filename(Path(uploaded_name).name)
        if not display_name:
            raise InvalidOperationError('File name is required')
        if len(display_name) > NAME_MAX_LENGTH:
            raise InvalidOperationError(
                f'File name is too long: {display_name[:_NAME_PREVIEW]}...',
            )

        file_size = get_file_size(file_obj)
        if file_size <= 0:
            raise InvalidOperationError(f'File is empty: {display_name}')

        if folder_id is not None:
            get_writable_folder(user, folder_id)

        check_quota(user, file_size)

        directory = self._resolver.resolve(user.pk, folder_id)
        storage_path = join_storage_path(
            directory,
            build_stored_filename(display_name),
        )

        logger.info('Calculating metadata for file: %s', storage_path)
        checksum = calculate_checksum(file_obj)
        mime_type = detect_mime_type(
            display_name,
            getattr(file_obj, 'content_type', None),
        )

        # Step 1: Write bytes to storage first
        try:
            saved_name = self._storage.save(storage_path, file_obj)
        except OSError as error:
            raise StorageIOError(
                f'Failed to write file: {display_name}',
            ) from error

        # Step 2: Create database record (in transaction)
        try:
            with transaction.atomic():
                file_instance = File.objects.create(
                    name=display_name,
                    owner=user,
                    folder_id=folder_id,
                    file=saved_name,
                    size_bytes=file_size,
                    mime_type=mime_type,
                    checksum_sha256=checksum,
                )
        except DatabaseError as error:
            logger.exception(
                'Database transaction failed, rolling back storage upload: %s',
                saved_name,
            )
            self._storage.rollback_upload(saved_name)
            raise PersistenceError(
                f'Failed to save file record: {display_name}',
            ) from error

        logger.info(
            'File uploaded by user %s: %s (ID: %d, %d bytes)',
            user.pk,
            saved_name,
            file_instance.pk,
            file_size,
        )
        record_activity(
            user,
            Action.UPLOAD,
            file=file_instance,
            ip_address=ip_address,
        )
        return file_instance

    def upload_files(
        self,
        user: _User,
        file_objs: Iterable[Any],
        folder_id: int | None = None,
        ip_address: str | None = None,
    ) -> BatchUploadResult:
        """Upload several files, isolating failures per file.

        Args:
            user: Uploading user.
            file_objs: Uploaded files.
            folder_id: Target folder, user's root when omitted.
            ip_address: Client IP for the activity log.

        Returns:
            BatchUploadResult with stored files and per-file failures.
        """
        result = BatchUploadResult()
        for file_obj in file_objs:
            try:
                result.uploaded.append(
                    self.upload_file(user, file_obj, folder_id, ip_address),
                )
            except StorageError as error:
                name = getattr(file_obj, 'name', '') or ''
                logger.warning('Upload of %s failed: %s', name, error)
                result.failures.append(UploadFailure(name=name, error=error))
        return result

    def create_folder(
        self,
        user: _User,
        name: str,
        parent_id: int | None = None,
    ) -> Folder:
        """Create a folder with its directory.

        Args:
            user: Owner of the new folder.
            name: Folder display name.
            parent_id: Parent folder, user's root when omitted.

        Returns:
            Created Folder instance.

        Raises:
            InvalidOperationError: If name is blank or too long.
            NotFoundError: If the parent doesn't exist.
            AccessDeniedError: If user cannot write into the parent.
            StorageIOError: If the directory cannot be created.
            PersistenceError: If the database record cannot be created.
        """
        folder_name = (name or '').strip()
        if not folder_name:
            raise InvalidOperationError('Folder name is required')
        if len(folder_name) > NAME_MAX_LENGTH:
            raise InvalidOperationError(
                f'Folder name is too long: {folder_name[:_NAME_PREVIEW]}...',
            )

        if parent_id is not None:
            get_writable_folder(user, parent_id)

        directory = self._resolver.new_folder_directory(
            user.pk,
            folder_name,
            parent_id,
        )

        try:
            self._storage.make_directory(directory)
        except OSError as error:
            logger.exception('Failed to create directory: %s', directory)
            raise StorageIOError(
                f'Failed to create folder: {folder_name}',
            ) from error

        try:
            with transaction.atomic():
                folder = Folder.objects.create(
                    name=folder_name,
                    owner=user,
                    parent_id=parent_id,
                    path=directory,
                )
        except DatabaseError as error:
            logger.exception(
                'Database transaction failed, rolling back directory: %s',
                directory,
            )
            self._storage.rollback_directory(directory)
            raise PersistenceError(
                f'Failed to save folder record: {folder_name}',
            ) from error

        logger.info(
            'Folder created by user %s: %s (ID: %d)',
            user.pk,
            directory,
            folder.pk,
        )
        return folder

    def list_folder_contents(
        self,
        user: _User,
        folder_id: int | None = None,
    ) -> FolderContents:
        """List direct children of a folder, most recently updated first.

        Without a folder, lists root items the user owns or has been
        directly granted through an active share.

        Args:
            user: User listing the folder.
            folder_id: Folder to list, user's root when omitted.

        Returns:
            FolderContents with display labels.

        Raises:
            NotFoundError: If the folder doesn't exist.
            AccessDeniedError: If user cannot read the folder.
        """
        folder: Folder | None = None
        files: QuerySet[File]
        folders: QuerySet[Folder]

        if folder_id is not None:
            folder = get_readable_folder(user, folder_id)
            files = File.objects.filter(folder=folder)
            folders = Folder.objects.filter(parent=folder)
        else:
            files = File.objects.filter(
                visible_root_files_q(user),
                folder__isnull=True,
            )
            folders = Folder.objects.filter(
                visible_root_folders_q(user),
                parent__isnull=True,
            )

        folders = folders.annotate(
            file_count=Count('files', distinct=True),
            subfolder_count=Count('subfolders', distinct=True),
        )

        now = timezone.now()
        return FolderContents(
            folder=folder,
            files=[
                ListedFile(
                    file=file_instance,
                    updated_label=format_relative_date(
                        file_instance.updated_at,
                        now,
                    ),
                    size_label=format_bytes(file_instance.size_bytes),
                )
                for file_instance in files.order_by('-updated_at')
            ],
            folders=[
                ListedFolder(
                    folder=child,
                    updated_label=format_relative_date(child.updated_at, now),
                    file_count=child.file_count,
                    subfolder_count=child.subfolder_count,
                )
                for child in folders.order_by('-updated_at')
            ],
        )

    def open_file(
        self,
        user: _User,
        file_id: int,
        ip_address: str | None = None,
    ) -> tuple[File, IO[bytes]]:
        """Open a file for download.

        Args:
            user: User downloading the file.
            file_id: ID of file to download.
            ip_address: Client IP for the activity log.

        Returns:
            File instance and an open binary handle; caller closes it.

        Raises:
            NotFoundError: If the file or its bytes don't exist.
            AccessDeniedError: If user cannot read the file.
            StorageIOError: If the bytes cannot be read.
        """
        file_instance = get_readable_file(user, file_id)

        try:
            handle = self._storage.open(file_instance.file.name, 'rb')
        except FileNotFoundError as error:
            logger.error(
                'File %d has no bytes in storage: %s',
                file_id,
                file_instance.file.name,
            )
            raise NotFoundError('File content not found') from error
        except OSError as error:
            raise StorageIOError('Failed to read file') from error

        accessed_at = timezone.now()
        # update() leaves updated_at untouched
        File.objects.filter(pk=file_instance.pk).update(
            last_accessed_at=accessed_at,
        )
        file_instance.last_accessed_at = accessed_at

        record_activity(
            user,
            Action.DOWNLOAD,
            file=file_instance,
            ip_address=ip_address,
        )
        return file_instance, handle

    def delete_file(
        self,
        user: _User,
        file_id: int,
        ip_address: str | None = None,
        *,
        as_admin: bool = False,
    ) -> None:
        """Delete a file from disk, then its database record.

        A file already missing from disk is treated as deleted.

        Args:
            user: Owner of the file, or an administrator.
            file_id: ID of file to delete.
            ip_address: Client IP for the activity log.
            as_admin: Skip the ownership check for administrators.

        Raises:
            NotFoundError: If the file doesn't exist.
            AccessDeniedError: If user doesn't own the file.
            StorageIOError: If removing the bytes fails; the record is kept.
            PersistenceError: If removing the record fails.
        """
        if as_admin and user.is_admin:
            file_instance = get_any_file(file_id)
        else:
            file_instance = get_owned_file(user, file_id)

        storage_name = file_instance.file.name
        details = describe_file(file_instance)

        try:
            self._storage.delete(storage_name)
        except OSError as error:
            raise StorageIOError(
                f'Failed to delete file: {file_instance.name}',
            ) from error

        try:
            with transaction.atomic():
                file_instance.delete()
        except DatabaseError as error:
            logger.exception('Failed to delete file record: ID=%d', file_id)
            raise PersistenceError('Failed to delete file record') from error

        logger.info('File deleted by user %s: %s', user.pk, storage_name)
        record_activity(
            user,
            Action.DELETE,
            ip_address=ip_address,
            details=details,
            file_reference=file_id,
        )

    def delete_folder(self, user: _User, folder_id: int) -> None:
        """Delete a folder with everything beneath it.

        Files are removed one by one and failures are logged and skipped,
        then subfolders recursively, then the directory tree, then the
        folder record.

        Args:
            user: Owner of the folder.
            folder_id: ID of folder to delete.

        Raises:
            NotFoundError: If the folder doesn't exist.
            AccessDeniedError: If user doesn't own the folder.
            StorageIOError: If the directory tree cannot be removed.
            PersistenceError: If the folder record cannot be removed.
        """
        folder = get_owned_folder(user, folder_id)
        logger.info('Deleting folder tree: %s (ID: %d)', folder.path, folder_id)
        self._delete_tree(folder)

    def _delete_tree(self, folder: Folder) -> None:
        for file_instance in folder.files.all():
            self._delete_file_best_effort(file_instance)

        for child in folder.subfolders.all():
            self._delete_tree(child)

        try:
            self._storage.remove_directory(folder.path)
        except OSError as error:
            logger.exception('Failed to remove directory: %s', folder.path)
            raise StorageIOError(
                f'Failed to delete folder: {folder.name}',
            ) from error

        try:
            with transaction.atomic():
                folder.delete()
        except DatabaseError as error:
            logger.exception('Failed to delete folder record: %s', folder.path)
            raise PersistenceError('Failed to delete folder record') from error

        logger.info('Folder deleted: %s', folder.path)

    def _delete_file_best_effort(self, file_instance: File) -> None:
        storage_name = file_instance.file.name
        try:
            self._storage.delete(storage_name)
            with transaction.atomic():
                file_instance.delete()
        except (OSError, DatabaseError):
            logger.exception(
                'Skipping file during folder delete: %s',
                storage_name,
            )

