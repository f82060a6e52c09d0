"""Database models for files app."""

from typing import Final, final, override

from django.conf import settings
from django.db import models
from django.db.models import Q

# Constants for field max lengths
NAME_MAX_LENGTH: Final = 255
_PATH_MAX_LENGTH: Final = 1024
_MIME_TYPE_MAX_LENGTH: Final = 255
_CHECKSUM_MAX_LENGTH: Final = 64  # SHA256 hex length
_PERMISSION_MAX_LENGTH: Final = 8

# Length of external share link tokens
SHARE_LINK_LENGTH: Final = 32


@final
class Folder(models.Model):
    """Folder owned by a user.

    Folders form a tree through ``parent``. Each folder has its own
    directory in storage, nested inside its parent's directory:
    {user_id}/{folder-dir}/{subfolder-dir}
    """

    name = models.CharField(max_length=NAME_MAX_LENGTH)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='folders',
        db_index=True,
    )

    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        related_name='subfolders',
        null=True,
        blank=True,
    )

    path = models.CharField(
        max_length=_PATH_MAX_LENGTH,
        unique=True,
        help_text='Directory in storage: {user_id}/folder-dir',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]
        ordering = ['-updated_at']

        indexes = [
            # Optimize directory listing queries
            models.Index(
                fields=['owner', 'parent'],
                name='folders_owner_parent_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner}:{self.name}'

    def ancestors(self) -> list['Folder']:
        """Return parent chain from the direct parent up to the root.

        Returns:
            List of ancestor folders, nearest first.
        """
        chain: list[Folder] = []
        current = self.parent
        while current is not None:
            chain.append(current)
            current = current.parent
        return chain


@final
class File(models.Model):
    """File stored on the local filesystem.

    ``file.name`` is the path relative to the storage root:
    {user_id}/[folder dirs]/{timestamp}-{filename}
    """

    name = models.CharField(
        max_length=NAME_MAX_LENGTH,
        help_text='Sanitized display name',
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='files',
        db_index=True,
    )

    folder = models.ForeignKey(
        Folder,
        on_delete=models.CASCADE,
        related_name='files',
        null=True,
        blank=True,
    )

    # upload_to='' means we control the full path
    file = models.FileField(
        upload_to='',
        max_length=_PATH_MAX_LENGTH,
        help_text='Path in storage: {user_id}/folder-dir/file.ext',
    )

    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    mime_type = models.CharField(
        max_length=_MIME_TYPE_MAX_LENGTH,
        default='application/octet-stream',
    )

    checksum_sha256 = models.CharField(
        max_length=_CHECKSUM_MAX_LENGTH,
        blank=True,
        default='',
        help_text='SHA256 hash for integrity verification',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_accessed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering = ['-updated_at']

        indexes = [
            # Optimize directory listing queries
            models.Index(
                fields=['owner', 'folder'],
                name='files_owner_folder_idx',
            ),
            # Optimize recent files queries
            models.Index(
                fields=['owner', '-created_at'],
                name='files_owner_recent_idx',
            ),
        ]

        constraints = [
            models.CheckConstraint(
                condition=Q(size_bytes__gt=0),
                name='size_bytes_positive',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner}:{self.file.name}'


class Permission(models.TextChoices):
    """Access level granted by a share."""

    READ = 'read', 'Read'
    WRITE = 'write', 'Write'


class ShareQuerySet(models.QuerySet):
    """QuerySet for share models."""

    def writable(self) -> 'ShareQuerySet':
        """Shares granting write permission."""
        return self.filter(permission=Permission.WRITE)


class Share(models.Model):
    """Fields shared by file and folder shares.

    Whether a share is active is decided by ``files.logic.access``.
    """

    shared_with = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='%(class)ss_received',
    )

    permission = models.CharField(
        max_length=_PERMISSION_MAX_LENGTH,
        choices=Permission.choices,
        default=Permission.READ,
    )

    external_link = models.CharField(
        max_length=SHARE_LINK_LENGTH,
        unique=True,
        help_text='Unguessable token for link access',
    )

    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text='Empty: never expires',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    objects = ShareQuerySet.as_manager()

    class Meta:
        """Model metadata."""

        abstract = True


@final
class SharedFile(Share):
    """File shared with another user."""

    file = models.ForeignKey(
        File,
        on_delete=models.CASCADE,
        related_name='shares',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'Shared File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Shared Files'  # type: ignore[mutable-override]
        ordering = ['-created_at']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.file.name} -> {self.shared_with} ({self.permission})'


@final
class SharedFolder(Share):
    """Folder shared with another user."""

    folder = models.ForeignKey(
        Folder,
        on_delete=models.CASCADE,
        related_name='shares',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'Shared Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Shared Folders'  # type: ignore[mutable-override]
        ordering = ['-created_at']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.folder.name} -> {self.shared_with} ({self.permission})'
