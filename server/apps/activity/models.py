"""Database models for activity app."""

from typing import Final, final, override

from django.conf import settings
from django.db import models

_ACTION_MAX_LENGTH: Final = 16
_DETAILS_MAX_LENGTH: Final = 1024


class Action(models.TextChoices):
    """Kinds of file activity that are recorded."""

    UPLOAD = 'upload', 'Upload'
    DOWNLOAD = 'download', 'Download'
    SHARE = 'share', 'Share'
    DELETE = 'delete', 'Delete'


@final
class Activity(models.Model):
    """Single file action performed by a user.

    ``file`` is cleared when the file is deleted, so delete records keep
    the file description in ``details`` instead.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='activities',
    )

    file = models.ForeignKey(
        'files.File',
        on_delete=models.SET_NULL,
        related_name='activities',
        null=True,
        blank=True,
    )

    # Kept after the file row is gone
    file_reference = models.BigIntegerField(null=True, blank=True)

    action = models.CharField(
        max_length=_ACTION_MAX_LENGTH,
        choices=Action.choices,
    )

    ip_address = models.GenericIPAddressField(default='0.0.0.0')  # noqa: S104

    details = models.CharField(
        max_length=_DETAILS_MAX_LENGTH,
        blank=True,
        default='',
    )

    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Activity'  # type: ignore[mutable-override]
        verbose_name_plural = 'Activities'  # type: ignore[mutable-override]
        ordering = ['-timestamp']

        indexes = [
            models.Index(
                fields=['user', '-timestamp'],
                name='activity_user_recent_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user} {self.action} at {self.timestamp}'
