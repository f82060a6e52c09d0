"""Management command to clean up expired shares."""

import logging
from datetime import timedelta
from typing import Any, Final

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from server.apps.files.logic.share_operations import (
    expired_shares_before,
    purge_expired_shares,
)

_DEFAULT_BATCH_SIZE: Final = 1000

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Delete shares that expired more than SHARE_RETENTION_DAYS ago."""

    help = 'Clean up shares that expired long ago'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=(
                'Max shares of each kind to process '
                f'(default: {_DEFAULT_BATCH_SIZE})'
            ),
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the cleanup command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        batch_size = options['batch_size']
        retention_days = settings.SHARE_RETENTION_DAYS

        cutoff = timezone.now() - timedelta(days=retention_days)

        self.stdout.write(
            f'Looking for shares expired before {cutoff} '
            f'(older than {retention_days} days)',
        )

        if not dry_run:
            count = purge_expired_shares(cutoff, batch_size)
            logger.info('Cleanup removed %d expired shares', count)
            self.stdout.write(
                self.style.SUCCESS(f'Purged {count} expired shares'),
            )
            return

        file_shares, folder_shares = expired_shares_before(cutoff, batch_size)
        for file_share in file_shares:
            self.stdout.write(
                f'Would delete: file share {file_share.external_link} '
                f'(file: {file_share.file_id}, '
                f'expired: {file_share.expires_at})',
            )
        for folder_share in folder_shares:
            self.stdout.write(
                f'Would delete: folder share {folder_share.external_link} '
                f'(folder: {folder_share.folder_id}, '
                f'expired: {folder_share.expires_at})',
            )

        count = len(file_shares) + len(folder_shares)
        self.stdout.write(
            self.style.SUCCESS(f'Would purge {count} expired shares'),
        )
