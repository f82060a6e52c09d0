"""Tests for cleanup_expired_shares management command."""

from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from server.apps.files.models import Permission, SharedFile, SharedFolder


@pytest.fixture
def expired_shares(user, other_user, make_file_record, make_folder_record):
    """Create shares expired long ago, recently, and never.

    Returns:
        Dict of created shares by age.
    """
    now = timezone.now()
    return {
        'old_file': SharedFile.objects.create(
            file=make_file_record(user, name='old.txt'),
            shared_with=other_user,
            permission=Permission.READ,
            external_link='old-file-link',
            expires_at=now - timedelta(days=45),
        ),
        'old_folder': SharedFolder.objects.create(
            folder=make_folder_record(user, 'old'),
            shared_with=other_user,
            permission=Permission.WRITE,
            external_link='old-folder-link',
            expires_at=now - timedelta(days=31),
        ),
        'recent': SharedFile.objects.create(
            file=make_file_record(user, name='recent.txt'),
            shared_with=other_user,
            permission=Permission.READ,
            external_link='recent-link',
            expires_at=now - timedelta(days=2),
        ),
        'forever': SharedFile.objects.create(
            file=make_file_record(user, name='forever.txt'),
            shared_with=other_user,
            permission=Permission.READ,
            external_link='forever-link',
        ),
    }


@pytest.mark.django_db
class TestCleanupExpiredSharesCommand:
    """Test cleanup_expired_shares management command."""

    def test_purges_shares_past_retention(self, expired_shares, settings):
        """Test shares expired before the retention window are deleted."""
        settings.SHARE_RETENTION_DAYS = 30
        out = StringIO()

        call_command('cleanup_expired_shares', stdout=out)

        assert 'Purged 2 expired shares' in out.getvalue()
        remaining = SharedFile.objects.values_list('external_link', flat=True)
        assert set(remaining) == {'recent-link', 'forever-link'}
        assert SharedFolder.objects.count() == 0

    def test_dry_run_deletes_nothing(self, expired_shares, settings):
        """Test dry run only reports what would be purged."""
        settings.SHARE_RETENTION_DAYS = 30
        out = StringIO()

        call_command('cleanup_expired_shares', '--dry-run', stdout=out)

        output = out.getvalue()
        assert 'Would delete: file share' in output
        assert 'Would delete: folder share' in output
        assert 'Would purge 2 expired shares' in output
        assert SharedFile.objects.count() == 3
        assert SharedFolder.objects.count() == 1

    def test_batch_size_limits_purge(self, expired_shares, settings):
        """Test batch size caps deletions per share kind."""
        settings.SHARE_RETENTION_DAYS = 0
        out = StringIO()

        call_command('cleanup_expired_shares', '--batch-size', '1', stdout=out)

        assert 'Purged 2 expired shares' in out.getvalue()
        assert not SharedFile.objects.filter(
            external_link='old-file-link',
        ).exists()
        assert SharedFile.objects.filter(external_link='recent-link').exists()

    def test_nothing_to_purge(self, db):
        """Test empty database."""
        out = StringIO()

        call_command('cleanup_expired_shares', stdout=out)

        assert 'Purged 0 expired shares' in out.getvalue()
