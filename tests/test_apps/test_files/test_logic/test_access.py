"""Tests for file and folder authorization rules."""

from datetime import timedelta

import pytest
from django.utils import timezone

from server.apps.files.exceptions import AccessDeniedError, NotFoundError
from server.apps.files.logic.access import (
    active_shares_q,
    can_read_file,
    can_read_folder,
    can_write_folder,
    get_owned_file,
    get_readable_file,
    get_writable_folder,
    is_share_active,
)
from server.apps.files.models import Permission, SharedFile, SharedFolder


def _share_folder(folder, recipient, permission=Permission.READ, **kwargs):
    return SharedFolder.objects.create(
        folder=folder,
        shared_with=recipient,
        permission=permission,
        external_link=f'folder-{folder.pk}-{recipient.pk}-{permission}',
        **kwargs,
    )


def _share_file(file_instance, recipient, **kwargs):
    return SharedFile.objects.create(
        file=file_instance,
        shared_with=recipient,
        permission=Permission.READ,
        external_link=f'file-{file_instance.pk}-{recipient.pk}',
        **kwargs,
    )


@pytest.mark.django_db
def test_owner_can_read_and_write(user, make_folder_record, make_file_record):
    """Test ownership grants every access."""
    folder = make_folder_record(user)
    file_instance = make_file_record(user, folder=folder)

    assert can_read_folder(user, folder)
    assert can_write_folder(user, folder)
    assert can_read_file(user, file_instance)


@pytest.mark.django_db
def test_stranger_has_no_access(
    user,
    other_user,
    make_folder_record,
    make_file_record,
):
    """Test users see nothing of others without shares."""
    folder = make_folder_record(other_user)
    file_instance = make_file_record(other_user, folder=folder)

    assert not can_read_folder(user, folder)
    assert not can_write_folder(user, folder)
    assert not can_read_file(user, file_instance)


@pytest.mark.django_db
def test_folder_share_is_inherited(
    user,
    other_user,
    make_folder_record,
    make_file_record,
):
    """Test a folder share extends to nested folders and their files."""
    top = make_folder_record(other_user, 'top')
    middle = make_folder_record(other_user, 'middle', parent=top)
    bottom = make_folder_record(other_user, 'bottom', parent=middle)
    deep_file = make_file_record(other_user, folder=bottom)
    _share_folder(top, user)

    assert can_read_folder(user, bottom)
    assert can_read_file(user, deep_file)
    assert not can_write_folder(user, bottom)


@pytest.mark.django_db
def test_share_does_not_reach_upwards(user, other_user, make_folder_record):
    """Test sharing a subfolder does not expose its parent."""
    top = make_folder_record(other_user, 'top')
    child = make_folder_record(other_user, 'child', parent=top)
    _share_folder(child, user)

    assert can_read_folder(user, child)
    assert not can_read_folder(user, top)


@pytest.mark.django_db
def test_write_share_allows_writing(user, other_user, make_folder_record):
    """Test write shares allow writes into nested folders."""
    top = make_folder_record(other_user, 'top')
    child = make_folder_record(other_user, 'child', parent=top)
    _share_folder(top, user, Permission.WRITE)

    assert can_write_folder(user, child)
    assert get_writable_folder(user, child.pk) == child


@pytest.mark.django_db
def test_expired_share_is_ignored(user, other_user, make_folder_record):
    """Test shares stop granting access once expired."""
    folder = make_folder_record(other_user)
    expired_at = timezone.now() - timedelta(seconds=1)
    _share_folder(folder, user, expires_at=expired_at)

    assert not can_read_folder(user, folder)


@pytest.mark.django_db
def test_future_expiry_share_is_active(user, other_user, make_file_record):
    """Test shares with a future expiry grant access."""
    file_instance = make_file_record(other_user)
    expires_at = timezone.now() + timedelta(days=1)
    _share_file(file_instance, user, expires_at=expires_at)

    assert can_read_file(user, file_instance)
    assert get_readable_file(user, file_instance.pk) == file_instance


@pytest.mark.django_db
def test_file_share_does_not_allow_modification(
    user,
    other_user,
    make_file_record,
):
    """Test recipients of a file share cannot act as owner."""
    file_instance = make_file_record(other_user)
    _share_file(file_instance, user)

    with pytest.raises(AccessDeniedError):
        get_owned_file(user, file_instance.pk)


@pytest.mark.django_db
def test_readable_file_not_found(user):
    """Test missing files raise not found before any access check."""
    with pytest.raises(NotFoundError):
        get_readable_file(user, 99999)


@pytest.mark.django_db
def test_denied_access_is_logged(user, other_user, make_file_record, caplog):
    """Test access denials are logged as warnings."""
    file_instance = make_file_record(other_user)

    with pytest.raises(AccessDeniedError):
        get_readable_file(user, file_instance.pk)

    assert 'Access denied' in caplog.text


@pytest.mark.django_db
class TestShareActivity:
    """Tests for share expiry evaluation."""

    def test_never_expiring_share_is_active(
        self,
        user,
        other_user,
        make_file_record,
    ):
        """Test shares without expiry stay active."""
        share = _share_file(make_file_record(user), other_user)

        assert is_share_active(share)
        assert SharedFile.objects.filter(active_shares_q()).count() == 1

    def test_expired_share_is_inactive(
        self,
        user,
        other_user,
        make_file_record,
    ):
        """Test shares expired a moment ago are inactive."""
        share = _share_file(
            make_file_record(user),
            other_user,
            expires_at=timezone.now() - timedelta(seconds=1),
        )

        assert not is_share_active(share)
        assert SharedFile.objects.filter(active_shares_q()).count() == 0

    def test_future_share_is_active(
        self,
        user,
        other_user,
        make_folder_record,
    ):
        """Test folder shares expiring later are active."""
        share = _share_folder(
            make_folder_record(user),
            other_user,
            expires_at=timezone.now() + timedelta(minutes=5),
        )

        assert is_share_active(share)

    def test_activity_follows_stored_expiry(
        self,
        user,
        other_user,
        make_file_record,
    ):
        """Test a share becomes inactive once its stored expiry passes."""
        share = _share_file(make_file_record(user), other_user)
        SharedFile.objects.filter(pk=share.pk).update(
            expires_at=timezone.now() - timedelta(minutes=1),
        )

        assert not is_share_active(share)
