"""Tests for files app models."""

import pytest
from django.db import IntegrityError

from server.apps.files.models import File, Permission, SharedFolder


@pytest.mark.django_db
def test_file_size_must_be_positive(user):
    """Test the database rejects empty files."""
    with pytest.raises(IntegrityError):
        File.objects.create(
            name='empty.txt',
            owner=user,
            file=f'{user.pk}/empty.txt',
            size_bytes=0,
        )


@pytest.mark.django_db
def test_folder_ancestors(user, make_folder_record):
    """Test ancestors run from the direct parent to the top."""
    top = make_folder_record(user, 'top')
    middle = make_folder_record(user, 'middle', parent=top)
    bottom = make_folder_record(user, 'bottom', parent=middle)

    assert bottom.ancestors() == [middle, top]
    assert top.ancestors() == []


@pytest.mark.django_db
def test_writable_shares(user, other_user, make_folder_record):
    """Test only write shares are writable."""
    for permission in Permission.values:
        SharedFolder.objects.create(
            folder=make_folder_record(user, permission),
            shared_with=other_user,
            permission=permission,
            external_link=f'link-{permission}',
        )

    writable = SharedFolder.objects.writable()

    assert [share.permission for share in writable] == [Permission.WRITE]
