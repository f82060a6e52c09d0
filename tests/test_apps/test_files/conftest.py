"""Shared fixtures for files app tests."""

import pytest

from server.apps.files.infrastructure.storage import LocalFileStorage
from server.apps.files.models import File, Folder


@pytest.fixture
def make_file_record():
    """Factory for File rows without bytes on disk.

    Returns:
        Callable creating a File.
    """
    def factory(owner, size_bytes=100, name='record.txt', folder=None):
        return File.objects.create(
            name=name,
            owner=owner,
            folder=folder,
            file=f'{owner.pk}/{name}',
            size_bytes=size_bytes,
            mime_type='text/plain',
        )

    return factory


@pytest.fixture
def make_folder_record():
    """Factory for Folder rows without a directory on disk.

    Returns:
        Callable creating a Folder.
    """
    def factory(owner, name='folder', parent=None):
        base = parent.path if parent else str(owner.pk)
        return Folder.objects.create(
            name=name,
            owner=owner,
            parent=parent,
            path=f'{base}/{name}-{Folder.objects.count()}',
        )

    return factory


@pytest.fixture
def local_storage():
    """Storage instance separate from the default one, safe to patch.

    Returns:
        LocalFileStorage rooted at MEDIA_ROOT.
    """
    return LocalFileStorage()
