"""Fixtures shared by every test module."""

import base64
from pathlib import Path

import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile

from server.apps.files.logic.storage_service import StorageService

User = get_user_model()

TEST_PASSWORD = 'testpass123'
ADMIN_PASSWORD = 'adminpass123'


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Point file storage at a per-test directory.

    Returns:
        Path of the storage root.
    """
    root = tmp_path / 'media'
    settings.MEDIA_ROOT = str(root)
    return Path(root)


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        employee_id='E100',
        email='test@example.com',
        password=TEST_PASSWORD,
        name='Test User',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        employee_id='E200',
        email='other@example.com',
        password=TEST_PASSWORD,
        name='Other User',
    )


@pytest.fixture
def admin_user(db):
    """Create administrator.

    Returns:
        Administrator instance.
    """
    return User.objects.create_superuser(
        employee_id='A001',
        email='admin@example.com',
        password=ADMIN_PASSWORD,
        name='Admin',
    )


def _basic_auth(employee_id: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f'{employee_id}:{password}'.encode()).decode()
    return {'HTTP_AUTHORIZATION': f'Basic {token}'}


@pytest.fixture
def make_auth():
    """Factory for HTTP Basic headers with arbitrary credentials.

    Returns:
        Callable building test client headers.
    """
    return _basic_auth


@pytest.fixture
def user_auth(user):
    """Basic auth headers for ``user``."""
    return _basic_auth(user.employee_id, TEST_PASSWORD)


@pytest.fixture
def other_auth(other_user):
    """Basic auth headers for ``other_user``."""
    return _basic_auth(other_user.employee_id, TEST_PASSWORD)


@pytest.fixture
def admin_auth(admin_user):
    """Basic auth headers for ``admin_user``."""
    return _basic_auth(admin_user.employee_id, ADMIN_PASSWORD)


@pytest.fixture
def service():
    """Storage service over the default storage.

    Returns:
        StorageService instance.
    """
    return StorageService()


@pytest.fixture
def make_upload():
    """Factory for uploaded files.

    Returns:
        Callable building a SimpleUploadedFile.
    """
    def factory(
        name='test.txt',
        content=b'test file content',
        content_type='text/plain',
    ):
        return SimpleUploadedFile(name, content, content_type=content_type)

    return factory
