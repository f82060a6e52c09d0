"""Tests for user administration business logic."""

import pytest

from server.apps.accounts.logic.user_operations import (
    delete_user,
    get_user,
    list_users_with_usage,
    register_user,
    reset_password,
)
from server.apps.accounts.models import User
from server.apps.files.exceptions import InvalidOperationError, NotFoundError
from server.apps.files.models import File


@pytest.mark.django_db
class TestRegisterUser:
    """Tests for registration."""

    def test_register(self):
        """Test a new user can log in with the given password."""
        user = register_user('E300', 'new@example.com', 'secret', 'New User')

        assert user.employee_id == 'E300'
        assert user.name == 'New User'
        assert user.check_password('secret')
        assert user.storage_quota is None
        assert not user.is_admin

    @pytest.mark.parametrize(
        'field',
        ['employee_id', 'email', 'password', 'name'],
    )
    def test_missing_field(self, field):
        """Test every field is required."""
        fields = {
            'employee_id': 'E300',
            'email': 'new@example.com',
            'password': 'secret',
            'name': 'New User',
        }
        fields[field] = ''

        with pytest.raises(InvalidOperationError, match='required'):
            register_user(**fields)

    def test_duplicate_employee_id(self, user):
        """Test employee IDs are unique."""
        with pytest.raises(InvalidOperationError, match='Employee ID'):
            register_user(user.employee_id, 'x@example.com', 'pw', 'X')

    def test_duplicate_email_ignores_case(self, user):
        """Test emails are unique regardless of case."""
        with pytest.raises(InvalidOperationError, match='Email'):
            register_user('E999', 'TEST@example.com', 'pw', 'X')


@pytest.mark.django_db
def test_get_user(user):
    """Test lookup by primary key."""
    assert get_user(user.pk) == user


@pytest.mark.django_db
def test_get_missing_user():
    """Test lookup of a missing user."""
    with pytest.raises(NotFoundError, match='User not found'):
        get_user(99999)


@pytest.mark.django_db
def test_reset_password(user):
    """Test password reset and forced change flag."""
    reset_password(user, 'new-secret', force_change=True)

    user.refresh_from_db()
    assert user.check_password('new-secret')
    assert user.force_password_change


@pytest.mark.django_db
def test_reset_password_requires_value(user):
    """Test empty passwords are rejected."""
    with pytest.raises(InvalidOperationError):
        reset_password(user, '')


@pytest.mark.django_db
def test_delete_user_removes_files(
    user,
    admin_user,
    service,
    make_upload,
    media_root,
    django_capture_on_commit_callbacks,
):
    """Test deleting a user removes their files and storage root."""
    uploaded = service.upload_file(user, make_upload())

    with django_capture_on_commit_callbacks(execute=True):
        delete_user(admin_user, user)

    assert not User.objects.filter(pk=user.pk).exists()
    assert not File.objects.filter(pk=uploaded.pk).exists()
    assert not (media_root / str(user.pk)).exists()


@pytest.mark.django_db
def test_admin_cannot_delete_self(admin_user):
    """Test administrators cannot delete their own account."""
    with pytest.raises(InvalidOperationError):
        delete_user(admin_user, admin_user)

    assert User.objects.filter(pk=admin_user.pk).exists()


@pytest.mark.django_db
def test_list_users_with_usage(user, other_user, make_upload, service):
    """Test users are annotated with file count and usage."""
    service.upload_file(user, make_upload('a.txt', b'x' * 10))
    service.upload_file(user, make_upload('b.txt', b'x' * 5))

    rows = {row.pk: row for row in list_users_with_usage()}

    assert rows[user.pk].file_count == 2
    assert rows[user.pk].used_bytes == 15
    assert rows[other_user.pk].file_count == 0
    assert rows[other_user.pk].used_bytes is None
