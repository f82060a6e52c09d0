"""Business logic for user administration."""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, QuerySet, Sum

from server.apps.accounts.models import User
from server.apps.files.exceptions import (
    InvalidOperationError,
    NotFoundError,
    PersistenceError,
)

logger = logging.getLogger(__name__)


def get_user(user_id: int) -> User:
    """Get user by ID.

    Args:
        user_id: Primary key of the user.

    Returns:
        User instance.

    Raises:
        NotFoundError: If user doesn't exist.
    """
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist as error:
        raise NotFoundError('User not found') from error


def register_user(
    employee_id: str,
    email: str,
    password: str,
    name: str,
) -> User:
    """Register a new user.

    Args:
        employee_id: Unique employee identifier.
        email: Unique email address.
        password: Raw password.
        name: Display name.

    Returns:
        Created User instance.

    Raises:
        InvalidOperationError: If a field is missing or already registered.
        PersistenceError: If the database insert fails.
    """
    if not all((employee_id, email, password, name)):
        raise InvalidOperationError('All fields are required')

    if User.objects.filter(employee_id=employee_id).exists():
        raise InvalidOperationError('Employee ID already registered')

    if User.objects.filter(email__iexact=email).exists():
        raise InvalidOperationError('Email already registered')

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                employee_id=employee_id,
                email=email,
                password=password,
                name=name,
            )
    except IntegrityError as error:
        logger.exception('Failed to register user: %s', employee_id)
        raise PersistenceError('Registration failed') from error

    logger.info('Registered user %s (ID: %d)', employee_id, user.pk)
    return user


def reset_password(
    user: User,
    password: str,
    *,
    force_change: bool = False,
) -> User:
    """Set a new password for a user (administrator action).

    Args:
        user: User whose password changes.
        password: New raw password.
        force_change: Require the user to change it on next login.

    Returns:
        Updated User instance.

    Raises:
        InvalidOperationError: If password is empty.
    """
    if not password:
        raise InvalidOperationError('Password is required')

    user.set_password(password)
    user.force_password_change = force_change
    user.save(update_fields=['password', 'force_password_change'])

    logger.info(
        'Password reset for user %s (force change: %s)',
        user.employee_id,
        force_change,
    )
    return user


def delete_user(admin: User, user: User) -> None:
    """Delete a user with all owned files, folders and shares.

    On-disk bytes are removed by the files app ``post_delete`` handlers
    once the deletion commits.

    Args:
        admin: Administrator performing the deletion.
        user: User to delete.

    Raises:
        InvalidOperationError: If administrator tries to delete themselves.
    """
    if admin.pk == user.pk:
        raise InvalidOperationError('Cannot delete yourself')

    employee_id = user.employee_id
    with transaction.atomic():
        user.delete()

    logger.info('User %s deleted by %s', employee_id, admin.employee_id)


def list_users_with_usage() -> QuerySet[User]:
    """List all users annotated with file count and used bytes.

    Returns:
        QuerySet of users with ``file_count`` and ``used_bytes``.
    """
    return User.objects.annotate(
        file_count=Count('files'),
        used_bytes=Sum('files__size_bytes'),
    ).order_by('employee_id')
