"""Database models for accounts app."""

from typing import Any, ClassVar, Final, final, override

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models

# Constants for field max lengths
_EMPLOYEE_ID_MAX_LENGTH: Final = 64
_NAME_MAX_LENGTH: Final = 150


class UserManager(BaseUserManager['User']):
    """Manager creating users keyed by employee ID."""

    use_in_migrations = True

    def create_user(
        self,
        employee_id: str,
        email: str,
        password: str | None = None,
        **extra_fields: Any,
    ) -> 'User':
        """Create and save a regular user.

        Args:
            employee_id: Unique employee identifier used to log in.
            email: Unique email address.
            password: Raw password, hashed before saving.
            **extra_fields: Other model fields.

        Returns:
            Created User instance.

        Raises:
            ValueError: If employee ID or email is empty.
        """
        if not employee_id:
            raise ValueError('Employee ID is required')
        if not email:
            raise ValueError('Email is required')

        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)

        user = self.model(
            employee_id=employee_id,
            email=self.normalize_email(email),
            **extra_fields,
        )
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(
        self,
        employee_id: str,
        email: str,
        password: str | None = None,
        **extra_fields: Any,
    ) -> 'User':
        """Create and save an administrator."""
        extra_fields['is_staff'] = True
        extra_fields['is_superuser'] = True
        return self.create_user(employee_id, email, password, **extra_fields)


@final
class User(AbstractUser):
    """Application user identified by employee ID.

    Administrators are users with ``is_staff`` set. ``storage_quota``
    overrides the system-wide default quota when not null.
    """

    username = None  # type: ignore[assignment]
    first_name = None  # type: ignore[assignment]
    last_name = None  # type: ignore[assignment]

    employee_id = models.CharField(
        max_length=_EMPLOYEE_ID_MAX_LENGTH,
        unique=True,
    )

    email = models.EmailField(unique=True)

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Display name',
    )

    storage_quota = models.BigIntegerField(
        null=True,
        blank=True,
        help_text='Storage quota override in bytes (empty: default quota)',
    )

    force_password_change = models.BooleanField(
        default=False,
        help_text='User must change password on next login',
    )

    objects = UserManager()  # type: ignore[misc]

    USERNAME_FIELD = 'employee_id'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS: ClassVar[list[str]] = ['email']

    class Meta:
        """Model metadata."""

        verbose_name = 'User'  # type: ignore[mutable-override]
        verbose_name_plural = 'Users'  # type: ignore[mutable-override]
        ordering = ['employee_id']

        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(storage_quota__isnull=True)
                    | models.Q(storage_quota__gte=0)
                ),
                name='storage_quota_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return self.employee_id

    @property
    def is_admin(self) -> bool:
        """Administrator flag."""
        return self.is_staff

    @override
    def get_full_name(self) -> str:
        return self.name or self.employee_id

    @override
    def get_short_name(self) -> str:
        return self.name or self.employee_id
