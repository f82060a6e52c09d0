"""Django admin configuration for accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count, QuerySet, Sum
from django.http import HttpRequest

from server.apps.accounts.models import User
from server.apps.files.infrastructure.metadata import format_bytes
from server.apps.files.logic.quota_operations import get_quota_bytes


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for User model."""

    ordering = ['employee_id']

    list_display = [
        'employee_id',
        'email',
        'name',
        'is_staff',
        'used_display',
        'quota_display',
    ]

    list_filter = [
        'is_staff',
        'is_active',
    ]

    search_fields = [
        'employee_id',
        'email',
        'name',
    ]

    fieldsets = (
        (None, {
            'fields': ('employee_id', 'password'),
        }),
        ('Profile', {
            'fields': ('name', 'email'),
        }),
        ('Storage', {
            'fields': ('storage_quota',),
        }),
        ('Permissions', {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'force_password_change',
            ),
        }),
        ('Timestamps', {
            'fields': ('last_login', 'date_joined'),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'employee_id',
                'email',
                'name',
                'password1',
                'password2',
            ),
        }),
    )

    def used_display(self, obj: User) -> str:
        """Display used storage in human-readable format.

        Args:
            obj: User instance annotated with ``used_bytes``.

        Returns:
            Formatted size string.
        """
        return format_bytes(getattr(obj, 'used_bytes', None) or 0)
    used_display.short_description = 'Used'  # type: ignore[attr-defined]

    def quota_display(self, obj: User) -> str:
        """Display effective quota in human-readable format.

        Args:
            obj: User instance.

        Returns:
            Formatted quota string.
        """
        return format_bytes(get_quota_bytes(obj))
    quota_display.short_description = 'Quota'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[User]:
        """Annotate users with storage usage.

        Args:
            request: HTTP request.

        Returns:
            Annotated QuerySet.
        """
        return super().get_queryset(request).annotate(
            used_bytes=Sum('files__size_bytes'),
            file_count=Count('files'),
        )
