"""Django admin configuration for activity app."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.activity.models import Activity


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin[Activity]):
    """Read-only admin interface for Activity model."""

    list_display = [
        'timestamp',
        'user',
        'action',
        'file',
        'ip_address',
    ]

    list_filter = [
        'action',
        'timestamp',
    ]

    search_fields = [
        'user__employee_id',
        'user__email',
        'details',
        'ip_address',
    ]

    readonly_fields = [
        'user',
        'file',
        'file_reference',
        'action',
        'ip_address',
        'details',
        'timestamp',
    ]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Activities are only written by the application."""
        return False

    def get_queryset(self, request: HttpRequest) -> QuerySet[Activity]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('user', 'file')
