"""Django admin configuration for files app."""


from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.html import format_html

from server.apps.files.infrastructure.metadata import format_bytes
from server.apps.files.logic.access import is_share_active
from server.apps.files.models import File, Folder, SharedFile, SharedFolder


@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin[Folder]):
    """Admin interface for Folder model."""

    list_display = [
        'name',
        'owner',
        'parent',
        'path',
        'updated_at',
    ]

    list_filter = [
        'updated_at',
        'owner',
    ]

    search_fields = [
        'name',
        'path',
    ]

    readonly_fields = [
        'path',
        'created_at',
        'updated_at',
    ]

    def get_queryset(self, request: HttpRequest) -> QuerySet[Folder]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('owner', 'parent')


@admin.register(File)
class FileAdmin(admin.ModelAdmin[File]):
    """Admin interface for File model."""

    list_display = [
        'name',
        'owner',
        'folder',
        'size_display',
        'mime_type',
        'created_at',
    ]

    list_filter = [
        'mime_type',
        'created_at',
        'owner',
    ]

    search_fields = [
        'name',
        'file',  # Searches file.name field
        'checksum_sha256',
    ]

    readonly_fields = [
        'file',
        'size_bytes',
        'mime_type',
        'checksum_sha256',
        'created_at',
        'updated_at',
        'last_accessed_at',
    ]

    fieldsets = (
        ('File Information', {
            'fields': ('name', 'file', 'owner', 'folder'),
        }),
        ('Metadata', {
            'fields': (
                'size_bytes',
                'mime_type',
                'checksum_sha256',
            ),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'last_accessed_at'),
        }),
    )

    def size_display(self, obj: File) -> str:
        """Display file size in human-readable format.

        Args:
            obj: File instance.

        Returns:
            Formatted size string (e.g., '1.50 MB', '234.00 KB').
        """
        return format_bytes(obj.size_bytes)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('owner', 'folder')


class _ShareAdminMixin:
    """Columns shared by the share admins."""

    def status_display(self, obj: SharedFile | SharedFolder) -> str:
        """Display whether the share is currently active.

        Args:
            obj: Share instance.

        Returns:
            HTML formatted status indicator.
        """
        if is_share_active(obj):
            color = '#28a745'  # Green - active
            status = 'Active'
        else:
            color = '#dc3545'  # Red - expired
            status = 'Expired'

        return format_html(
            '<span style="color: {color}; font-weight: bold;">'
            '{status}</span>',
            color=color,
            status=status,
        )
    status_display.short_description = 'Status'  # type: ignore[attr-defined]


@admin.register(SharedFile)
class SharedFileAdmin(_ShareAdminMixin, admin.ModelAdmin[SharedFile]):
    """Admin interface for SharedFile model."""

    list_display = [
        'file',
        'shared_with',
        'permission',
        'expires_at',
        'status_display',
    ]

    list_filter = ['permission', 'expires_at']
    search_fields = ['file__name', 'shared_with__employee_id']
    readonly_fields = ['external_link', 'created_at']

    def get_queryset(self, request: HttpRequest) -> QuerySet[SharedFile]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related(
            'file',
            'shared_with',
        )


@admin.register(SharedFolder)
class SharedFolderAdmin(_ShareAdminMixin, admin.ModelAdmin[SharedFolder]):
    """Admin interface for SharedFolder model."""

    list_display = [
        'folder',
        'shared_with',
        'permission',
        'expires_at',
        'status_display',
    ]

    list_filter = ['permission', 'expires_at']
    search_fields = ['folder__name', 'shared_with__employee_id']
    readonly_fields = ['external_link', 'created_at']

    def get_queryset(self, request: HttpRequest) -> QuerySet[SharedFolder]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related(
            'folder',
            'shared_with',
        )
