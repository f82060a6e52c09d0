"""File management URL configuration."""

from django.urls import path

from server.apps.files import views

app_name = 'files'

urlpatterns = [
    # File listing and upload
    path('files', views.list_files, name='list'),
    path('files/upload', views.upload_files, name='upload'),

    # Individual file operations
    path('files/<int:file_id>', views.delete_file, name='delete'),
    path('files/<int:file_id>/download', views.download_file, name='download'),

    # Folders
    path('folders', views.folders, name='folders'),

    # Sharing
    path('share', views.create_share, name='share'),
    path('share/<str:token>', views.open_share_link, name='share-link'),
    path('shared', views.shared_with_me, name='shared'),

    # Storage statistics
    path('admin/storage', views.storage_overview, name='storage-overview'),
    path('storage/stats', views.storage_stats, name='storage-stats'),
]
