"""Main URL mapping configuration file.

The JSON API lives under `/api/`, the Django admin under `/admin/`.
"""

from django.contrib import admin
from django.contrib.admindocs import urls as admindocs_urls
from django.urls import include, path

from server.apps.accounts import urls as accounts_urls
from server.apps.files import urls as files_urls

admin.site.site_header = 'Office Drive administration'

urlpatterns = [
    # Apps:
    path('api/', include(accounts_urls, namespace='accounts')),
    path('api/', include(files_urls, namespace='files')),

    # django-admin:
    path('admin/doc/', include(admindocs_urls)),
    path('admin/', admin.site.urls),
]
