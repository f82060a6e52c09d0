"""This file contains all the settings used in production.

This file is required and if development.py is present these
values are overridden.
"""

from server.settings.components import config

DEBUG = False

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SECURE_SSL_REDIRECT = config(
    'DJANGO_SECURE_SSL_REDIRECT',
    cast=bool,
    default=True,
)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
