"""Accounts URL configuration."""

from django.urls import path

from server.apps.accounts import views

app_name = 'accounts'

urlpatterns = [
    # Authentication
    path('auth/register', views.register, name='register'),
    path('auth/login', views.login, name='login'),

    # Users
    path('users/me', views.me, name='me'),
    path('users', views.users, name='users'),
    path('users/<int:user_id>', views.user_detail, name='user-detail'),
    path('users/<int:user_id>/quota', views.user_quota, name='user-quota'),
    path(
        'users/<int:user_id>/password',
        views.user_password,
        name='user-password',
    ),
    path(
        'users/<int:user_id>/activity',
        views.user_activity,
        name='user-activity',
    ),
]
