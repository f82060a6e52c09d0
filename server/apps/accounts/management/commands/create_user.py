"""Django management command to create users from the shell."""

import getpass
import logging
from typing import Any, final, override

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from server.apps.accounts.logic.user_operations import register_user
from server.apps.files.exceptions import StorageError
from server.apps.files.logic.quota_operations import set_user_quota
from server.apps.files.logic.storage_service import StorageService

logger = logging.getLogger(__name__)


@final
class Command(BaseCommand):
    """Create a user, optionally an administrator with a custom quota."""

    help = 'Create a user with an employee ID and email'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument('employee_id', type=str)
        parser.add_argument('email', type=str)
        parser.add_argument(
            '--name',
            type=str,
            default='',
            help='Display name (default: employee ID)',
        )
        parser.add_argument(
            '--password',
            type=str,
            default=None,
            help='Password (prompted when omitted)',
        )
        parser.add_argument(
            '--admin',
            action='store_true',
            default=False,
            help='Grant administrator rights',
        )
        parser.add_argument(
            '--quota',
            type=int,
            default=None,
            help='Storage quota in bytes (default: system default)',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments.
            options: Keyword arguments from command line.
        """
        employee_id = options['employee_id']
        password = options['password'] or getpass.getpass('Password: ')

        try:
            with transaction.atomic():
                user = register_user(
                    employee_id=employee_id,
                    email=options['email'],
                    password=password,
                    name=options['name'] or employee_id,
                )
                if options['quota'] is not None:
                    set_user_quota(user, options['quota'])
            StorageService().ensure_user_root(user)
        except StorageError as error:
            raise CommandError(str(error)) from error

        if options['admin']:
            user.is_staff = True
            user.is_superuser = True
            user.save(update_fields=['is_staff', 'is_superuser'])

        role = 'administrator' if options['admin'] else 'user'
        logger.info('Created %s %s from command line', role, employee_id)
        self.stdout.write(
            self.style.SUCCESS(f'Created {role} {employee_id} (ID: {user.pk})'),
        )
