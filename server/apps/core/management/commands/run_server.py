"""Django management command to serve the application with cheroot."""

import logging
from typing import Any, final, override

from cheroot.wsgi import Server as WSGIServer
from django.conf import settings
from django.core.management.base import BaseCommand

from server.wsgi import application

logger = logging.getLogger(__name__)

_SERVER_NAME = 'OfficeDrive'


@final
class Command(BaseCommand):
    """Run the JSON API using the cheroot WSGI server."""

    help = 'Run the office drive HTTP server'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--host',
            type=str,
            default=None,
            help='Host to bind to (default: from settings)',
        )
        parser.add_argument(
            '--port',
            type=int,
            default=None,
            help='Port to bind to (default: from settings)',
        )
        parser.add_argument(
            '--threads',
            type=int,
            default=None,
            help='Worker threads (default: from settings)',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments.
            options: Keyword arguments from command line.
        """
        host = options['host'] or settings.SERVER_HOST
        port = options['port'] or settings.SERVER_PORT
        threads = options['threads'] or settings.SERVER_THREADS

        self.stdout.write(
            self.style.SUCCESS(f'Starting server on {host}:{port}'),
        )

        server = WSGIServer(
            bind_addr=(host, port),
            wsgi_app=application,
            numthreads=threads,
        )
        # Server name for HTTP headers
        server.server_name = _SERVER_NAME

        try:
            logger.info(
                'Server starting on %s:%d with %d threads',
                host,
                port,
                threads,
            )
            server.start()
        except KeyboardInterrupt:
            self.stdout.write(self.style.WARNING('\nShutting down...'))
        finally:
            server.stop()
            self.stdout.write(self.style.SUCCESS('Server stopped'))
