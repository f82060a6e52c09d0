"""Tests for run_server management command."""

from io import StringIO

from django.core.management import call_command

from server.apps.core.management.commands import run_server


class _FakeServer:
    instances: list['_FakeServer'] = []

    def __init__(self, bind_addr, wsgi_app, numthreads):
        self.bind_addr = bind_addr
        self.wsgi_app = wsgi_app
        self.numthreads = numthreads
        self.stopped = False
        self.instances.append(self)

    def start(self):
        raise KeyboardInterrupt

    def stop(self):
        self.stopped = True


def test_run_server_uses_arguments(monkeypatch):
    """Test command line options override settings."""
    monkeypatch.setattr(run_server, 'WSGIServer', _FakeServer)
    out = StringIO()

    call_command(
        'run_server',
        '--host',
        '127.0.0.1',
        '--port',
        '9000',
        '--threads',
        '4',
        stdout=out,
    )

    server = _FakeServer.instances[-1]
    assert server.bind_addr == ('127.0.0.1', 9000)
    assert server.numthreads == 4
    assert server.wsgi_app is run_server.application
    assert server.stopped
    assert 'Starting server on 127.0.0.1:9000' in out.getvalue()
    assert 'Server stopped' in out.getvalue()


def test_run_server_defaults_from_settings(monkeypatch, settings):
    """Test settings provide defaults."""
    monkeypatch.setattr(run_server, 'WSGIServer', _FakeServer)
    settings.SERVER_HOST = '0.0.0.0'  # noqa: S104
    settings.SERVER_PORT = 8123
    settings.SERVER_THREADS = 2

    call_command('run_server', stdout=StringIO())

    server = _FakeServer.instances[-1]
    assert server.bind_addr == ('0.0.0.0', 8123)  # noqa: S104
    assert server.numthreads == 2
