"""Tests for shared JSON API helpers."""

from datetime import datetime
from http import HTTPStatus

import pytest
from django.http import JsonResponse
from django.test import RequestFactory

from server.apps.core.http import (
    api_view,
    error_response,
    error_status,
    get_client_ip,
    parse_json_body,
    parse_optional_datetime,
    parse_optional_id,
)
from server.apps.files.exceptions import (
    AccessDeniedError,
    InvalidOperationError,
    NotFoundError,
    PersistenceError,
    QuotaExceededError,
    StorageIOError,
    UnauthenticatedError,
)


@pytest.mark.parametrize(('error', 'status'), [
    (UnauthenticatedError('no'), HTTPStatus.UNAUTHORIZED),
    (AccessDeniedError('no'), HTTPStatus.FORBIDDEN),
    (NotFoundError('no'), HTTPStatus.NOT_FOUND),
    (QuotaExceededError(10, 10, 1), HTTPStatus.BAD_REQUEST),
    (InvalidOperationError('no'), HTTPStatus.BAD_REQUEST),
    (StorageIOError('no'), HTTPStatus.INTERNAL_SERVER_ERROR),
    (PersistenceError('no'), HTTPStatus.INTERNAL_SERVER_ERROR),
])
def test_error_status(error, status):
    """Test every error kind maps to its status."""
    assert error_status(error) == status


def test_server_errors_hide_details():
    """Test internal failures return a generic message."""
    response = error_response(StorageIOError('disk /dev/sda1 failed'))

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert b'/dev/sda1' not in response.content
    assert b'storage_io_error' in response.content


def test_client_errors_keep_message():
    """Test client errors carry their message and reason."""
    response = error_response(NotFoundError('File not found'))

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert b'File not found' in response.content
    assert b'not_found' in response.content


@pytest.mark.parametrize(('headers', 'expected'), [
    ({'HTTP_CF_CONNECTING_IP': '1.1.1.1'}, '1.1.1.1'),
    ({'HTTP_X_FORWARDED_FOR': '2.2.2.2, 10.0.0.1'}, '2.2.2.2'),
    ({'HTTP_X_REAL_IP': '3.3.3.3'}, '3.3.3.3'),
    ({'REMOTE_ADDR': '4.4.4.4'}, '4.4.4.4'),
    ({'REMOTE_ADDR': ''}, '0.0.0.0'),  # noqa: S104
    (
        {
            'HTTP_CF_CONNECTING_IP': '1.1.1.1',
            'HTTP_X_FORWARDED_FOR': '2.2.2.2',
        },
        '1.1.1.1',
    ),
])
def test_get_client_ip(headers, expected):
    """Test proxy headers are checked in priority order."""
    request = RequestFactory().get('/', **headers)

    assert get_client_ip(request) == expected


def test_parse_json_body():
    """Test JSON objects are decoded and other bodies rejected."""
    factory = RequestFactory()

    assert parse_json_body(
        factory.post('/', '{"a": 1}', content_type='application/json'),
    ) == {'a': 1}
    assert parse_json_body(
        factory.post('/', '', content_type='application/json'),
    ) == {}
    with pytest.raises(InvalidOperationError):
        parse_json_body(
            factory.post('/', '[1, 2]', content_type='application/json'),
        )


@pytest.mark.parametrize(('raw', 'expected'), [
    (None, None),
    ('', None),
    ('null', None),
    ('12', 12),
    (12, 12),
])
def test_parse_optional_id(raw, expected):
    """Test accepted identifier forms."""
    assert parse_optional_id(raw, 'id') == expected


@pytest.mark.parametrize('raw', ['abc', '0', -3, True, 1.5j])
def test_parse_optional_id_invalid(raw):
    """Test rejected identifier forms."""
    with pytest.raises(InvalidOperationError, match='Invalid id'):
        parse_optional_id(raw, 'id')


def test_parse_optional_datetime():
    """Test timestamps are parsed and made aware."""
    parsed = parse_optional_datetime('2030-01-02T03:04:05', 'expiresAt')

    assert isinstance(parsed, datetime)
    assert parsed.tzinfo is not None
    assert parse_optional_datetime(None, 'expiresAt') is None


@pytest.mark.parametrize('raw', ['tomorrow', '2030-13-45T00:00:00', 5])
def test_parse_optional_datetime_invalid(raw):
    """Test malformed timestamps are rejected."""
    with pytest.raises(InvalidOperationError):
        parse_optional_datetime(raw, 'expiresAt')


def test_public_view_skips_authentication():
    """Test public views run without credentials."""
    @api_view('GET', public=True)
    def ping(request):
        return JsonResponse({'ok': True})

    response = ping(RequestFactory().get('/'))

    assert response.status_code == HTTPStatus.OK


def test_view_errors_become_responses():
    """Test storage errors raised by views are rendered as JSON."""
    @api_view('GET', public=True)
    def missing(request):
        raise NotFoundError('Nothing here')

    response = missing(RequestFactory().get('/'))

    assert response.status_code == HTTPStatus.NOT_FOUND
