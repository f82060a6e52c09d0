"""HTTP Basic authentication for the JSON API.

Validates ``Authorization: Basic`` credentials against Django's
authentication system and returns the caller's identity.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from django.contrib.auth import authenticate
from django.http import HttpRequest

from server.apps.files.exceptions import UnauthenticatedError

if TYPE_CHECKING:
    from server.apps.accounts.models import User

logger = logging.getLogger(__name__)

# Realm sent in the WWW-Authenticate header
REALM: Final = 'Office Drive'

_BASIC_SCHEME: Final = 'basic'


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated caller."""

    user: 'User'

    @property
    def user_id(self) -> int:
        """Primary key of the caller."""
        return self.user.pk

    @property
    def employee_id(self) -> str:
        """Employee identifier of the caller."""
        return self.user.employee_id

    @property
    def is_admin(self) -> bool:
        """Whether the caller is an administrator."""
        return self.user.is_admin


def parse_basic_credentials(header: str) -> tuple[str, str]:
    """Extract employee ID and password from a Basic auth header.

    Args:
        header: Value of the Authorization header.

    Returns:
        Tuple of (employee_id, password).

    Raises:
        UnauthenticatedError: If the header is missing or malformed.
    """
    scheme, _, encoded = header.partition(' ')
    if scheme.lower() != _BASIC_SCHEME or not encoded:
        raise UnauthenticatedError('Unauthorized - no credentials provided')

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode()
    except (binascii.Error, UnicodeDecodeError) as error:
        raise UnauthenticatedError('Malformed credentials') from error

    employee_id, separator, password = decoded.partition(':')
    if not separator:
        raise UnauthenticatedError('Malformed credentials')
    return employee_id, password


def verify_credentials(
    request: HttpRequest | None,
    employee_id: str,
    password: str,
) -> 'User':
    """Validate credentials with Django's authentication backends.

    Args:
        request: Current request, passed through to backends.
        employee_id: Employee ID to log in with.
        password: Raw password.

    Returns:
        Authenticated active user.

    Raises:
        UnauthenticatedError: If credentials are invalid or user is inactive.
    """
    logger.debug('Authenticating user: %s', employee_id)

    user = authenticate(
        request=request,
        employee_id=employee_id,
        password=password,
    )

    if user is None:
        logger.warning('Authentication failed for user: %s', employee_id)
        raise UnauthenticatedError('Invalid credentials')

    if not user.is_active:
        logger.warning('Inactive user attempted login: %s', employee_id)
        raise UnauthenticatedError('Invalid credentials')

    return user  # type: ignore[return-value]


def authenticate_request(request: HttpRequest) -> Identity:
    """Return the identity behind the request's Basic credentials.

    Args:
        request: Incoming HTTP request.

    Returns:
        Identity of the authenticated caller.

    Raises:
        UnauthenticatedError: If credentials are missing or invalid.
    """
    header = request.headers.get('Authorization', '')
    employee_id, password = parse_basic_credentials(header)
    user = verify_credentials(request, employee_id, password)
    return Identity(user=user)
