"""Exceptions for files app.

Every error raised by the storage logic derives from ``StorageError`` and
carries a short machine-readable ``reason`` that the HTTP layer returns
alongside the status code.
"""

from typing import ClassVar


class StorageError(Exception):
    """Base class for storage errors."""

    reason: ClassVar[str] = 'storage_error'


class UnauthenticatedError(StorageError):
    """Raised when request credentials are missing or invalid."""

    reason = 'unauthenticated'


class NotFoundError(StorageError):
    """Raised when a user, file or folder does not exist."""

    reason = 'not_found'


class AccessDeniedError(StorageError):
    """Raised when ownership or share checks fail."""

    reason = 'access_denied'


class InvalidOperationError(StorageError):
    """Raised for requests that can never succeed as given."""

    reason = 'invalid_operation'


class StorageIOError(StorageError):
    """Raised when writing to or deleting from disk fails."""

    reason = 'storage_io_error'


class PersistenceError(StorageError):
    """Raised when the metadata transaction fails."""

    reason = 'persistence_error'


class QuotaExceededError(StorageError):
    """Raised when upload would exceed user's storage quota."""

    reason = 'quota_exceeded'

    def __init__(
        self,
        quota_bytes: int,
        used_bytes: int,
        required_bytes: int,
    ) -> None:
        """Initialize QuotaExceededError.

        Args:
            quota_bytes: Total quota limit in bytes.
            used_bytes: Currently used bytes.
            required_bytes: Bytes needed for the operation.
        """
        self.quota_bytes = quota_bytes
        self.used_bytes = used_bytes
        self.required_bytes = required_bytes

        super().__init__(
            f'Quota exceeded: need {required_bytes} bytes, '
            f'only {self.available_bytes} bytes available '
            f'(quota: {quota_bytes}, used: {used_bytes})',
        )

    @property
    def available_bytes(self) -> int:
        """Bytes still free under the quota (never negative)."""
        return max(0, self.quota_bytes - self.used_bytes)
