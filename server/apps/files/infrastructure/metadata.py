"""Metadata extraction and formatting utilities for files."""

import hashlib
import mimetypes
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Final

from django.utils import timezone
from django.utils.crypto import get_random_string

from server.apps.files.exceptions import InvalidOperationError

_CHUNK_SIZE: Final = 8192  # 8KB chunks for checksum calculation
_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'

# Characters that are unsafe in filenames on common filesystems
_UNSAFE_CHARACTERS: Final = re.compile(r'[/\\?%*:|"<>\x00-\x1f]')
_DIRECTORY_TOKEN_LENGTH: Final = 8

# NAME_MAX of common filesystems, in bytes
_NAME_MAX_BYTES: Final = 255
# Storage appends `_` and 7 random characters when a name is taken
_COLLISION_SUFFIX_LENGTH: Final = 8

_BYTE_UNITS: Final = ('B', 'KB', 'MB', 'GB', 'TB')
_KIBI: Final = 1024

_SECONDS_PER_MINUTE: Final = 60
_SECONDS_PER_HOUR: Final = 3600
_SECONDS_PER_DAY: Final = 86400
_RELATIVE_DAYS_LIMIT: Final = 7


def detect_mime_type(filename: str, declared: str | None = None) -> str:
    """Detect MIME type of a file.

    Prefers the content type declared by the client and falls back to
    guessing from the filename extension.

    Args:
        filename: Filename with extension.
        declared: Content type sent with the upload, if any.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    if declared:
        return declared
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_MIME_TYPE
    return mime_type


def calculate_checksum(file_obj: BinaryIO) -> str:
    """Calculate SHA256 checksum of file.

    Reads file in chunks to handle large files efficiently.
    Resets file pointer to beginning after calculation.

    Args:
        file_obj: File-like object to checksum.

    Returns:
        Hex-encoded SHA256 hash string.
    """
    sha256_hash = hashlib.sha256()

    file_obj.seek(0)

    for chunk in iter(lambda: file_obj.read(_CHUNK_SIZE), b''):
        sha256_hash.update(chunk)

    # Reset file pointer to beginning for subsequent operations
    file_obj.seek(0)

    return sha256_hash.hexdigest()


def get_file_size(file_obj: Any) -> int:
    """Get file size from file object.

    Args:
        file_obj: File-like object.

    Returns:
        File size in bytes.
    """
    size = getattr(file_obj, 'size', None)
    if size is not None:
        return size
    file_size = len(file_obj.read())
    file_obj.seek(0)
    return file_size


def sanitize_filename(filename: str) -> str:
    """Replace path-unsafe characters in a filename.

    Example: 'q1/q2: report?.pdf' -> 'q1-q2- report-.pdf'

    Args:
        filename: Name as uploaded by the client.

    Returns:
        Filename safe to use as a single path component.
    """
    sanitized = _UNSAFE_CHARACTERS.sub('-', filename).strip()
    # Avoid names that resolve to the current or parent directory
    if sanitized.strip('.') == '':
        return sanitized.replace('.', '-')
    return sanitized


def fit_filename(filename: str, max_bytes: int) -> str:
    """Shorten a filename to at most ``max_bytes`` of UTF-8.

    The stem is cut and the extension kept.
    Example: ('long-report.pdf', 10) -> 'long-r.pdf'

    Args:
        filename: Sanitized filename.
        max_bytes: Encoded length the result must fit in.

    Returns:
        The filename itself when it fits, otherwise a shortened one.

    Raises:
        InvalidOperationError: If even the extension alone does not fit.
    """
    if len(filename.encode()) <= max_bytes:
        return filename

    extension = Path(filename).suffix
    stem = filename.removesuffix(extension) if extension else filename
    room = max_bytes - len(extension.encode())
    shortened = ''
    if room > 0:
        # Cutting bytes can split a character, drop the partial one
        shortened = stem.encode()[:room].decode(errors='ignore').rstrip()
    if not shortened:
        raise InvalidOperationError(f'File name is too long: {filename}')
    return f'{shortened}{extension}'


def build_stored_filename(display_name: str) -> str:
    """Build the on-disk filename for an upload.

    Example: 'report.pdf' -> '1700000000000-report.pdf'

    Long names are shortened so the result stays a valid path component.

    Args:
        display_name: Sanitized display name.

    Returns:
        Filename prefixed with the current epoch time in milliseconds.

    Raises:
        InvalidOperationError: If the name cannot be shortened to fit.
    """
    prefix = f'{time.time_ns() // 1_000_000}-'
    room = _NAME_MAX_BYTES - _COLLISION_SUFFIX_LENGTH - len(prefix)
    return f'{prefix}{fit_filename(display_name, room)}'


def build_directory_name(folder_name: str) -> str:
    """Build a unique directory name for a folder.

    Example: 'Reports 2024' -> 'Reports 2024-a8Xk20Qz'

    Args:
        folder_name: Folder display name.

    Returns:
        Sanitized, possibly shortened, name with a random suffix.

    Raises:
        InvalidOperationError: If the name cannot be shortened to fit.
    """
    token = get_random_string(_DIRECTORY_TOKEN_LENGTH)
    room = (
        _NAME_MAX_BYTES
        - _COLLISION_SUFFIX_LENGTH
        - _DIRECTORY_TOKEN_LENGTH
        - 1
    )
    return f'{fit_filename(sanitize_filename(folder_name), room)}-{token}'


def format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.50 MB', '234.00 KB').
    """
    size = float(size_bytes)
    unit_index = 0
    while size >= _KIBI and unit_index < len(_BYTE_UNITS) - 1:
        size /= _KIBI
        unit_index += 1
    return f'{size:.2f} {_BYTE_UNITS[unit_index]}'


def _plural(count: int, unit: str) -> str:
    suffix = 's' if count > 1 else ''
    return f'{count} {unit}{suffix} ago'


def format_relative_date(moment: datetime, now: datetime | None = None) -> str:
    """Format a timestamp relative to now.

    Examples: 'Just now', '5 minutes ago', '1 hour ago', '3 days ago',
    and 'Jan 5, 2024' when more than 7 days have passed.

    Args:
        moment: Timestamp to format.
        now: Reference time (defaults to the current time).

    Returns:
        Human-readable label.
    """
    reference = now or timezone.now()
    seconds = int((reference - moment).total_seconds())

    days = seconds // _SECONDS_PER_DAY
    if days > _RELATIVE_DAYS_LIMIT:
        return f'{moment:%b} {moment.day}, {moment.year}'
    if days > 0:
        return _plural(days, 'day')

    hours = seconds // _SECONDS_PER_HOUR
    if hours > 0:
        return _plural(hours, 'hour')

    minutes = seconds // _SECONDS_PER_MINUTE
    if minutes > 0:
        return _plural(minutes, 'minute')

    return 'Just now'
