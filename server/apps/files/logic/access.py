"""Authorization rules for files and folders.

A user may read a resource they own or one shared with them through an
active share. Folder shares extend to everything beneath the folder.
Writing into a folder needs ownership or an active ``write`` share.
Deleting needs ownership.

Share activity is checked on every call and never cached, since a share
can expire between listing and the next action.
"""

import logging
from typing import Any

from django.db.models import Q
from django.utils import timezone

from server.apps.files.exceptions import AccessDeniedError, NotFoundError
from server.apps.files.models import (
    File,
    Folder,
    SharedFile,
    SharedFolder,
)

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


def _folder_chain_ids(folder: Folder) -> list[int]:
    return [folder.pk, *(ancestor.pk for ancestor in folder.ancestors())]


def _has_folder_share(
    user: _User,
    folder: Folder,
    *,
    write: bool = False,
) -> bool:
    shares = SharedFolder.objects.filter(
        active_shares_q(),
        shared_with=user,
        folder_id__in=_folder_chain_ids(folder),
    )
    if write:
        shares = shares.writable()
    return shares.exists()


def can_read_folder(user: _User, folder: Folder) -> bool:
    """Check if user may list a folder.

    Args:
        user: User requesting access.
        folder: Folder to check.

    Returns:
        True if user owns the folder or it is shared with them.
    """
    if folder.owner_id == user.pk:
        return True
    return _has_folder_share(user, folder)


def can_write_folder(user: _User, folder: Folder) -> bool:
    """Check if user may upload into or create folders inside a folder.

    Args:
        user: User requesting access.
        folder: Folder to check.

    Returns:
        True if user owns the folder or holds an active write share.
    """
    if folder.owner_id == user.pk:
        return True
    return _has_folder_share(user, folder, write=True)


def can_read_file(user: _User, file_instance: File) -> bool:
    """Check if user may download a file.

    Args:
        user: User requesting access.
        file_instance: File to check.

    Returns:
        True if user owns the file, it is shared with them, or its
        folder is readable by them.
    """
    if file_instance.owner_id == user.pk:
        return True

    if SharedFile.objects.filter(
        active_shares_q(),
        shared_with=user,
        file=file_instance,
    ).exists():
        return True

    folder = file_instance.folder
    return folder is not None and can_read_folder(user, folder)


def active_shares_q(prefix: str = '') -> Q:
    """Filter matching shares that are active right now.

    Args:
        prefix: Lookup prefix when filtering through a relation
            (e.g., 'shares__').

    Returns:
        Q object for ``expires_at is null or expires_at > now``.
    """
    return (
        Q(**{f'{prefix}expires_at__isnull': True})
        | Q(**{f'{prefix}expires_at__gt': timezone.now()})
    )


def is_share_active(share: SharedFile | SharedFolder) -> bool:
    """Check if a stored share is active right now.

    Args:
        share: Saved file or folder share.

    Returns:
        True if the share matches ``active_shares_q``.
    """
    return type(share).objects.filter(active_shares_q(), pk=share.pk).exists()


def visible_root_files_q(user: _User) -> Q:
    """Filter for root-level files a user may see.

    Matches files owned by the user or directly shared with them
    through an active share.

    Args:
        user: User listing their root.

    Returns:
        Q object to combine with a folder filter.
    """
    shared = SharedFile.objects.filter(
        active_shares_q(),
        shared_with=user,
    )
    return Q(owner=user) | Q(pk__in=shared.values('file_id'))


def visible_root_folders_q(user: _User) -> Q:
    """Folder counterpart of ``visible_root_files_q``."""
    shared = SharedFolder.objects.filter(
        active_shares_q(),
        shared_with=user,
    )
    return Q(owner=user) | Q(pk__in=shared.values('folder_id'))


def _get_file(file_id: int) -> File:
    try:
        return File.objects.select_related('folder', 'owner').get(pk=file_id)
    except File.DoesNotExist as error:
        raise NotFoundError('File not found') from error


def _get_folder(folder_id: int) -> Folder:
    try:
        return Folder.objects.select_related('owner').get(pk=folder_id)
    except Folder.DoesNotExist as error:
        raise NotFoundError('Folder not found') from error


def _deny(user: _User, action: str, resource: object) -> AccessDeniedError:
    logger.warning(
        'Access denied: user %s cannot %s %s',
        user.pk,
        action,
        resource,
    )
    return AccessDeniedError('Access denied')


def get_readable_file(user: _User, file_id: int) -> File:
    """Fetch a file the user may read.

    Raises:
        NotFoundError: If file doesn't exist.
        AccessDeniedError: If user may not read it.
    """
    file_instance = _get_file(file_id)
    if not can_read_file(user, file_instance):
        raise _deny(user, 'read', file_instance)
    return file_instance


def get_any_file(file_id: int) -> File:
    """Fetch a file without access checks, for administrators.

    Raises:
        NotFoundError: If file doesn't exist.
    """
    return _get_file(file_id)


def get_owned_file(user: _User, file_id: int) -> File:
    """Fetch a file the user owns.

    Raises:
        NotFoundError: If file doesn't exist.
        AccessDeniedError: If user is not the owner.
    """
    file_instance = _get_file(file_id)
    if file_instance.owner_id != user.pk:
        raise _deny(user, 'modify', file_instance)
    return file_instance


def get_readable_folder(user: _User, folder_id: int) -> Folder:
    """Fetch a folder the user may list.

    Raises:
        NotFoundError: If folder doesn't exist.
        AccessDeniedError: If user may not read it.
    """
    folder = _get_folder(folder_id)
    if not can_read_folder(user, folder):
        raise _deny(user, 'read', folder)
    return folder


def get_writable_folder(user: _User, folder_id: int) -> Folder:
    """Fetch a folder the user may write into.

    Raises:
        NotFoundError: If folder doesn't exist.
        AccessDeniedError: If user has no write access.
    """
    folder = _get_folder(folder_id)
    if not can_write_folder(user, folder):
        raise _deny(user, 'write to', folder)
    return folder


def get_owned_folder(user: _User, folder_id: int) -> Folder:
    """Fetch a folder the user owns.

    Raises:
        NotFoundError: If folder doesn't exist.
        AccessDeniedError: If user is not the owner.
    """
    folder = _get_folder(folder_id)
    if folder.owner_id != user.pk:
        raise _deny(user, 'modify', folder)
    return folder
