"""Business logic for sharing files and folders with other users."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils.crypto import get_random_string

from server.apps.activity.logic.activity_operations import record_activity
from server.apps.activity.models import Action
from server.apps.files.exceptions import (
    AccessDeniedError,
    InvalidOperationError,
    NotFoundError,
    PersistenceError,
)
from server.apps.files.logic.access import active_shares_q, is_share_active
from server.apps.files.models import (
    SHARE_LINK_LENGTH,
    File,
    Folder,
    Permission,
    SharedFile,
    SharedFolder,
)

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SharesReceived:
    """Active shares granted to a user."""

    files: list[SharedFile]
    folders: list[SharedFolder]


def generate_share_link() -> str:
    """Generate an unguessable external link token.

    Returns:
        Random alphanumeric string of SHARE_LINK_LENGTH characters.
    """
    return get_random_string(SHARE_LINK_LENGTH)


def _validate_request(owner: _User, recipient_id: int, permission: str) -> None:
    if owner.pk == recipient_id:
        logger.warning('User %s tried to share with themselves', owner.pk)
        raise InvalidOperationError('Cannot share with yourself')
    if permission not in Permission.values:
        raise InvalidOperationError(f'Invalid permission: {permission}')


def _get_recipient(recipient_id: int) -> _User:
    try:
        return get_user_model().objects.get(pk=recipient_id)
    except get_user_model().DoesNotExist as error:
        raise NotFoundError('Recipient not found') from error


def _warn_if_inactive(share: SharedFile | SharedFolder) -> None:
    if not is_share_active(share):
        logger.warning(
            'Share %d created with past expiry %s, it will never be active',
            share.pk,
            share.expires_at,
        )


def share_file(  # noqa: WPS211
    owner: _User,
    file_id: int,
    recipient_id: int,
    permission: str,
    expires_at: datetime | None = None,
    ip_address: str | None = None,
) -> SharedFile:
    """Share a file with another user.

    Args:
        owner: User sharing the file.
        file_id: ID of file to share.
        recipient_id: ID of user receiving access.
        permission: 'read' or 'write'.
        expires_at: When access ends, None for never.
        ip_address: Client IP for the activity log.

    Returns:
        Created SharedFile.

    Raises:
        InvalidOperationError: If sharing with self or permission is invalid.
        NotFoundError: If file or recipient doesn't exist.
        AccessDeniedError: If owner doesn't own the file.
        PersistenceError: If the share cannot be stored.
    """
    _validate_request(owner, recipient_id, permission)

    try:
        file_instance = File.objects.get(pk=file_id)
    except File.DoesNotExist as error:
        raise NotFoundError('File not found') from error

    if file_instance.owner_id != owner.pk:
        logger.warning(
            'User %s cannot share file %d owned by %s',
            owner.pk,
            file_id,
            file_instance.owner_id,
        )
        raise AccessDeniedError('Access denied')

    recipient = _get_recipient(recipient_id)

    try:
        with transaction.atomic():
            share = SharedFile.objects.create(
                file=file_instance,
                shared_with=recipient,
                permission=permission,
                external_link=generate_share_link(),
                expires_at=expires_at,
            )
    except DatabaseError as error:
        logger.exception('Failed to store share of file %d', file_id)
        raise PersistenceError('Failed to share file') from error

    _warn_if_inactive(share)
    logger.info(
        'File %d shared by user %s with user %s (%s)',
        file_id,
        owner.pk,
        recipient.pk,
        permission,
    )
    record_activity(
        owner,
        Action.SHARE,
        file=file_instance,
        ip_address=ip_address,
        details=(
            f'Shared with user {recipient.pk} with {permission} permissions'
        ),
    )
    return share


def share_folder(  # noqa: WPS211
    owner: _User,
    folder_id: int,
    recipient_id: int,
    permission: str,
    expires_at: datetime | None = None,
    ip_address: str | None = None,
) -> SharedFolder:
    """Share a folder, and everything beneath it, with another user.

    Args:
        owner: User sharing the folder.
        folder_id: ID of folder to share.
        recipient_id: ID of user receiving access.
        permission: 'read' or 'write'.
        expires_at: When access ends, None for never.
        ip_address: Client IP, logged with the share.

    Returns:
        Created SharedFolder.

    Raises:
        InvalidOperationError: If sharing with self or permission is invalid.
        NotFoundError: If folder or recipient doesn't exist.
        AccessDeniedError: If owner doesn't own the folder.
        PersistenceError: If the share cannot be stored.
    """
    _validate_request(owner, recipient_id, permission)

    try:
        folder = Folder.objects.get(pk=folder_id)
    except Folder.DoesNotExist as error:
        raise NotFoundError('Folder not found') from error

    if folder.owner_id != owner.pk:
        logger.warning(
            'User %s cannot share folder %d owned by %s',
            owner.pk,
            folder_id,
            folder.owner_id,
        )
        raise AccessDeniedError('Access denied')

    recipient = _get_recipient(recipient_id)

    try:
        with transaction.atomic():
            share = SharedFolder.objects.create(
                folder=folder,
                shared_with=recipient,
                permission=permission,
                external_link=generate_share_link(),
                expires_at=expires_at,
            )
    except DatabaseError as error:
        logger.exception('Failed to store share of folder %d', folder_id)
        raise PersistenceError('Failed to share folder') from error

    _warn_if_inactive(share)
    logger.info(
        'Folder %d shared by user %s with user %s (%s) from %s',
        folder_id,
        owner.pk,
        recipient.pk,
        permission,
        ip_address or 'unknown address',
    )
    return share


def resolve_share_link(token: str) -> SharedFile | SharedFolder:
    """Find the active share behind an external link.

    Args:
        token: External link token.

    Returns:
        Active SharedFile or SharedFolder.

    Raises:
        NotFoundError: If no active share uses the token.
    """
    file_share = SharedFile.objects.filter(
        active_shares_q(),
        external_link=token,
    ).select_related('file').first()
    if file_share is not None:
        return file_share

    folder_share = SharedFolder.objects.filter(
        active_shares_q(),
        external_link=token,
    ).select_related('folder').first()
    if folder_share is not None:
        return folder_share

    logger.info('Unknown or expired share link requested')
    raise NotFoundError('Share not found or expired')


def list_shared_with(user: _User) -> SharesReceived:
    """List active shares granted to a user.

    Args:
        user: Recipient of the shares.

    Returns:
        SharesReceived with file and folder shares, newest first.
    """
    return SharesReceived(
        files=list(
            SharedFile.objects.filter(active_shares_q(), shared_with=user)
            .select_related('file', 'file__owner'),
        ),
        folders=list(
            SharedFolder.objects.filter(active_shares_q(), shared_with=user)
            .select_related('folder', 'folder__owner'),
        ),
    )


def expired_shares_before(
    before: datetime,
    batch_size: int | None = None,
) -> tuple[list[SharedFile], list[SharedFolder]]:
    """Find shares that expired before a moment, oldest first.

    Args:
        before: Shares with expires_at earlier than this are returned.
        batch_size: Max shares of each kind, None for all.

    Returns:
        Tuple of (file shares, folder shares).
    """
    file_shares = SharedFile.objects.filter(
        expires_at__lt=before,
    ).order_by('expires_at')
    folder_shares = SharedFolder.objects.filter(
        expires_at__lt=before,
    ).order_by('expires_at')
    if batch_size is not None:
        file_shares = file_shares[:batch_size]
        folder_shares = folder_shares[:batch_size]
    return list(file_shares), list(folder_shares)


def purge_expired_shares(
    before: datetime,
    batch_size: int | None = None,
) -> int:
    """Delete shares that expired before a moment.

    Args:
        before: Shares with expires_at earlier than this are deleted.
        batch_size: Max shares of each kind, None for all.

    Returns:
        Number of deleted share rows.
    """
    file_shares, folder_shares = expired_shares_before(before, batch_size)

    with transaction.atomic():
        files_deleted, _ = SharedFile.objects.filter(
            pk__in=[share.pk for share in file_shares],
        ).delete()
        folders_deleted, _ = SharedFolder.objects.filter(
            pk__in=[share.pk for share in folder_shares],
        ).delete()

    total = files_deleted + folders_deleted
    logger.info('Purged %d shares expired before %s', total, before.isoformat())
    return total
