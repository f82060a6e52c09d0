"""Signal handlers for files app.

Rows removed by cascade (deleting a user or a folder through the ORM or
the admin) leave their bytes behind unless these handlers clean up.

Disk removal waits for the surrounding transaction to commit, so a rolled
back delete never leaves rows pointing at missing bytes.
"""

import functools
import logging

from django.conf import settings
from django.core.files.storage import default_storage
from django.db import transaction
from django.db.models import Model
from django.db.models.signals import post_delete
from django.dispatch import receiver

from server.apps.files.logic.paths import user_root
from server.apps.files.models import File, Folder

logger = logging.getLogger(__name__)


def _remove_file(storage_name: str) -> None:
    try:
        if default_storage.exists(storage_name):
            default_storage.delete(storage_name)
        else:
            logger.debug('File already removed from storage: %s', storage_name)
    except OSError:
        # DB delete already committed
        logger.exception(
            'Failed to delete file from storage (orphaned): %s',
            storage_name,
        )


def _remove_directory(directory: str, kind: str) -> None:
    try:
        default_storage.remove_directory(directory)
    except OSError:
        logger.exception('Failed to remove %s (orphaned): %s', kind, directory)
    else:
        logger.debug('Removed %s: %s', kind, directory)


@receiver(post_delete, sender=File)
def delete_file_from_storage(
    sender: type[File],
    instance: File,
    **kwargs: object,
) -> None:
    """Delete file bytes once the File record deletion commits.

    Args:
        sender: The File model class.
        instance: The File instance being deleted.
        **kwargs: Additional signal arguments.
    """
    if not instance.file:
        return

    transaction.on_commit(functools.partial(_remove_file, instance.file.name))


@receiver(post_delete, sender=Folder)
def delete_folder_directory(
    sender: type[Folder],
    instance: Folder,
    **kwargs: object,
) -> None:
    """Remove a folder's directory once its record deletion commits.

    Args:
        sender: The Folder model class.
        instance: The Folder instance being deleted.
        **kwargs: Additional signal arguments.
    """
    transaction.on_commit(
        functools.partial(_remove_directory, instance.path, 'folder directory'),
    )


@receiver(post_delete, sender=settings.AUTH_USER_MODEL)
def delete_user_root(
    sender: type[Model],
    instance: Model,
    **kwargs: object,
) -> None:
    """Remove a user's root directory once the user deletion commits.

    Args:
        sender: The user model class.
        instance: The user being deleted.
        **kwargs: Additional signal arguments.
    """
    root = user_root(instance.pk)
    logger.info('Scheduling removal of storage root: %s', root)
    transaction.on_commit(
        functools.partial(_remove_directory, root, 'user root'),
    )
