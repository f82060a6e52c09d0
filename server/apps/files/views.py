"""JSON API views for files, folders, shares and storage statistics."""

import logging
from http import HTTPStatus
from typing import Any

from django.http import FileResponse, HttpRequest, HttpResponse, JsonResponse

from server.apps.accounts.authentication import Identity
from server.apps.core.http import (
    api_view,
    error_status,
    get_client_ip,
    parse_json_body,
    parse_optional_datetime,
    parse_optional_id,
)
from server.apps.files.exceptions import InvalidOperationError
from server.apps.files.logic.quota_operations import (
    get_storage_distribution,
    get_storage_overview,
    get_usage,
)
from server.apps.files.logic.share_operations import (
    list_shared_with,
    resolve_share_link,
    share_file,
    share_folder,
)
from server.apps.files.logic.storage_service import (
    FolderContents,
    StorageService,
)
from server.apps.files.models import File, Folder, SharedFile, SharedFolder

logger = logging.getLogger(__name__)

_SHARE_TYPES = ('file', 'folder')


def _file_payload(file_instance: File) -> dict[str, Any]:
    return {
        'id': file_instance.pk,
        'name': file_instance.name,
        'size': file_instance.size_bytes,
        'type': file_instance.mime_type,
        'folderId': file_instance.folder_id,
        'ownerId': file_instance.owner_id,
        'createdAt': file_instance.created_at.isoformat(),
        'updatedAt': file_instance.updated_at.isoformat(),
    }


def _folder_payload(folder: Folder) -> dict[str, Any]:
    return {
        'id': folder.pk,
        'name': folder.name,
        'parentId': folder.parent_id,
        'ownerId': folder.owner_id,
        'createdAt': folder.created_at.isoformat(),
        'updatedAt': folder.updated_at.isoformat(),
    }


def _share_payload(share: SharedFile | SharedFolder) -> dict[str, Any]:
    if isinstance(share, SharedFile):
        resource = {'type': 'file', 'item': _file_payload(share.file)}
    else:
        resource = {'type': 'folder', 'item': _folder_payload(share.folder)}
    return {
        'id': share.pk,
        'sharedWithId': share.shared_with_id,
        'permissions': share.permission,
        'externalLink': share.external_link,
        'expiresAt': share.expires_at.isoformat() if share.expires_at else None,
        'createdAt': share.created_at.isoformat(),
        **resource,
    }


def _contents_payload(contents: FolderContents) -> dict[str, Any]:
    return {
        'folder': (
            _folder_payload(contents.folder)
            if contents.folder is not None
            else None
        ),
        'files': [
            {
                **_file_payload(entry.file),
                'updatedLabel': entry.updated_label,
                'sizeLabel': entry.size_label,
            }
            for entry in contents.files
        ],
        'folders': [
            {
                **_folder_payload(entry.folder),
                'updatedLabel': entry.updated_label,
                'fileCount': entry.file_count,
                'subfolderCount': entry.subfolder_count,
            }
            for entry in contents.folders
        ],
    }


def _download_response(file_instance: File, handle: Any) -> FileResponse:
    return FileResponse(
        handle,
        as_attachment=True,
        filename=file_instance.name,
        content_type=file_instance.mime_type,
    )


@api_view('GET')
def list_files(request: HttpRequest, identity: Identity) -> HttpResponse:
    """List a folder (or the root) with the caller's storage usage."""
    folder_id = parse_optional_id(request.GET.get('folderId'), 'folderId')
    contents = StorageService().list_folder_contents(identity.user, folder_id)
    usage = get_usage(identity.user)
    return JsonResponse({
        **_contents_payload(contents),
        'totalSize': usage.used_bytes,
        'maxStorage': usage.quota_bytes,
    })


@api_view('POST')
def upload_files(request: HttpRequest, identity: Identity) -> HttpResponse:
    """Upload one or more files sent as multipart ``files``.

    Failed files are reported alongside stored ones. When nothing was
    stored, the response carries the most severe failure status.
    """
    uploads = request.FILES.getlist('files') or request.FILES.getlist('file')
    if not uploads:
        raise InvalidOperationError('No files provided')

    folder_id = parse_optional_id(request.POST.get('folderId'), 'folderId')
    result = StorageService().upload_files(
        identity.user,
        uploads,
        folder_id=folder_id,
        ip_address=get_client_ip(request),
    )

    status = HTTPStatus.OK
    if result.failures and not result.uploaded:
        status = max(error_status(failure.error) for failure in result.failures)

    return JsonResponse(
        {
            'files': [_file_payload(stored) for stored in result.uploaded],
            'failures': [
                {
                    'name': failure.name,
                    'reason': failure.reason,
                    'error': failure.message,
                }
                for failure in result.failures
            ],
        },
        status=status,
    )


@api_view('GET')
def download_file(
    request: HttpRequest,
    identity: Identity,
    file_id: int,
) -> HttpResponse:
    """Stream a file the caller may read."""
    file_instance, handle = StorageService().open_file(
        identity.user,
        file_id,
        ip_address=get_client_ip(request),
    )
    return _download_response(file_instance, handle)


@api_view('DELETE')
def delete_file(
    request: HttpRequest,
    identity: Identity,
    file_id: int,
) -> HttpResponse:
    """Delete a file; administrators pass ``?admin=1`` for any file."""
    StorageService().delete_file(
        identity.user,
        file_id,
        ip_address=get_client_ip(request),
        as_admin=request.GET.get('admin') in {'1', 'true'},
    )
    return JsonResponse({'message': 'File deleted successfully'})


@api_view('POST', 'DELETE')
def folders(request: HttpRequest, identity: Identity) -> HttpResponse:
    """Create a folder (POST) or delete a folder tree (DELETE ?id=)."""
    service = StorageService()

    if request.method == 'DELETE':
        folder_id = parse_optional_id(request.GET.get('id'), 'id')
        if folder_id is None:
            raise InvalidOperationError('Folder ID is required')
        service.delete_folder(identity.user, folder_id)
        return JsonResponse({'message': 'Folder deleted successfully'})

    payload = parse_json_body(request)
    name = payload.get('name')
    if not isinstance(name, str):
        raise InvalidOperationError('Folder name is required')

    folder = service.create_folder(
        identity.user,
        name,
        parse_optional_id(payload.get('parentId'), 'parentId'),
    )
    return JsonResponse(_folder_payload(folder), status=HTTPStatus.CREATED)


@api_view('POST')
def create_share(request: HttpRequest, identity: Identity) -> HttpResponse:
    """Share a file or folder with another user."""
    payload = parse_json_body(request)

    share_type = payload.get('type')
    resource_id = parse_optional_id(payload.get('id'), 'id')
    recipient_id = parse_optional_id(
        payload.get('sharedWithId'),
        'sharedWithId',
    )
    permission = payload.get('permissions')
    if resource_id is None or recipient_id is None or not permission:
        raise InvalidOperationError('Missing required fields')
    if share_type not in _SHARE_TYPES:
        raise InvalidOperationError('Invalid share type')

    expires_at = parse_optional_datetime(payload.get('expiresAt'), 'expiresAt')
    share_operation = share_file if share_type == 'file' else share_folder
    share = share_operation(
        identity.user,
        resource_id,
        recipient_id,
        str(permission),
        expires_at=expires_at,
        ip_address=get_client_ip(request),
    )
    return JsonResponse(
        {
            'message': f'{share_type} shared successfully',
            'share': _share_payload(share),
        },
        status=HTTPStatus.CREATED,
    )


@api_view('GET', public=True)
def open_share_link(request: HttpRequest, token: str) -> HttpResponse:
    """Follow an external link: download a file or list a folder."""
    share = resolve_share_link(token)
    service = StorageService()

    if isinstance(share, SharedFile):
        file_instance, handle = service.open_file(
            share.file.owner,
            share.file_id,
            ip_address=get_client_ip(request),
        )
        return _download_response(file_instance, handle)

    contents = service.list_folder_contents(
        share.folder.owner,
        share.folder_id,
    )
    return JsonResponse(_contents_payload(contents))


@api_view('GET')
def shared_with_me(request: HttpRequest, identity: Identity) -> HttpResponse:
    """List active shares granted to the caller."""
    received = list_shared_with(identity.user)
    return JsonResponse({
        'files': [_share_payload(share) for share in received.files],
        'folders': [_share_payload(share) for share in received.folders],
    })


@api_view('GET', admin_only=True)
def storage_overview(request: HttpRequest, identity: Identity) -> HttpResponse:
    """System-wide and per-user storage statistics."""
    overview = get_storage_overview()
    return JsonResponse({
        'totalStorage': overview.total_bytes,
        'usedStorage': overview.used_bytes,
        'availableStorage': overview.available_bytes,
        'utilizationPercentage': round(overview.utilization_percentage, 2),
        'totalUsers': overview.total_users,
        'activeUsers': overview.active_users,
        'users': [
            {
                'id': row.user_id,
                'name': row.name,
                'email': row.email,
                'employeeId': row.employee_id,
                'storageUsed': row.used_bytes,
                'storageQuota': row.quota_bytes,
                'usagePercentage': round(row.usage_percentage, 2),
                'fileCount': row.file_count,
                'oldFiles': row.old_files,
                'lastActive': (
                    row.last_active.isoformat() if row.last_active else None
                ),
            }
            for row in overview.users
        ],
    })


@api_view('GET', admin_only=True)
def storage_stats(request: HttpRequest, identity: Identity) -> HttpResponse:
    """Storage envelope divided among users."""
    distribution = get_storage_distribution()
    return JsonResponse({
        'totalStorage': distribution.total_bytes,
        'usedStorage': distribution.used_bytes,
        'users': [
            {
                'id': share.user_id,
                'name': share.name,
                'email': share.email,
                'storageUsed': share.used_bytes,
                'storageQuota': share.quota_bytes,
                'fileCount': share.file_count,
            }
            for share in distribution.users
        ],
    })
