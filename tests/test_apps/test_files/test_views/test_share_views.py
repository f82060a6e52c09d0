"""Tests for sharing API views."""

from datetime import timedelta
from http import HTTPStatus

import pytest
from django.urls import reverse
from django.utils import timezone

from server.apps.activity.models import Action, Activity
from server.apps.files.models import Permission, SharedFile, SharedFolder


def _post_share(client, auth, payload):
    return client.post(
        reverse('files:share'),
        payload,
        content_type='application/json',
        **auth,
    )


@pytest.mark.django_db
class TestCreateShare:
    """Tests for the share endpoint."""

    def test_share_file(
        self,
        client,
        user,
        other_user,
        user_auth,
        service,
        make_upload,
    ):
        """Test sharing a file returns the created share."""
        uploaded = service.upload_file(user, make_upload())

        response = _post_share(client, user_auth, {
            'type': 'file',
            'id': uploaded.pk,
            'sharedWithId': other_user.pk,
            'permissions': 'read',
        })

        assert response.status_code == HTTPStatus.CREATED
        share = response.json()['share']
        assert share['type'] == 'file'
        assert share['item']['id'] == uploaded.pk
        assert share['sharedWithId'] == other_user.pk
        assert share['expiresAt'] is None
        assert len(share['externalLink']) == 32

    def test_share_folder_with_expiry(
        self,
        client,
        user,
        other_user,
        user_auth,
        service,
    ):
        """Test folder shares accept an ISO expiry timestamp."""
        folder = service.create_folder(user, 'Team')
        expires_at = timezone.now() + timedelta(days=3)

        response = _post_share(client, user_auth, {
            'type': 'folder',
            'id': folder.pk,
            'sharedWithId': other_user.pk,
            'permissions': 'write',
            'expiresAt': expires_at.isoformat(),
        })

        assert response.status_code == HTTPStatus.CREATED
        share = SharedFolder.objects.get()
        assert share.permission == Permission.WRITE
        assert share.expires_at == expires_at

    def test_share_with_self(
        self,
        client,
        user,
        user_auth,
        service,
        make_upload,
    ):
        """Test sharing with oneself is rejected."""
        uploaded = service.upload_file(user, make_upload())

        response = _post_share(client, user_auth, {
            'type': 'file',
            'id': uploaded.pk,
            'sharedWithId': user.pk,
            'permissions': 'read',
        })

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert SharedFile.objects.count() == 0

    def test_missing_fields(self, client, user_auth):
        """Test incomplete requests are rejected."""
        response = _post_share(client, user_auth, {'type': 'file'})

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json()['error'] == 'Missing required fields'

    def test_invalid_type(self, client, other_user, user_auth):
        """Test unknown resource types are rejected."""
        response = _post_share(client, user_auth, {
            'type': 'drive',
            'id': 1,
            'sharedWithId': other_user.pk,
            'permissions': 'read',
        })

        assert response.status_code == HTTPStatus.BAD_REQUEST

    def test_invalid_expiry(
        self,
        client,
        user,
        other_user,
        user_auth,
        service,
    ):
        """Test unparseable expiry timestamps are rejected."""
        folder = service.create_folder(user, 'Team')

        response = _post_share(client, user_auth, {
            'type': 'folder',
            'id': folder.pk,
            'sharedWithId': other_user.pk,
            'permissions': 'read',
            'expiresAt': 'tomorrow',
        })

        assert response.status_code == HTTPStatus.BAD_REQUEST

    def test_foreign_resource(
        self,
        client,
        user,
        other_user,
        admin_user,
        user_auth,
        service,
        make_upload,
    ):
        """Test only owners may share."""
        uploaded = service.upload_file(other_user, make_upload())

        response = _post_share(client, user_auth, {
            'type': 'file',
            'id': uploaded.pk,
            'sharedWithId': admin_user.pk,
            'permissions': 'read',
        })

        assert response.status_code == HTTPStatus.FORBIDDEN


@pytest.mark.django_db
class TestShareLinks:
    """Tests for following external links."""

    def test_file_link_downloads(
        self,
        client,
        user,
        other_user,
        service,
        make_upload,
    ):
        """Test file links stream the file without credentials."""
        uploaded = service.upload_file(user, make_upload('doc.txt', b'shared'))
        share = SharedFile.objects.create(
            file=uploaded,
            shared_with=other_user,
            external_link='file-link-token',
        )

        response = client.get(
            reverse('files:share-link', args=[share.external_link]),
            REMOTE_ADDR='198.51.100.4',
        )

        assert response.status_code == HTTPStatus.OK
        assert b''.join(response.streaming_content) == b'shared'
        response.close()
        activity = Activity.objects.get(action=Action.DOWNLOAD)
        assert activity.user == user
        assert activity.ip_address == '198.51.100.4'

    def test_folder_link_lists(
        self,
        client,
        user,
        other_user,
        service,
        make_upload,
    ):
        """Test folder links list the folder contents."""
        folder = service.create_folder(user, 'Public')
        service.upload_file(user, make_upload('inside.txt'), folder.pk)
        share = SharedFolder.objects.create(
            folder=folder,
            shared_with=other_user,
            external_link='folder-link-token',
        )

        response = client.get(
            reverse('files:share-link', args=[share.external_link]),
        )

        assert response.status_code == HTTPStatus.OK
        payload = response.json()
        assert payload['folder']['id'] == folder.pk
        assert [item['name'] for item in payload['files']] == ['inside.txt']

    def test_expired_link(self, client, user, other_user, make_file_record):
        """Test expired links are not found."""
        SharedFile.objects.create(
            file=make_file_record(user),
            shared_with=other_user,
            external_link='expired-token',
            expires_at=timezone.now() - timedelta(minutes=1),
        )

        response = client.get(
            reverse('files:share-link', args=['expired-token']),
        )

        assert response.status_code == HTTPStatus.NOT_FOUND
        assert response.json()['error'] == 'Share not found or expired'


@pytest.mark.django_db
def test_shared_with_me(
    client,
    user,
    other_user,
    other_auth,
    service,
    make_upload,
):
    """Test recipients see active shares granted to them."""
    uploaded = service.upload_file(user, make_upload('for-you.txt'))
    SharedFile.objects.create(
        file=uploaded,
        shared_with=other_user,
        external_link='for-you-token',
    )

    response = client.get(reverse('files:shared'), **other_auth)

    assert response.status_code == HTTPStatus.OK
    payload = response.json()
    assert [share['item']['name'] for share in payload['files']] == [
        'for-you.txt',
    ]
    assert payload['folders'] == []
