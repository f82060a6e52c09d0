"""Tests for the local filesystem storage backend."""

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

from server.apps.files.infrastructure.storage import LocalFileStorage


def test_save_writes_under_media_root(media_root):
    """Test saved files land under the configured root."""
    saved_name = default_storage.save('7/hello.txt', ContentFile(b'hello'))

    assert (media_root / saved_name).read_bytes() == b'hello'


def test_rollback_upload_removes_file(media_root):
    """Test rollback deletes written bytes."""
    saved_name = default_storage.save('7/rollback.txt', ContentFile(b'x'))

    default_storage.rollback_upload(saved_name)

    assert not (media_root / saved_name).exists()


def test_rollback_upload_tolerates_missing_file():
    """Test rollback of an absent file does not raise."""
    default_storage.rollback_upload('7/never-written.txt')


def test_make_directory_is_idempotent(media_root):
    """Test directories are created with parents and may exist."""
    first = default_storage.make_directory('7/a/b')
    second = default_storage.make_directory('7/a/b')

    assert first == second
    assert (media_root / '7' / 'a' / 'b').is_dir()


def test_remove_directory_removes_tree(media_root):
    """Test a directory is removed with its contents."""
    default_storage.make_directory('7/tree/nested')
    default_storage.save('7/tree/nested/file.txt', ContentFile(b'data'))

    default_storage.remove_directory('7/tree')

    assert not (media_root / '7' / 'tree').exists()


def test_remove_directory_missing_is_noop():
    """Test removing an absent directory does not raise."""
    default_storage.remove_directory('7/absent')


def test_rollback_directory_removes_tree(media_root):
    """Test folder rollback removes the created directory."""
    default_storage.make_directory('7/created')

    default_storage.rollback_directory('7/created')

    assert not (media_root / '7' / 'created').exists()


def test_delete_missing_file_is_noop(caplog):
    """Test deleting a file that is already gone does not raise."""
    default_storage.delete('7/already-gone.txt')

    assert 'Removed file from disk: 7/already-gone.txt' in caplog.text


def test_save_picks_free_name_when_taken(media_root):
    """Test a taken name gets a random suffix instead of overwriting."""
    first = default_storage.save('7/same.txt', ContentFile(b'one'))
    second = default_storage.save('7/same.txt', ContentFile(b'two'))

    assert first != second
    assert (media_root / first).read_bytes() == b'one'
    assert (media_root / second).read_bytes() == b'two'


def test_rollback_upload_logs_orphan(monkeypatch, caplog):
    """Test a failed rollback is logged and not raised."""
    storage = LocalFileStorage()

    def failing_delete(name):
        raise PermissionError('read-only disk')

    monkeypatch.setattr(storage, 'delete', failing_delete)

    storage.rollback_upload('7/stuck.txt')

    assert 'orphaned file: 7/stuck.txt' in caplog.text
