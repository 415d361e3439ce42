"""Unit tests for the file-backed key-value store."""
from unittest.mock import patch

import pytest

from storage.errors import StoreReadError, StoreWriteError
from storage.file_store import FileKeyValueStore


@pytest.fixture
def store(tmp_path):
    return FileKeyValueStore(str(tmp_path / 'kv'))


def test_creates_directory(tmp_path):
    """Test the store directory is created on init."""
    FileKeyValueStore(str(tmp_path / 'nested' / 'kv'))

    assert (tmp_path / 'nested' / 'kv').is_dir()


def test_get_absent_key(store):
    assert store.get_item('events') is None


def test_set_and_get(store):
    store.set_item('events', '[1, 2]')

    assert store.get_item('events') == '[1, 2]'


def test_overwrite(store):
    store.set_item('events', '[1]')
    store.set_item('events', '[2]')

    assert store.get_item('events') == '[2]'


def test_keys_with_separators(store):
    """Test per-user keys map to distinct files."""
    store.set_item('savedEvents:a@b.com', '["a"]')
    store.set_item('savedEvents:c@d.com', '["c"]')

    assert store.get_item('savedEvents:a@b.com') == '["a"]'
    assert store.get_item('savedEvents:c@d.com') == '["c"]'
    assert store.get_item('savedEvents') is None


def test_shared_between_instances(tmp_path):
    """Test two store instances over one directory see each other's writes."""
    first = FileKeyValueStore(str(tmp_path / 'kv'))
    second = FileKeyValueStore(str(tmp_path / 'kv'))

    first.set_item('volunteers', '[]')

    assert second.get_item('volunteers') == '[]'


def test_no_temp_files_left(store):
    store.set_item('events', '[]')

    assert [p.name for p in store.directory.iterdir()] == ['events.json']


def test_remove(store):
    store.set_item('events', '[]')

    store.remove_item('events')

    assert store.get_item('events') is None


def test_remove_absent(store):
    store.remove_item('events')


def test_read_error(store):
    """Test OSError on read becomes StoreReadError."""
    with patch('pathlib.Path.read_text', side_effect=PermissionError('denied')):
        with pytest.raises(StoreReadError):
            store.get_item('events')


def test_write_error(store):
    """Test OSError on write becomes StoreWriteError and keeps the old value."""
    store.set_item('events', '[1]')

    with patch('storage.file_store.os.replace', side_effect=OSError('disk full')):
        with pytest.raises(StoreWriteError):
            store.set_item('events', '[2]')

    assert store.get_item('events') == '[1]'
    assert [p.name for p in store.directory.iterdir()] == ['events.json']
