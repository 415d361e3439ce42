"""Shared fixtures for dashboard tests."""
import json

import pytest

from processor.models import SessionUser
from storage.file_store import FileKeyValueStore
from storage.record_store import RecordStore


class FakePrompter:
    """Prompter that records notices and answers prompts from presets."""

    def __init__(self, confirm_answer=True, position=None):
        self.confirm_answer = confirm_answer
        self.position = position
        self.notices = []
        self.confirmations = []
        self.position_prompts = []

    def notify(self, title, message):
        self.notices.append((title, message))

    def confirm(self, title, message):
        self.confirmations.append((title, message))
        return self.confirm_answer

    def select_position(self, event, positions):
        self.position_prompts.append((event.id, positions))
        return self.position


@pytest.fixture
def backend(tmp_path):
    """File backend in a temporary directory."""
    return FileKeyValueStore(str(tmp_path / 'store'))


@pytest.fixture
def record_store(backend):
    """RecordStore over the temporary file backend."""
    return RecordStore(backend)


@pytest.fixture
def seed(backend):
    """Write raw JSON collections to the backend."""
    def _seed(key, items):
        backend.set_item(key, json.dumps(items))
    return _seed


@pytest.fixture
def read_raw(backend):
    """Read a raw collection back from the backend."""
    def _read(key):
        raw = backend.get_item(key)
        return None if raw is None else json.loads(raw)
    return _read


@pytest.fixture
def prompter():
    return FakePrompter()


@pytest.fixture
def make_prompter():
    return FakePrompter


@pytest.fixture
def user():
    return SessionUser(first_name='Ana', last_name='Lima', email='a@b.com')
