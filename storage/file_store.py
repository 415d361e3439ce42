"""File-backed key-value store for local, multi-process use."""
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from storage.errors import StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)


class FileKeyValueStore:
    """
    Key-value store keeping one file per key in a directory.

    Writes go to a temporary file that is renamed over the target, so a
    reader in another process sees either the old or the new value.
    """

    SUFFIX = '.json'

    def __init__(self, directory: str):
        """
        Initialize the store, creating the directory if needed.

        Args:
            directory: Directory holding the key files
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized FileKeyValueStore at: {self.directory}")

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Error reading key '{key}' from {path}: {e}")
            raise StoreReadError(f"Failed to read '{key}'") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix='.tmp-', suffix=self.SUFFIX
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error(f"Error writing key '{key}' to {path}: {e}")
            raise StoreWriteError(f"Failed to write '{key}'") from e

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error(f"Error deleting key '{key}' at {path}: {e}")
            raise StoreWriteError(f"Failed to delete '{key}'") from e

    def _path(self, key: str) -> Path:
        # Keys may contain ':' and '@' (per-user saved lists)
        return self.directory / (quote(key, safe='') + self.SUFFIX)
