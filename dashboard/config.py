"""Environment-driven settings for the volunteer dashboard."""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from processor.models import DEFAULT_MAX_VOLUNTEERS
from storage.dynamodb_manager import DynamoDBManager
from storage.file_store import FileKeyValueStore
from storage.record_store import RecordStore

logger = logging.getLogger(__name__)

BACKEND_DYNAMODB = 'dynamodb'
BACKEND_FILE = 'file'


def _flag(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Settings:
    """Dashboard settings, read from environment variables."""
    store_backend: str = BACKEND_FILE
    table_name: str = 'volunteer-dashboard'
    aws_region: Optional[str] = None
    store_path: str = '.dashboard-store'
    poll_interval_ms: int = 1000
    default_max_volunteers: int = DEFAULT_MAX_VOLUNTEERS
    log_level: str = 'INFO'
    shared_saved_list: bool = False
    enforce_unique_pending: bool = False

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Build settings from the environment.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Settings instance
        """
        env = os.environ if environ is None else environ
        return cls(
            store_backend=env.get('STORE_BACKEND', BACKEND_FILE).lower(),
            table_name=env.get('TABLE_NAME', 'volunteer-dashboard'),
            aws_region=env.get('AWS_REGION') or None,
            store_path=env.get('STORE_PATH', '.dashboard-store'),
            poll_interval_ms=int(env.get('POLL_INTERVAL_MS', '1000')),
            default_max_volunteers=int(
                env.get('DEFAULT_MAX_VOLUNTEERS', str(DEFAULT_MAX_VOLUNTEERS))
            ),
            log_level=env.get('LOG_LEVEL', 'INFO'),
            shared_saved_list=_flag(env.get('SHARED_SAVED_LIST', 'false')),
            enforce_unique_pending=_flag(env.get('ENFORCE_UNIQUE_PENDING', 'false')),
        )


def build_record_store(settings: Settings) -> RecordStore:
    """
    Wire the configured key-value backend into a RecordStore.

    Args:
        settings: Dashboard settings

    Returns:
        RecordStore over the selected backend

    Raises:
        ValueError: If STORE_BACKEND names an unknown backend
    """
    if settings.store_backend == BACKEND_DYNAMODB:
        backend = DynamoDBManager(
            table_name=settings.table_name,
            region_name=settings.aws_region
        )
    elif settings.store_backend == BACKEND_FILE:
        backend = FileKeyValueStore(settings.store_path)
    else:
        raise ValueError(f"Unknown store backend: {settings.store_backend}")

    logger.info(f"Using {settings.store_backend} record store backend")
    return RecordStore(
        backend,
        shared_saved_list=settings.shared_saved_list,
        enforce_unique_pending=settings.enforce_unique_pending
    )
