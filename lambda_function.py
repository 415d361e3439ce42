"""AWS Lambda handler for scheduled volunteer count reconciliation."""
import json
import logging
import os
import time
from typing import Dict, Any

from dashboard.config import BACKEND_DYNAMODB, Settings, build_record_store
from dashboard.reconciler import Reconciler
from processor.event_processor import EventProcessor


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Re-derive volunteer counts for every event and write them back.

    Runs one count pass against the shared record store, so that readers
    of the cached ``currentVolunteers`` column converge even while no
    dashboard is open.

    Args:
        event: EventBridge event payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    environ = dict(os.environ)
    environ.setdefault('STORE_BACKEND', BACKEND_DYNAMODB)
    settings = Settings.from_env(environ)

    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Reconciliation started",
        extra={
            'store_backend': settings.store_backend,
            'table_name': settings.table_name
        }
    )

    try:
        record_store = build_record_store(settings)
        reconciler = Reconciler(
            record_store,
            EventProcessor(settings.default_max_volunteers)
        )

        logger.info("Re-deriving volunteer counts")
        result = reconciler.reconcile_counts()

        duration = time.time() - start_time

        if result.errors:
            logger.error(
                "Reconciliation could not write back counts",
                extra={'errors': result.errors}
            )
            return {
                'statusCode': 500,
                'body': json.dumps({
                    'message': 'Failed to write back volunteer counts',
                    'errors': result.errors,
                    'note': 'Previous counts remain in the store',
                    'duration_seconds': round(duration, 2)
                })
            }

        logger.info(
            "Reconciliation completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'events_total': len(result.events),
                'events_changed': result.changed,
                'written': result.written
            }
        )

        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Reconciliation completed successfully',
                'statistics': {
                    'events_total': len(result.events),
                    'events_changed': result.changed,
                    'written': result.written,
                    'duration_seconds': round(duration, 2)
                }
            })
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Reconciliation failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Reconciliation failed',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }
