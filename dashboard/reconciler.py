"""Periodic reconciliation of derived dashboard state with the record store."""
import logging
import threading
from typing import Callable, List, Optional

from processor.event_processor import EventProcessor
from processor.models import Event, ReconcileResult
from storage.errors import StoreError
from storage.record_store import RecordStore

logger = logging.getLogger(__name__)


class Reconciler:
    """Re-reads the store and re-derives volunteer counts and saved ids."""

    def __init__(
        self,
        record_store: RecordStore,
        processor: Optional[EventProcessor] = None
    ):
        """
        Initialize the reconciler.

        Args:
            record_store: Store holding the dashboard collections
            processor: Event processor used for derivation
        """
        self.record_store = record_store
        self.processor = processor or EventProcessor()

    def reconcile_counts(self) -> ReconcileResult:
        """
        Re-derive volunteer counts for all events and write them back.

        The write-back is skipped when every cached count already matches.
        A failed write is reported in the result; the derived events are
        still returned.

        Returns:
            ReconcileResult with the derived events

        Raises:
            StoreReadError: If events or volunteers cannot be read
        """
        stored = self.record_store.get_events()
        volunteers = self.record_store.get_volunteers()
        derived = self.processor.derive(stored, volunteers)

        stale = [
            after for before, after in zip(stored, derived)
            if self._counts_differ(before, after)
        ]
        return self._write_back(derived, stale)

    def refresh_event_count(self, event_id: str) -> ReconcileResult:
        """
        Re-derive volunteer counts after a change to one event.

        Every event is derived from the volunteers just read, so the
        returned list never carries cached counts. Only the target event's
        counts are written back.

        Args:
            event_id: Event to refresh

        Returns:
            ReconcileResult with all events derived

        Raises:
            StoreReadError: If events or volunteers cannot be read
        """
        stored = self.record_store.get_events()
        volunteers = self.record_store.get_volunteers()
        derived = self.processor.derive(stored, volunteers)

        stale = [
            after for before, after in zip(stored, derived)
            if after.id == event_id and self._counts_differ(before, after)
        ]
        return self._write_back(derived, stale)

    def read_saved_ids(self, user_email: str) -> List[str]:
        """
        Read the ids of the user's saved events, in saved order.

        Raises:
            StoreReadError: If the saved list cannot be read
        """
        return [event.id for event in self.record_store.get_saved_events(user_email)]

    def _write_back(self, events: List[Event], stale: List[Event]) -> ReconcileResult:
        changed = len(stale)
        if not changed:
            return ReconcileResult(events=events, changed=0, written=False)

        try:
            self.record_store.put_event_counts(stale)
        except StoreError as e:
            error_msg = f"Failed to write back volunteer counts: {e}"
            logger.error(error_msg)
            return ReconcileResult(
                events=events, changed=changed, written=False, errors=[error_msg]
            )

        logger.info(f"Wrote back volunteer counts for {changed} events")
        return ReconcileResult(events=events, changed=changed, written=True)

    @staticmethod
    def _counts_differ(before: Event, after: Event) -> bool:
        return (
            before.current_volunteers != after.current_volunteers
            or before.max_volunteers != after.max_volunteers
        )


class PollingLoop:
    """
    Runs a callback on a fixed interval in a background thread.

    Exceptions raised by the callback are logged and the loop waits for the
    next tick. ``stop()`` returns only after any running callback finished.
    """

    def __init__(
        self,
        interval_seconds: float,
        callback: Callable[[], None],
        name: str = 'reconciliation'
    ):
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info(
            f"Started {self.name} loop every {self.interval_seconds:.3f}s"
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.info(f"Stopped {self.name} loop")

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Error in {self.name} tick: {e}", exc_info=True)
