"""Per-user saved event list."""
import logging
from dataclasses import dataclass
from typing import List

from processor.models import Event
from storage.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class ToggleResult:
    """Saved state after a toggle."""
    saved: bool
    saved_ids: List[str]


class SavedEventsToggler:
    """Adds or removes event snapshots in a user's saved list."""

    def __init__(self, record_store: RecordStore):
        self.record_store = record_store

    def toggle(self, event: Event, user_email: str, saved_ids: List[str]) -> ToggleResult:
        """
        Save an event, or unsave it if it is already saved.

        Saving appends a full snapshot to the end of the list; unsaving
        removes the entry with the same id. The stored list is rewritten
        as a whole.

        Args:
            event: Event to toggle
            user_email: Owner of the saved list
            saved_ids: Saved ids currently held in memory

        Returns:
            ToggleResult with the new saved state and in-memory ids

        Raises:
            StoreReadError: If the saved list cannot be read
            StoreWriteError: If the saved list cannot be written
        """
        items = self.record_store.get_saved_items(user_email)
        logger.debug(f"Current saved events: {len(items)}")

        index = next(
            (
                i for i, item in enumerate(items)
                if isinstance(item, dict) and str(item.get('id')) == event.id
            ),
            None
        )

        if index is None:
            items.append(self.record_store.snapshot_event(event))
            self.record_store.put_saved_items(user_email, items)
            logger.info(f"Saved event {event.id}")
            ids = [i for i in saved_ids if i != event.id] + [event.id]
            return ToggleResult(saved=True, saved_ids=ids)

        del items[index]
        self.record_store.put_saved_items(user_email, items)
        logger.info(f"Removed event {event.id} from saved events")
        return ToggleResult(
            saved=False,
            saved_ids=[i for i in saved_ids if i != event.id]
        )
