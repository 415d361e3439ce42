"""Event processor for deriving volunteer counts and filtering events."""
import dataclasses
import logging
from collections import Counter
from typing import Iterable, List, Optional

from processor.models import DEFAULT_MAX_VOLUNTEERS, Event, Volunteer

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor for derived event state and the display filter."""

    def __init__(self, default_max_volunteers: int = DEFAULT_MAX_VOLUNTEERS):
        """
        Initialize the processor.

        Args:
            default_max_volunteers: Capacity used for events without
                maxVolunteers (default: 10)
        """
        self.default_max_volunteers = default_max_volunteers

    def derive(
        self,
        events: List[Event],
        volunteers: List[Volunteer]
    ) -> List[Event]:
        """
        Compute currentVolunteers and maxVolunteers for every event.

        Stored counts are ignored; the count is always taken from the
        volunteers' assigned events.

        Args:
            events: Events as read from the store
            volunteers: Volunteers as read from the store

        Returns:
            New list of Event objects with derived counts, in input order
        """
        counts = self.count_assignments(volunteers)
        derived = [self._with_counts(event, counts[event.id]) for event in events]

        logger.debug(
            f"Derived volunteer counts for {len(derived)} events from "
            f"{len(volunteers)} volunteers"
        )
        return derived

    def derive_event(self, event: Event, volunteers: List[Volunteer]) -> Event:
        """
        Compute derived counts for a single event.

        Args:
            event: Event to re-derive
            volunteers: Volunteers as read from the store

        Returns:
            New Event object with derived counts
        """
        count = sum(
            1 for volunteer in volunteers
            if event.id in (volunteer.assigned_events or [])
        )
        return self._with_counts(event, count)

    def count_assignments(self, volunteers: Iterable[Volunteer]) -> Counter:
        """
        Index volunteers by assigned event id.

        Args:
            volunteers: Volunteers as read from the store

        Returns:
            Counter mapping event id to number of assigned volunteers
        """
        counts = Counter()
        for volunteer in volunteers:
            # A volunteer counts once per event even if listed twice
            counts.update(set(volunteer.assigned_events or []))
        return counts

    def filter_events(
        self,
        events: List[Event],
        search_text: Optional[str] = '',
        tag_filter: Optional[Iterable[str]] = None
    ) -> List[Event]:
        """
        Produce the display list for the dashboard.

        Canceled events are dropped, then the title search and the tag
        filter are applied, then events are ordered newest first.

        Args:
            events: Derived events
            search_text: Case-insensitive title substring
            tag_filter: Tags that every kept event must carry

        Returns:
            Filtered list sorted by numeric id, descending
        """
        filtered = [event for event in events if not event.canceled]

        query = (search_text or '').strip().lower()
        if query:
            filtered = [
                event for event in filtered
                if query in (event.title or '').lower()
            ]

        required_tags = list(tag_filter or [])
        if required_tags:
            filtered = [
                event for event in filtered
                if all(tag in (event.tags or []) for tag in required_tags)
            ]

        filtered.sort(key=self._id_sort_key, reverse=True)
        return filtered

    def _with_counts(self, event: Event, count: int) -> Event:
        return dataclasses.replace(
            event,
            current_volunteers=count,
            max_volunteers=event.max_volunteers or self.default_max_volunteers
        )

    @staticmethod
    def _id_sort_key(event: Event) -> float:
        # Ids are creation timestamps; anything else sorts last
        try:
            return float(event.id)
        except (TypeError, ValueError):
            return float('-inf')
