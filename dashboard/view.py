"""Volunteer dashboard view state: events, saved ids, search and tags."""
import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from dashboard.collaborators import Prompter, SessionProvider
from dashboard.config import Settings
from dashboard.reconciler import PollingLoop, Reconciler
from dashboard.registration import RegistrationOutcome, RegistrationWorkflow
from dashboard.saved_events import SavedEventsToggler
from processor.event_processor import EventProcessor
from processor.models import TAG_OPTIONS, Event
from storage.errors import StoreError, StoreReadError
from storage.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class EventCard:
    """Display props handed to the event card component."""
    event_id: str
    title: str
    date: str
    time: str
    location: str
    description: str
    tags: List[str]
    cover_photo: Optional[str]
    location_coordinates: Optional[Dict[str, float]]
    volunteer_count: Optional[int]
    max_volunteers: Optional[int]
    canceled: bool
    show_full_slot: bool
    can_register: bool
    can_save: bool
    is_saved: bool


class DashboardView:
    """
    In-memory state of one dashboard view.

    Every piece of state here can be rebuilt from the record store. User
    actions and polling ticks take the same lock, so store operations from
    one view never overlap.
    """

    def __init__(
        self,
        record_store: RecordStore,
        session: SessionProvider,
        prompter: Prompter,
        settings: Optional[Settings] = None
    ):
        self.record_store = record_store
        self.session = session
        self.prompter = prompter
        self.settings = settings or Settings()

        self.processor = EventProcessor(self.settings.default_max_volunteers)
        self.reconciler = Reconciler(record_store, self.processor)
        self.registration = RegistrationWorkflow(
            record_store,
            session,
            prompter,
            reconciler=self.reconciler,
            on_events_refreshed=self._replace_events
        )
        self.saved_events = SavedEventsToggler(record_store)

        self.events: List[Event] = []
        self.saved_ids: List[str] = []
        self.search_text = ''
        self.tag_filter: List[str] = []
        self.tag_options = list(TAG_OPTIONS)

        self._lock = threading.RLock()
        self._closed = False
        self._loop = PollingLoop(self.settings.poll_interval_seconds, self.tick)

    @property
    def welcome_name(self) -> str:
        user = self.session.current_user
        return (user.first_name if user else '') or 'Volunteer'

    # Lifecycle

    def load(self) -> None:
        """Initial load; unreadable collections start out empty."""
        with self._lock:
            try:
                self.events = self.reconciler.reconcile_counts().events
            except StoreReadError as e:
                logger.warning(f"Error loading events, starting empty: {e}")
                self.events = []

            owner = self._saved_owner()
            if owner is None:
                return
            try:
                self.saved_ids = self.reconciler.read_saved_ids(owner)
            except StoreReadError as e:
                logger.warning(f"Error loading saved events, starting empty: {e}")
                self.saved_ids = []

    def start(self) -> None:
        self.load()
        self._closed = False
        self._loop.start()

    def stop(self) -> None:
        with self._lock:
            self._closed = True
        self._loop.stop()

    def __enter__(self) -> 'DashboardView':
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def tick(self) -> None:
        """One reconciliation pass over counts and the saved list."""
        with self._lock:
            if self._closed:
                return

            try:
                result = self.reconciler.reconcile_counts()
                self.events = result.events
            except StoreReadError as e:
                logger.error(f"Error checking for volunteer updates: {e}")

            owner = self._saved_owner()
            if owner is None:
                return
            try:
                saved_ids = self.reconciler.read_saved_ids(owner)
            except StoreReadError as e:
                logger.error(f"Error checking for saved updates: {e}")
                return
            if saved_ids != self.saved_ids:
                logger.debug(f"Updating saved ids: {saved_ids}")
                self.saved_ids = saved_ids

    # Search and tags

    def set_search(self, text: str) -> None:
        self.search_text = text

    def toggle_tag(self, tag: str) -> None:
        if tag in self.tag_filter:
            self.tag_filter = [t for t in self.tag_filter if t != tag]
        else:
            self.tag_filter = self.tag_filter + [tag]

    def clear_tags(self) -> None:
        self.tag_filter = []

    def visible_events(self) -> List[Event]:
        return self.processor.filter_events(
            self.events, self.search_text, self.tag_filter
        )

    def cards(self) -> List[EventCard]:
        return [self._card(event) for event in self.visible_events()]

    # Actions

    def toggle_save(self, event: Event) -> Optional[bool]:
        """
        Save or unsave an event for the current user.

        Returns:
            True if now saved, False if removed, None if the toggle failed
        """
        with self._lock:
            owner = self._saved_owner()
            if owner is None:
                self.prompter.notify('Error', 'Please log in to save events.')
                return None
            try:
                result = self.saved_events.toggle(event, owner, self.saved_ids)
            except StoreError as e:
                logger.error(f"Error saving event: {e}", exc_info=True)
                self.prompter.notify('Error', 'Failed to update saved events. Please try again.')
                return None
            self.saved_ids = result.saved_ids
            return result.saved

    def register(self, event: Event) -> Optional[RegistrationOutcome]:
        """Register action of an event card; full events are closed."""
        if event.canceled:
            return None
        if event.is_full:
            self.prompter.notify(
                'Event Full',
                'This event has reached its volunteer limit and is now closed.'
            )
            return None
        return self.on_event_selected(event)

    def on_event_selected(self, event: Event) -> RegistrationOutcome:
        with self._lock:
            return self.registration.on_event_selected(event)

    def _replace_events(self, events: List[Event]) -> None:
        with self._lock:
            self.events = events

    def _saved_owner(self) -> Optional[str]:
        user = self.session.current_user
        if user is not None:
            return user.email
        if self.record_store.shared_saved_list:
            # The legacy key ignores the owner
            return ''
        return None

    def _card(self, event: Event) -> EventCard:
        canceled = bool(event.canceled)
        full = event.is_full
        return EventCard(
            event_id=event.id,
            title=event.title,
            date=event.date,
            time=event.time,
            location=event.location,
            description=event.description,
            tags=list(event.tags or []),
            cover_photo=event.cover_photo,
            location_coordinates=event.location_coordinates,
            volunteer_count=event.current_volunteers,
            max_volunteers=event.max_volunteers,
            canceled=canceled,
            show_full_slot=not canceled and full,
            can_register=not canceled and not full,
            can_save=not canceled,
            is_saved=event.id in self.saved_ids
        )
