"""Typed access to the dashboard collections in the shared key-value store."""
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from processor.models import (
    STATUS_PENDING,
    Event,
    PendingVolunteerRequest,
    Volunteer,
)
from storage.errors import DuplicateRequestError, StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)

EVENTS_KEY = 'events'
VOLUNTEERS_KEY = 'volunteers'
PENDING_VOLUNTEERS_KEY = 'pendingVolunteers'
SAVED_EVENTS_KEY = 'savedEvents'

# Wire name -> model attribute, for fields the Event model knows about
_EVENT_FIELDS = {
    'id': 'id',
    'title': 'title',
    'date': 'date',
    'time': 'time',
    'description': 'description',
    'location': 'location',
    'volunteerCategories': 'volunteer_categories',
    'locationCoordinates': 'location_coordinates',
    'coverPhoto': 'cover_photo',
    'canceled': 'canceled',
    'tags': 'tags',
    'currentVolunteers': 'current_volunteers',
    'maxVolunteers': 'max_volunteers',
}


class KeyValueBackend(Protocol):
    """Raw string store: atomic per key, no cross-key transactions."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class RecordStore:
    """Typed get/put over the events, volunteers and request collections."""

    def __init__(
        self,
        backend: KeyValueBackend,
        shared_saved_list: bool = False,
        enforce_unique_pending: bool = False
    ):
        """
        Initialize the record store.

        Args:
            backend: Key-value backend holding the collections
            shared_saved_list: Use the legacy unscoped ``savedEvents`` key
                for every user instead of one list per email
            enforce_unique_pending: Reject a second pending request for the
                same event and email
        """
        self.backend = backend
        self.shared_saved_list = shared_saved_list
        self.enforce_unique_pending = enforce_unique_pending

    # Events

    def get_events(self) -> List[Event]:
        return self._read_collection(EVENTS_KEY, self._item_to_event)

    def put_event_counts(self, events: List[Event]) -> int:
        """
        Write cached volunteer counts into the stored events collection.

        Only ``currentVolunteers`` and ``maxVolunteers`` of items whose id
        matches one of ``events`` are touched. Every other item and field,
        including items the dashboard cannot parse, is written back as read.

        Args:
            events: Events carrying the counts to persist

        Returns:
            Number of stored items updated

        Raises:
            StoreReadError: If the existing collection cannot be read
            StoreWriteError: If the collection cannot be written
        """
        counts = {
            event.id: (event.current_volunteers, event.max_volunteers)
            for event in events
        }
        items = self._read_raw(EVENTS_KEY)

        updated = 0
        for item in items:
            if not isinstance(item, dict) or item.get('id') is None:
                continue
            event_id = str(item['id'])
            if event_id not in counts:
                continue
            current, maximum = counts[event_id]
            if current is not None:
                item['currentVolunteers'] = current
            if maximum is not None:
                item['maxVolunteers'] = maximum
            updated += 1

        if updated:
            self._write_collection(EVENTS_KEY, items)
        return updated

    # Volunteers (read-only for the dashboard)

    def get_volunteers(self) -> List[Volunteer]:
        return self._read_collection(VOLUNTEERS_KEY, self._item_to_volunteer)

    # Pending requests

    def get_pending_requests(self) -> List[PendingVolunteerRequest]:
        return self._read_collection(PENDING_VOLUNTEERS_KEY, self._item_to_request)

    def append_pending_request(self, request: PendingVolunteerRequest) -> None:
        """
        Append a request to the pendingVolunteers collection.

        The collection is read, extended and rewritten as a whole; a
        concurrent writer between the read and the write loses its update.

        Args:
            request: New request to append

        Raises:
            StoreReadError: If the existing collection cannot be read
            DuplicateRequestError: If uniqueness is enforced and a pending
                request for the same event and email exists
            StoreWriteError: If the collection cannot be written
        """
        items = self._read_raw(PENDING_VOLUNTEERS_KEY)

        if self.enforce_unique_pending:
            for item in items:
                if (isinstance(item, dict)
                        and item.get('eventId') == request.event_id
                        and item.get('volunteerEmail') == request.volunteer_email
                        and item.get('status') == STATUS_PENDING):
                    raise DuplicateRequestError(
                        f"Pending request already exists for event "
                        f"{request.event_id} and {request.volunteer_email}"
                    )

        items.append(self._request_to_item(request))
        self._write_collection(PENDING_VOLUNTEERS_KEY, items)
        logger.info(
            f"Appended pending request {request.id} for event {request.event_id}"
        )

    # Saved events

    def saved_events_key(self, user_email: str) -> str:
        if self.shared_saved_list:
            return SAVED_EVENTS_KEY
        return f"{SAVED_EVENTS_KEY}:{user_email}"

    def get_saved_events(self, user_email: str) -> List[Event]:
        return self._read_collection(
            self.saved_events_key(user_email), self._item_to_event
        )

    def get_saved_items(self, user_email: str) -> List[Any]:
        """Raw saved snapshots, for rewrites that must keep every entry."""
        return self._read_raw(self.saved_events_key(user_email))

    def put_saved_items(self, user_email: str, items: List[Any]) -> None:
        self._write_collection(self.saved_events_key(user_email), items)

    def snapshot_event(self, event: Event) -> Dict[str, Any]:
        """
        Build the saved-list snapshot of an event.

        Args:
            event: Event as displayed

        Returns:
            Wire item with tags and volunteerCategories defaulted to lists
        """
        item = self._event_to_item(event)
        item['tags'] = list(event.tags or [])
        item['volunteerCategories'] = list(event.volunteer_categories or [])
        return item

    # Raw collection access

    def _read_raw(self, key: str) -> List[Any]:
        """
        Read and parse a collection.

        Args:
            key: Collection name

        Returns:
            Parsed JSON array, or an empty list if the key is absent

        Raises:
            StoreReadError: If the backend fails or the value is not a
                JSON array
        """
        raw = self.backend.get_item(key)
        if raw is None:
            return []

        try:
            items = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Malformed JSON in collection '{key}': {e}")
            raise StoreReadError(f"Malformed JSON in '{key}'") from e

        if not isinstance(items, list):
            logger.warning(f"Collection '{key}' is not a JSON array")
            raise StoreReadError(f"Collection '{key}' is not a JSON array")

        return items

    def _read_collection(self, key: str, convert: Callable[[Any], Any]) -> list:
        records = []
        for item in self._read_raw(key):
            record = convert(item)
            if record is not None:
                records.append(record)
        return records

    def _write_collection(self, key: str, items: List[Any]) -> None:
        try:
            value = json.dumps(items)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to encode collection '{key}': {e}")
            raise StoreWriteError(f"Failed to encode '{key}'") from e
        self.backend.set_item(key, value)

    # Conversion

    def _item_to_event(self, item: Any) -> Optional[Event]:
        """
        Convert a stored item to an Event object.

        Args:
            item: Decoded JSON item

        Returns:
            Event object or None if conversion fails
        """
        try:
            kwargs = {
                attr: item[wire]
                for wire, attr in _EVENT_FIELDS.items()
                if item.get(wire) is not None
            }
            kwargs['id'] = str(item['id'])
            kwargs.setdefault('title', '')
            kwargs['extra'] = {
                k: v for k, v in item.items() if k not in _EVENT_FIELDS
            }
            return Event(**kwargs)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to convert item to Event: {e}")
            return None

    def _event_to_item(self, event: Event) -> Dict[str, Any]:
        item = dict(event.extra)
        for wire, attr in _EVENT_FIELDS.items():
            value = getattr(event, attr)
            if value is not None:
                item[wire] = value
        return item

    def _item_to_volunteer(self, item: Any) -> Optional[Volunteer]:
        """
        Convert a stored item to a Volunteer object.

        Args:
            item: Decoded JSON item

        Returns:
            Volunteer object or None if conversion fails
        """
        try:
            return Volunteer(
                id=str(item['id']),
                name=item.get('name', ''),
                email=item['email'],
                phone=item.get('phone', ''),
                assigned_events=[
                    str(event_id) for event_id in item.get('assignedEvents') or []
                ],
                status=item.get('status', 'active')
            )
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to convert item to Volunteer: {e}")
            return None

    def _item_to_request(self, item: Any) -> Optional[PendingVolunteerRequest]:
        """
        Convert a stored item to a PendingVolunteerRequest object.

        Args:
            item: Decoded JSON item

        Returns:
            PendingVolunteerRequest object or None if conversion fails
        """
        try:
            return PendingVolunteerRequest(
                id=str(item['id']),
                event_id=str(item['eventId']),
                event_title=item.get('eventTitle', ''),
                volunteer_name=item.get('volunteerName', ''),
                volunteer_email=item['volunteerEmail'],
                status=item['status'],
                timestamp=int(item.get('timestamp', 0)),
                position=item.get('position', '')
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Failed to convert item to PendingVolunteerRequest: {e}")
            return None

    def _request_to_item(self, request: PendingVolunteerRequest) -> Dict[str, Any]:
        return {
            'id': request.id,
            'eventId': request.event_id,
            'eventTitle': request.event_title,
            'volunteerName': request.volunteer_name,
            'volunteerEmail': request.volunteer_email,
            'status': request.status,
            'timestamp': request.timestamp,
            'position': request.position,
        }
