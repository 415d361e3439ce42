"""Volunteer registration workflow: status checks and position requests."""
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from dashboard.collaborators import Prompter, SessionProvider
from dashboard.reconciler import Reconciler
from processor.models import (
    STATUS_APPROVED,
    STATUS_ERROR,
    STATUS_NONE,
    STATUS_PENDING,
    Event,
    PendingVolunteerRequest,
    SessionUser,
)
from storage.errors import (
    DashboardError,
    DuplicateRequestError,
    StoreError,
    StoreReadError,
)
from storage.record_store import RecordStore

logger = logging.getLogger(__name__)

# Outcomes of on_event_selected
OUTCOME_SUBMITTED = 'submitted'
OUTCOME_AUTH_REQUIRED = 'auth_required'
OUTCOME_ALREADY_APPROVED = 'already_approved'
OUTCOME_ALREADY_PENDING = 'already_pending'
OUTCOME_STATUS_ERROR = 'status_error'
OUTCOME_DECLINED = 'declined'
OUTCOME_CANCELLED = 'cancelled'
OUTCOME_FAILED = 'failed'


class AuthRequiredError(DashboardError):
    """No user is signed in."""


class StatusCheckError(DashboardError):
    """The registration status of a user could not be determined."""


class InvalidPositionError(DashboardError):
    """The chosen position is not offered by the event."""


@dataclass
class RegistrationOutcome:
    """What happened when a user selected an event."""
    outcome: str
    request: Optional[PendingVolunteerRequest] = None


class RegistrationWorkflow:
    """
    Drives the per-user registration state machine for an event.

    A user starts at ``none``; submitting a position appends a ``pending``
    request; an external admin flow moves it to approved (by assigning the
    event to the volunteer record) or rejected. This class never performs
    those transitions.

    Duplicate requests are prevented only by the status check made before
    the confirmation prompt. Two sessions passing the check at the same time
    both append a request unless the record store enforces uniqueness.
    """

    def __init__(
        self,
        record_store: RecordStore,
        session: SessionProvider,
        prompter: Prompter,
        reconciler: Optional[Reconciler] = None,
        on_events_refreshed: Optional[Callable[[List[Event]], None]] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the workflow.

        Args:
            record_store: Store holding the dashboard collections
            session: Provider of the signed-in user
            prompter: Notices, confirmation and position picker
            reconciler: Used to refresh the event's count after a request
            on_events_refreshed: Receives the event list after a refresh
            clock: Time source in seconds, used for request ids
        """
        self.record_store = record_store
        self.session = session
        self.prompter = prompter
        self.reconciler = reconciler or Reconciler(record_store)
        self.on_events_refreshed = on_events_refreshed
        self.clock = clock
        self._last_request_ms = 0

    def check_status(self, event_id: str, user: Optional[SessionUser] = None) -> str:
        """
        Determine the registration status of a user for an event.

        Args:
            event_id: Event to check
            user: User to check, defaults to the session user

        Returns:
            'approved', 'pending', 'none', or 'error' if the store could
            not be read or no user is signed in
        """
        user = user or self.session.current_user
        if user is None:
            logger.warning(f"Status check for event {event_id} without a signed-in user")
            return STATUS_ERROR

        try:
            return self._lookup_status(event_id, user.email)
        except StatusCheckError as e:
            logger.error(f"Error checking volunteer status: {e}")
            return STATUS_ERROR

    def on_event_selected(self, event: Event) -> RegistrationOutcome:
        """
        Start registration for an event.

        Args:
            event: Event the user wants to volunteer for

        Returns:
            RegistrationOutcome describing where the flow stopped
        """
        try:
            user = self._require_user()
        except AuthRequiredError:
            self.prompter.notify('Error', 'Please log in to volunteer for events.')
            return RegistrationOutcome(OUTCOME_AUTH_REQUIRED)

        status = self.check_status(event.id, user)
        if status == STATUS_APPROVED:
            self.prompter.notify('Notice', 'You are already volunteering for this event.')
            return RegistrationOutcome(OUTCOME_ALREADY_APPROVED)
        if status == STATUS_PENDING:
            self.prompter.notify(
                'Notice', 'You already have a pending request for this event.'
            )
            return RegistrationOutcome(OUTCOME_ALREADY_PENDING)
        if status == STATUS_ERROR:
            self.prompter.notify(
                'Error', 'Unable to check volunteer status. Please try again.'
            )
            return RegistrationOutcome(OUTCOME_STATUS_ERROR)

        if not self.prompter.confirm(
            'Register for Event', 'Do you want to register for this event?'
        ):
            return RegistrationOutcome(OUTCOME_DECLINED)

        position = self.prompter.select_position(
            event, list(event.volunteer_categories or [])
        )
        if not position:
            return RegistrationOutcome(OUTCOME_CANCELLED)

        request = self.submit_position(event, user, position)
        if request is None:
            return RegistrationOutcome(OUTCOME_FAILED)
        return RegistrationOutcome(OUTCOME_SUBMITTED, request)

    def submit_position(
        self,
        event: Event,
        user: SessionUser,
        position: str
    ) -> Optional[PendingVolunteerRequest]:
        """
        Submit a pending request for a position and report the result.

        Not idempotent: each call appends a new request.

        Args:
            event: Event being requested
            user: Requesting user
            position: One of the event's volunteer categories

        Returns:
            The stored request, or None if the submission failed
        """
        try:
            request = self.create_request(event, user, position)
        except InvalidPositionError as e:
            logger.warning(str(e))
            self.prompter.notify('Error', 'Please choose one of the listed positions.')
            return None
        except DuplicateRequestError as e:
            logger.warning(str(e))
            self.prompter.notify(
                'Notice', 'You already have a pending request for this event.'
            )
            return None
        except StoreError as e:
            logger.error(f"Error submitting volunteer request: {e}", exc_info=True)
            self.prompter.notify(
                'Error', 'Failed to submit volunteer request. Please try again.'
            )
            return None

        self._refresh_count(event.id)
        self.prompter.notify(
            'Success',
            f"Your volunteer request for {position} has been submitted for "
            f"approval. The admin will review your request."
        )
        return request

    def create_request(
        self,
        event: Event,
        user: SessionUser,
        position: str
    ) -> PendingVolunteerRequest:
        """
        Build a pending request and append it to the store.

        Raises:
            InvalidPositionError: If the event does not offer the position
            StoreError: If the pendingVolunteers collection cannot be
                read or written
        """
        if position not in (event.volunteer_categories or []):
            raise InvalidPositionError(
                f"Position '{position}' is not offered by event {event.id}"
            )

        now_ms = self._next_request_ms()
        request = PendingVolunteerRequest(
            id=str(now_ms),
            event_id=event.id,
            event_title=event.title,
            volunteer_name=user.full_name,
            volunteer_email=user.email,
            status=STATUS_PENDING,
            timestamp=now_ms,
            position=position
        )
        self.record_store.append_pending_request(request)
        return request

    def _lookup_status(self, event_id: str, email: str) -> str:
        try:
            volunteers = self.record_store.get_volunteers()
            if any(
                v.email == email and event_id in v.assigned_events
                for v in volunteers
            ):
                return STATUS_APPROVED

            requests = self.record_store.get_pending_requests()
        except StoreReadError as e:
            raise StatusCheckError(str(e)) from e

        if any(
            r.event_id == event_id
            and r.volunteer_email == email
            and r.status == STATUS_PENDING
            for r in requests
        ):
            return STATUS_PENDING
        return STATUS_NONE

    def _require_user(self) -> SessionUser:
        user = self.session.current_user
        if user is None:
            raise AuthRequiredError('Please log in to volunteer for events.')
        return user

    def _next_request_ms(self) -> int:
        # Creation-time ids, kept strictly increasing within this process
        now_ms = int(self.clock() * 1000)
        if now_ms <= self._last_request_ms:
            now_ms = self._last_request_ms + 1
        self._last_request_ms = now_ms
        return now_ms

    def _refresh_count(self, event_id: str) -> None:
        try:
            result = self.reconciler.refresh_event_count(event_id)
        except StoreError as e:
            logger.error(f"Error updating volunteer count: {e}")
            return
        if self.on_events_refreshed is not None:
            self.on_events_refreshed(result.events)
