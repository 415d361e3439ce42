"""Data models for the volunteer dashboard."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


DEFAULT_MAX_VOLUNTEERS = 10

# Registration status values
STATUS_NONE = 'none'
STATUS_PENDING = 'pending'
STATUS_APPROVED = 'approved'
STATUS_REJECTED = 'rejected'
STATUS_ERROR = 'error'

TAG_OPTIONS = [
    'Environmental',
    'Animal',
    'Social Work',
    'Healthcare',
    'Blood Donation',
    'Sports',
    'Others',
]


@dataclass
class Event:
    """Event as persisted in the ``events`` collection."""
    id: str
    title: str
    date: str = ''
    time: str = ''
    description: str = ''
    location: str = ''
    volunteer_categories: List[str] = field(default_factory=list)
    location_coordinates: Optional[Dict[str, float]] = None
    cover_photo: Optional[str] = None
    canceled: Optional[bool] = None
    tags: Optional[List[str]] = None
    # Write-back cache, recomputed on every derivation pass
    current_volunteers: Optional[int] = None
    max_volunteers: Optional[int] = None
    # Persisted keys this model does not know about
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_full(self) -> bool:
        return (self.current_volunteers or 0) >= (self.max_volunteers or 0)


@dataclass
class Volunteer:
    """Approved volunteer, created by the admin approval flow."""
    id: str
    name: str
    email: str
    phone: str = ''
    assigned_events: List[str] = field(default_factory=list)
    status: str = 'active'


@dataclass
class PendingVolunteerRequest:
    """Request by a user to fill a position on an event."""
    id: str
    event_id: str
    event_title: str
    volunteer_name: str
    volunteer_email: str
    status: str
    timestamp: int
    position: str


@dataclass
class SessionUser:
    """Signed-in user as exposed by the session provider."""
    first_name: str
    last_name: str
    email: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class ReconcileResult:
    """Result of a volunteer count reconciliation pass."""
    events: List[Event]
    changed: int
    written: bool
    errors: List[str] = field(default_factory=list)
