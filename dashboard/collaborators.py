"""Interfaces to the collaborators the dashboard does not own."""
import logging
from typing import List, Optional, Protocol

from processor.models import Event, SessionUser

logger = logging.getLogger(__name__)


class SessionProvider(Protocol):
    """Source of the signed-in user."""

    @property
    def current_user(self) -> Optional[SessionUser]: ...


class Prompter(Protocol):
    """User-facing notices, confirmations and the position picker."""

    def notify(self, title: str, message: str) -> None: ...

    def confirm(self, title: str, message: str) -> bool: ...

    def select_position(self, event: Event, positions: List[str]) -> Optional[str]: ...


class StaticSession:
    """Session provider holding a fixed user, or nobody."""

    def __init__(self, user: Optional[SessionUser] = None):
        self.user = user

    @property
    def current_user(self) -> Optional[SessionUser]:
        return self.user


class LoggingPrompter:
    """Headless prompter: logs notices and declines every prompt."""

    def notify(self, title: str, message: str) -> None:
        logger.info(f"{title}: {message}")

    def confirm(self, title: str, message: str) -> bool:
        logger.info(f"Declined confirmation '{title}': {message}")
        return False

    def select_position(self, event: Event, positions: List[str]) -> Optional[str]:
        logger.info(f"No position selected for event {event.id}")
        return None
