"""Errors raised by the record store and its backends."""


class DashboardError(Exception):
    """Base class for volunteer dashboard errors."""


class StoreError(DashboardError):
    """Base class for record store failures."""


class StoreReadError(StoreError):
    """A collection could not be read or parsed."""


class StoreWriteError(StoreError):
    """A collection could not be written."""


class DuplicateRequestError(StoreWriteError):
    """A pending request already exists for the same event and user."""
