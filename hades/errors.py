"""
Exception types raised at the service boundaries.

The scoring core never raises: lookup failures are encoded as sentinel
values (see features.domain_age and features.html_analyzer). These errors
only exist where the service talks to its callers or to storage.
"""


class HadesError(Exception):
    """Base class for all service errors."""


class RequestDecodeError(HadesError, ValueError):
    """Request body does not decode into an analyze request."""


class StorageError(HadesError):
    """Backing store could not be reached or initialized."""
