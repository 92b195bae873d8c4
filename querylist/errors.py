"""Exception types raised by the list controller and its collection client."""

from typing import Optional


class ListError(Exception):
    """Base class for list controller errors."""


class TransportError(ListError, ConnectionError):
    """The collection API could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationRequired(ListError, PermissionError):
    """No credential was available for an endpoint that requires one."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class InvalidResponse(ListError, ValueError):
    """The collection API answered with a body that is not a list page."""
