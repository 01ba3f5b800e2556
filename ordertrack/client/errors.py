"""
Tracking consumer exceptions.

Each error carries the message shown to the end user; no consumer ever
surfaces a stack trace.
"""

from typing import Optional


class TrackingClientError(Exception):
    """Base consumer exception."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.user_message
        super().__init__(self.message)


class ApiError(TrackingClientError):
    """Non-2xx or unreadable response from the order service; ``message`` is the service's own when it sent one."""

    def __init__(self, message: str, status_code: int):
        self.status_code = status_code
        super().__init__(message)


class TransitionError(TrackingClientError):
    """A status change that was refused."""


class InvalidTransition(TransitionError):
    """Target status is not reachable from the current one; no request was sent."""

    def __init__(self, current_status: str, target_status: str):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(f"Cannot change order status from {current_status} to {target_status}.")


class MissingReason(TransitionError):
    """Cancellation without a reason; no request was sent."""

    user_message = "Please provide a cancellation reason."


class TransitionRejected(TransitionError):
    """The order service refused the change. The message is shown verbatim."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ProviderLoadFailed(TrackingClientError):
    """The map library could not be loaded. Terminal until the user retries."""

    user_message = "Map unavailable: the map library failed to load. Reload the page to try again."

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(self.user_message)
