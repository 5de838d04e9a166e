"""Error handling utilities."""

from typing import Optional


class OpenHouseError(Exception):
    """Base exception for the Open House booking backend."""
    status_code = 500

    def __init__(self, message: str = "", *, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Serialize for an HTTP error body."""
        body = {"error": self.message, "code": type(self).__name__}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(OpenHouseError):
    """Malformed or missing required input."""
    status_code = 400


class NotFoundError(OpenHouseError):
    """An id did not resolve to a row."""
    status_code = 404


class EventNotFoundError(NotFoundError):
    """Open house event not found."""
    pass


class SlotNotFoundError(NotFoundError):
    """Time slot not found or not part of the requested event."""
    pass


class BookingNotFoundError(NotFoundError):
    """Booking not found."""
    pass


class EventInactiveError(OpenHouseError):
    """Event is deactivated or not published."""
    status_code = 422


class CapacityError(OpenHouseError):
    """Slot capacity exhausted at admission time."""
    status_code = 409


class SlotFullError(CapacityError):
    """No seats left in the requested slot."""
    pass


class InvalidTransitionError(OpenHouseError):
    """Booking status transition not allowed."""
    status_code = 409


class SlotRegenerationBlockedError(OpenHouseError):
    """Slots cannot be regenerated while bookings reference them."""
    status_code = 409


class AuthenticationError(OpenHouseError):
    """Missing or invalid session token."""
    status_code = 401


class AuthorizationError(OpenHouseError):
    """Role or ownership mismatch."""
    status_code = 403


class UpstreamNotificationError(OpenHouseError):
    """Email or calendar collaborator failure."""
    status_code = 502


class SupabaseError(OpenHouseError):
    """Supabase operation error."""
    pass
