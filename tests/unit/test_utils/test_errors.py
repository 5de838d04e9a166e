"""Tests for the error hierarchy."""

import pytest

from openhouse.utils.errors import (
    AuthenticationError,
    AuthorizationError,
    BookingNotFoundError,
    CapacityError,
    EventInactiveError,
    EventNotFoundError,
    InvalidTransitionError,
    NotFoundError,
    OpenHouseError,
    SlotFullError,
    SlotNotFoundError,
    SlotRegenerationBlockedError,
    SupabaseError,
    UpstreamNotificationError,
    ValidationError,
)


@pytest.mark.unit
@pytest.mark.parametrize("error_class,status_code", [
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (EventNotFoundError, 404),
    (SlotNotFoundError, 404),
    (BookingNotFoundError, 404),
    (SlotFullError, 409),
    (InvalidTransitionError, 409),
    (SlotRegenerationBlockedError, 409),
    (EventInactiveError, 422),
    (SupabaseError, 500),
    (UpstreamNotificationError, 502),
])
def test_status_codes(error_class, status_code):
    """Test every domain error carries its HTTP status."""
    assert error_class("x").status_code == status_code
    assert issubclass(error_class, OpenHouseError)


@pytest.mark.unit
def test_hierarchy():
    """Test grouping base classes."""
    assert issubclass(SlotFullError, CapacityError)
    assert issubclass(EventNotFoundError, NotFoundError)
    assert issubclass(SlotNotFoundError, NotFoundError)


@pytest.mark.unit
def test_to_dict():
    """Test error bodies include details only when present."""
    assert EventNotFoundError("Open house not found").to_dict() == {
        "error": "Open house not found",
        "code": "EventNotFoundError",
    }
    assert SlotFullError("full", details={"occupied": 2, "capacity": 2}).to_dict() == {
        "error": "full",
        "code": "SlotFullError",
        "details": {"occupied": 2, "capacity": 2},
    }
