class TicketingError(Exception):
    """
    Base exception for all domain-level errors
    inside the ticketing core.
    """

    reason = "ticketing_error"

    def __init__(self, message: str | None = None):
        self.message = message or self.__doc__.strip().splitlines()[0]
        super().__init__(self.message)


class UnauthorizedError(TicketingError):
    """Authentication required."""

    reason = "unauthorized"


class ForbiddenError(TicketingError):
    """Access denied."""

    reason = "forbidden"


class NotFoundError(TicketingError):
    """Resource not found."""

    reason = "not_found"


class EventNotFoundError(NotFoundError):
    """Event not found."""

    def __init__(self, event_id: str, message: str | None = None):
        self.event_id = event_id
        super().__init__(message)


class InsufficientSeatsError(TicketingError):
    """Not enough seats available."""

    reason = "insufficient_seats"

    def __init__(self, event_id: str, requested: int, available: int):
        self.event_id = event_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough seats available: requested {requested}, "
            f"{available} left"
        )


class EventNotBookableError(TicketingError):
    """Event is not open for booking."""

    reason = "event_not_bookable"

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__("Event not found or not approved for booking")


class HasActiveBookingsError(TicketingError):
    """Cannot delete event with existing bookings."""

    reason = "has_active_bookings"

    def __init__(self, event_id: str, booking_count: int):
        self.event_id = event_id
        self.booking_count = booking_count
        super().__init__()


class ValidationError(TicketingError):
    """Invalid input."""

    reason = "validation_error"


class PersistenceFailureError(TicketingError):
    """Raised when the store fails mid-operation and the work was rolled back."""

    reason = "persistence_failure"


class InvalidStateTransitionError(TicketingError):
    """
    Raised when an illegal event status transition is attempted.
    """

    reason = "invalid_transition"

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)
