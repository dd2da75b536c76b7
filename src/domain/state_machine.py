# src/domain/state_machine.py

from enum import Enum
from typing import Dict, Set

from src.domain.exceptions import InvalidStateTransitionError


class EventStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class EventStateMachine:
    """
    Central lifecycle controller for event approval.

    An admin decision may be revised, so approved and rejected
    events can be decided again. Nothing returns to pending.
    """

    _ALLOWED_TRANSITIONS: Dict[EventStatus, Set[EventStatus]] = {
        EventStatus.PENDING: {
            EventStatus.APPROVED,
            EventStatus.REJECTED,
        },
        EventStatus.APPROVED: {
            EventStatus.APPROVED,
            EventStatus.REJECTED,
        },
        EventStatus.REJECTED: {
            EventStatus.APPROVED,
            EventStatus.REJECTED,
        },
    }

    @classmethod
    def can_transition(
        cls,
        from_status: EventStatus,
        to_status: EventStatus,
    ) -> bool:
        """
        Returns True if transition is allowed.
        """
        cls._ensure_valid_status(from_status)
        cls._ensure_valid_status(to_status)

        return to_status in cls._ALLOWED_TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(
        cls,
        from_status: EventStatus,
        to_status: EventStatus,
    ) -> None:
        """
        Raises InvalidStateTransitionError if transition is illegal.
        """
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateTransitionError(
                from_state=from_status.value,
                to_state=to_status.value,
            )

    @classmethod
    def is_publicly_visible(cls, status: EventStatus) -> bool:
        cls._ensure_valid_status(status)
        return status == EventStatus.APPROVED

    @classmethod
    def get_allowed_transitions(
        cls, status: EventStatus
    ) -> Set[EventStatus]:
        """
        Returns allowed next states from current state.
        """
        cls._ensure_valid_status(status)
        return cls._ALLOWED_TRANSITIONS.get(status, set())

    @staticmethod
    def _ensure_valid_status(status: EventStatus) -> None:
        if not isinstance(status, EventStatus):
            raise TypeError(
                f"Expected EventStatus, got {type(status)}"
            )
