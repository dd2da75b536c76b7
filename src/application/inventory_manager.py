import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from src.domain.exceptions import (
    EventNotBookableError,
    EventNotFoundError,
    InsufficientSeatsError,
    ValidationError,
)
from src.domain.state_machine import EventStatus
from src.infrastructure.repositories.event_repository import EventRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reservation:
    """Seats taken from an event, with the price and title captured at that moment."""

    event_id: str
    tickets: int
    unit_price: Decimal
    event_title: str
    remaining_seats: int

    @property
    def total_amount(self) -> Decimal:
        return self.unit_price * self.tickets


# Seat and ticket counts are stored in 32-bit INTEGER columns.
MAX_SEAT_COUNT = 2_147_483_647


def ensure_seat_count(value, field: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    if value > MAX_SEAT_COUNT:
        raise ValidationError(f"{field} must not exceed {MAX_SEAT_COUNT}")


class InventoryManager:
    """The only writer of an event's available_seats."""

    def __init__(self, db: Session):
        self.db = db
        self.event_repository = EventRepository(db)

    def reserve(self, event_id: str, ticket_count: int) -> Reservation:
        ensure_seat_count(ticket_count, "tickets")

        reserved = self.event_repository.decrement_seats(event_id, ticket_count)
        event = self.event_repository.get_by_id(event_id, refresh=True)

        if not reserved:
            if event is None or event.status != EventStatus.APPROVED:
                logger.warning(
                    "Reservation refused, event not bookable. event_id=%s tickets=%s",
                    event_id,
                    ticket_count,
                )
                raise EventNotBookableError(event_id)

            logger.warning(
                "Reservation refused, insufficient seats. event_id=%s tickets=%s available=%s",
                event_id,
                ticket_count,
                event.available_seats,
            )
            raise InsufficientSeatsError(
                event_id=event_id,
                requested=ticket_count,
                available=event.available_seats,
            )

        return Reservation(
            event_id=event.id,
            tickets=ticket_count,
            unit_price=Decimal(event.price),
            event_title=event.title,
            remaining_seats=event.available_seats,
        )

    def resize(self, event_id: str, new_total: int) -> None:
        ensure_seat_count(new_total, "total_seats")

        if self.event_repository.resize_seats(event_id, new_total):
            self.event_repository.get_by_id(event_id, refresh=True)
            return

        event = self.event_repository.get_by_id(event_id, refresh=True)
        if event is None:
            raise EventNotFoundError(event_id)

        sold = event.total_seats - event.available_seats
        raise ValidationError(
            f"total_seats cannot drop below the {sold} tickets already sold"
        )
