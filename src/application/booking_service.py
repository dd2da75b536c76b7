import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.application.inventory_manager import InventoryManager
from src.domain.exceptions import PersistenceFailureError, UnauthorizedError
from src.domain.principal import Principal
from src.infrastructure.db.models import Booking, Event
from src.infrastructure.repositories.booking_ledger import BookingLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingConfirmation:
    booking_id: str
    event_id: str
    event_title: str
    tickets: int
    total_amount: Decimal


class BookingService:
    """Application service coordinating the booking transaction."""

    def __init__(self, db: Session):
        self.db = db
        self.booking_ledger = BookingLedger(db)
        self.inventory_manager = InventoryManager(db)

    def book(
        self,
        principal: Principal | None,
        event_id: str,
        tickets: int,
        guest_name: str | None = None,
        guest_email: str | None = None,
    ) -> BookingConfirmation:
        """
        Reserve seats and record the booking as one unit.

        Both writes run inside a SAVEPOINT: if the booking row cannot be
        written the seat decrement is rolled back with it.

        Raises:
            UnauthorizedError: no authenticated principal.
            ValidationError: tickets is not a positive integer.
            EventNotBookableError: event missing or not approved.
            InsufficientSeatsError: fewer seats left than requested.
            PersistenceFailureError: the booking row could not be stored.
        """
        if principal is None:
            raise UnauthorizedError("Please login to book an event")

        savepoint = self.db.begin_nested()
        try:
            reservation = self.inventory_manager.reserve(event_id, tickets)
            booking = self.booking_ledger.insert_booking(
                event_id=event_id,
                user_id=principal.id,
                tickets=tickets,
                total_amount=reservation.total_amount,
                guest_name=guest_name,
                guest_email=guest_email,
            )
            savepoint.commit()
        except SQLAlchemyError as exc:
            savepoint.rollback()
            logger.exception(
                "Booking write failed, seat reservation rolled back. event_id=%s tickets=%s",
                event_id,
                tickets,
            )
            raise PersistenceFailureError("Booking failed, please retry") from exc
        except Exception:
            savepoint.rollback()
            raise

        logger.info(
            "Booking confirmed. booking_id=%s event_id=%s user_id=%s tickets=%s remaining=%s",
            booking.id,
            event_id,
            principal.id,
            tickets,
            reservation.remaining_seats,
        )
        return BookingConfirmation(
            booking_id=booking.id,
            event_id=event_id,
            event_title=reservation.event_title,
            tickets=tickets,
            total_amount=reservation.total_amount,
        )

    def list_for_principal(
        self,
        principal: Principal | None,
    ) -> list[tuple[Booking, Event]]:
        if principal is None:
            return []
        return self.booking_ledger.list_bookings_for_user(principal.id)
