# src/infrastructure/repositories/booking_ledger.py

from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import func, select

from src.domain.state_machine import BookingStatus
from src.infrastructure.db.models import Booking, Event, User


class BookingLedger:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def insert_booking(
        self,
        event_id: str,
        user_id: str | None,
        tickets: int,
        total_amount: Decimal,
        guest_name: str | None = None,
        guest_email: str | None = None,
    ) -> Booking:

        booking = Booking(
            event_id=event_id,
            user_id=user_id,
            tickets=tickets,
            total_amount=total_amount,
            guest_name=guest_name,
            guest_email=guest_email,
            status=BookingStatus.CONFIRMED,
        )

        self.db.add(booking)
        self.db.flush()
        return booking

    def count_bookings_for_event(self, event_id: str) -> int:
        stmt = select(func.count(Booking.id)).where(Booking.event_id == event_id)
        return self.db.execute(stmt).scalar_one()

    def confirmed_tickets_for_event(self, event_id: str) -> int:
        stmt = (
            select(func.coalesce(func.sum(Booking.tickets), 0))
            .where(Booking.event_id == event_id)
            .where(Booking.status == BookingStatus.CONFIRMED)
        )
        return self.db.execute(stmt).scalar_one()

    def list_bookings_for_user(self, user_id: str) -> list[tuple[Booking, Event]]:
        stmt = (
            select(Booking, Event)
            .join(Event, Booking.event_id == Event.id)
            .where(Booking.user_id == user_id)
            .order_by(Booking.booking_date.desc())
        )
        return [tuple(row) for row in self.db.execute(stmt).all()]

    def organizer_stats(self, organizer_id: str) -> dict[str, tuple[int, int, Decimal]]:
        """
        Per-event (booking count, tickets sold, revenue) over confirmed bookings
        for every event the organizer owns. Events without bookings are absent.
        """

        stmt = (
            select(
                Booking.event_id,
                func.count(Booking.id),
                func.coalesce(func.sum(Booking.tickets), 0),
                func.coalesce(func.sum(Booking.total_amount), 0),
            )
            .join(Event, Booking.event_id == Event.id)
            .where(Event.organizer_id == organizer_id)
            .where(Booking.status == BookingStatus.CONFIRMED)
            .group_by(Booking.event_id)
        )
        return {
            event_id: (int(count), int(tickets), Decimal(str(revenue)))
            for event_id, count, tickets, revenue in self.db.execute(stmt).all()
        }

    def list_recent_for_organizer(
        self,
        organizer_id: str,
        limit: int = 10,
    ) -> list[tuple[Booking, str, str | None, str | None]]:
        """(booking, event title, user name, user email), newest booking first."""

        stmt = (
            select(Booking, Event.title, User.name, User.email)
            .join(Event, Booking.event_id == Event.id)
            .outerjoin(User, Booking.user_id == User.id)
            .where(Event.organizer_id == organizer_id)
            .order_by(Booking.booking_date.desc())
            .limit(limit)
        )
        return [tuple(row) for row in self.db.execute(stmt).all()]
