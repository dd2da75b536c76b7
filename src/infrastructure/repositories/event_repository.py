# src/infrastructure/repositories/event_repository.py

from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import case, select, update

from src.domain.state_machine import EventStatus
from src.infrastructure.db.models import Event, User


class EventRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        event_id: str,
        refresh: bool = False,
    ) -> Event | None:
        stmt = select(Event).where(Event.id == event_id)
        if refresh:
            # Seat counts are changed by bulk UPDATEs the identity map never sees.
            stmt = stmt.execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_approved(self) -> list[tuple[Event, str | None]]:
        stmt = (
            select(Event, User.name)
            .outerjoin(User, Event.organizer_id == User.id)
            .where(Event.status == EventStatus.APPROVED)
            .order_by(Event.date)
        )
        return [tuple(row) for row in self.db.execute(stmt).all()]

    def list_by_organizer(self, organizer_id: str) -> list[Event]:
        stmt = (
            select(Event)
            .where(Event.organizer_id == organizer_id)
            .order_by(Event.date.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_upcoming_by_organizer(
        self,
        organizer_id: str,
        after: datetime,
        limit: int = 5,
    ) -> list[Event]:
        stmt = (
            select(Event)
            .where(Event.organizer_id == organizer_id)
            .where(Event.date > after)
            .order_by(Event.date)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_for_admin(self) -> list[tuple[Event, str | None, str | None]]:
        status_rank = case(
            (Event.status == EventStatus.PENDING, 1),
            (Event.status == EventStatus.APPROVED, 2),
            else_=3,
        )
        stmt = (
            select(Event, User.name, User.email)
            .outerjoin(User, Event.organizer_id == User.id)
            .order_by(status_rank, Event.created_at.desc())
        )
        return [tuple(row) for row in self.db.execute(stmt).all()]

    def insert(self, event: Event) -> Event:
        self.db.add(event)
        self.db.flush()
        return event

    def update_status(
        self,
        event: Event,
        new_status: EventStatus,
        admin_notes: str | None,
    ) -> Event:

        event.status = new_status
        event.admin_notes = admin_notes
        self.db.flush()
        return event

    def update_fields(self, event: Event, fields: dict) -> Event:
        for name, value in fields.items():
            setattr(event, name, value)
        self.db.flush()
        return event

    def delete(self, event: Event) -> None:
        self.db.delete(event)
        self.db.flush()

    def decrement_seats(
        self,
        event_id: str,
        seat_count: int,
    ) -> bool:
        """
        Conditional UPDATE: check and decrement in one statement.
        Returns False when the event is missing, not approved,
        or short of seats; nothing is written in that case.
        """

        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .where(Event.status == EventStatus.APPROVED)
            .where(Event.available_seats >= seat_count)
            .values(available_seats=Event.available_seats - seat_count)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def resize_seats(
        self,
        event_id: str,
        new_total: int,
    ) -> bool:
        """
        Sets total_seats and shifts available_seats by the same delta.
        Refuses (returns False) when new_total is below the seats already sold.
        """

        sold = Event.total_seats - Event.available_seats
        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .where(sold <= new_total)
            .values(
                available_seats=new_total - sold,
                total_seats=new_total,
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1
