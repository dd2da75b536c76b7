"""Event approval workflow.

Organizers submit events, which start out pending. Admins approve or
reject them, and only approved events are visible to the public or open
for booking. Every operation takes the acting principal explicitly and
enforces its own role and ownership rules.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from src.application.inventory_manager import InventoryManager, ensure_seat_count
from src.domain.exceptions import (
    EventNotFoundError,
    ForbiddenError,
    HasActiveBookingsError,
    ValidationError,
)
from src.domain.principal import Principal, Role
from src.domain.state_machine import EventStateMachine, EventStatus
from src.infrastructure.db.models import Event
from src.infrastructure.repositories.booking_ledger import BookingLedger
from src.infrastructure.repositories.event_repository import EventRepository

logger = logging.getLogger(__name__)

DEFAULT_EVENT_IMAGE_URL = os.getenv(
    "DEFAULT_EVENT_IMAGE_URL",
    "https://images.unsplash.com/photo-1501281668745-f7f57925c3b4?w=500&h=300&fit=crop",
)
DEFAULT_APPROVE_NOTE = "Event approved by admin"
DEFAULT_REJECT_NOTE = "Event rejected by admin"
EDITABLE_FIELDS = frozenset(
    {"title", "description", "date", "location", "price", "total_seats", "image_url"}
)
# Editable fields backed by NOT NULL columns.
REQUIRED_FIELDS = frozenset({"title", "date", "location", "price", "total_seats"})
RECENT_BOOKINGS_LIMIT = 10
UPCOMING_EVENTS_LIMIT = 5


@dataclass(frozen=True)
class EventDraft:
    title: str
    date: datetime
    location: str
    price: Decimal
    total_seats: int
    description: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class OrganizerEventSummary:
    event: Event
    total_bookings: int = 0
    total_tickets_sold: int = 0
    total_revenue: Decimal = field(default_factory=lambda: Decimal("0"))

    @property
    def occupancy_rate(self) -> float:
        if not self.event.total_seats:
            return 0.0
        return round(self.total_tickets_sold / self.event.total_seats * 100, 2)


@dataclass(frozen=True)
class OrganizerDashboard:
    total_events: int
    total_tickets_sold: int
    total_revenue: Decimal
    avg_attendance: float
    recent_bookings: list = field(default_factory=list)
    upcoming_events: list = field(default_factory=list)


def _require_role(principal: Principal | None, role: Role) -> Principal:
    if principal is None or principal.role != role:
        raise ForbiddenError(f"Access denied. {role.value.capitalize()} role required.")
    return principal


def _validate_price(price) -> None:
    if price is None or Decimal(price) < 0:
        raise ValidationError("price must be a non-negative amount")


class ApprovalWorkflow:

    def __init__(self, db: Session):
        self.db = db
        self.event_repository = EventRepository(db)
        self.booking_ledger = BookingLedger(db)
        self.inventory_manager = InventoryManager(db)

    # -----------------------------
    # Organizer operations
    # -----------------------------
    def submit(self, principal: Principal | None, draft: EventDraft) -> Event:
        organizer = _require_role(principal, Role.ORGANIZER)
        _validate_price(draft.price)
        ensure_seat_count(draft.total_seats, "total_seats")

        event = self.event_repository.insert(
            Event(
                title=draft.title,
                description=draft.description,
                date=draft.date,
                location=draft.location,
                price=Decimal(draft.price),
                total_seats=draft.total_seats,
                available_seats=draft.total_seats,
                organizer_id=organizer.id,
                image_url=draft.image_url or DEFAULT_EVENT_IMAGE_URL,
                status=EventStatus.PENDING,
            )
        )
        logger.info(
            "Event submitted for approval. event_id=%s organizer_id=%s",
            event.id,
            organizer.id,
        )
        return event

    def edit(self, principal: Principal | None, event_id: str, fields: dict) -> Event:
        organizer = _require_role(principal, Role.ORGANIZER)
        event = self._get_owned(organizer, event_id)

        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        cleared = sorted(name for name in REQUIRED_FIELDS if name in fields and fields[name] is None)
        if cleared:
            raise ValidationError(f"Fields cannot be empty: {', '.join(cleared)}")

        changes = dict(fields)
        if "price" in changes:
            _validate_price(changes["price"])
            changes["price"] = Decimal(changes["price"])

        new_total = changes.pop("total_seats", None)
        if new_total is not None and new_total != event.total_seats:
            self.inventory_manager.resize(event.id, new_total)

        event = self.event_repository.update_fields(event, changes)
        logger.info("Event updated. event_id=%s fields=%s", event.id, sorted(fields))
        return event

    def remove(self, principal: Principal | None, event_id: str) -> None:
        organizer = _require_role(principal, Role.ORGANIZER)
        event = self._get_owned(organizer, event_id)

        booking_count = self.booking_ledger.count_bookings_for_event(event.id)
        if booking_count > 0:
            raise HasActiveBookingsError(event.id, booking_count)

        self.event_repository.delete(event)
        logger.info("Event deleted. event_id=%s organizer_id=%s", event_id, organizer.id)

    def list_for_organizer(self, principal: Principal | None) -> list[OrganizerEventSummary]:
        organizer = _require_role(principal, Role.ORGANIZER)
        stats = self.booking_ledger.organizer_stats(organizer.id)
        summaries = []
        for event in self.event_repository.list_by_organizer(organizer.id):
            bookings, tickets, revenue = stats.get(event.id, (0, 0, Decimal("0")))
            summaries.append(
                OrganizerEventSummary(
                    event=event,
                    total_bookings=bookings,
                    total_tickets_sold=tickets,
                    total_revenue=revenue,
                )
            )
        return summaries

    def organizer_dashboard(self, principal: Principal | None) -> OrganizerDashboard:
        """
        Totals across every event the organizer owns, the latest bookings on
        those events and the next events still to take place.

        Tickets sold are read from the inventory (total - available), revenue
        from confirmed bookings.
        """
        organizer = _require_role(principal, Role.ORGANIZER)
        events = self.event_repository.list_by_organizer(organizer.id)
        stats = self.booking_ledger.organizer_stats(organizer.id)

        sold = [event.total_seats - event.available_seats for event in events]
        revenue = sum((revenue for _, _, revenue in stats.values()), Decimal("0"))

        return OrganizerDashboard(
            total_events=len(events),
            total_tickets_sold=sum(sold),
            total_revenue=revenue,
            avg_attendance=round(sum(sold) / len(sold), 2) if sold else 0.0,
            recent_bookings=self.booking_ledger.list_recent_for_organizer(
                organizer.id, limit=RECENT_BOOKINGS_LIMIT
            ),
            upcoming_events=self.event_repository.list_upcoming_by_organizer(
                organizer.id, datetime.now(timezone.utc), limit=UPCOMING_EVENTS_LIMIT
            ),
        )

    # -----------------------------
    # Admin operations
    # -----------------------------
    def approve(
        self,
        principal: Principal | None,
        event_id: str,
        notes: str | None = None,
    ) -> Event:
        return self._decide(principal, event_id, EventStatus.APPROVED, notes or DEFAULT_APPROVE_NOTE)

    def reject(
        self,
        principal: Principal | None,
        event_id: str,
        notes: str | None = None,
    ) -> Event:
        return self._decide(principal, event_id, EventStatus.REJECTED, notes or DEFAULT_REJECT_NOTE)

    def list_for_admin(self, principal: Principal | None):
        _require_role(principal, Role.ADMIN)
        return self.event_repository.list_for_admin()

    # -----------------------------
    # Public visibility
    # -----------------------------
    def list_public(self):
        return self.event_repository.list_approved()

    def get_visible(self, principal: Principal | None, event_id: str) -> Event:
        event = self.event_repository.get_by_id(event_id, refresh=True)
        if event is None:
            raise EventNotFoundError(event_id)
        if EventStateMachine.is_publicly_visible(event.status):
            return event
        if principal is not None and (principal.is_admin or principal.owns(event.organizer_id)):
            return event
        raise EventNotFoundError(event_id)

    def _decide(
        self,
        principal: Principal | None,
        event_id: str,
        to_status: EventStatus,
        notes: str,
    ) -> Event:
        admin = _require_role(principal, Role.ADMIN)
        event = self.event_repository.get_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)

        from_status = EventStatus(event.status)
        EventStateMachine.validate_transition(from_status, to_status)
        event = self.event_repository.update_status(event, to_status, notes)
        logger.info(
            "Event %s. event_id=%s admin_id=%s previous=%s",
            to_status.value,
            event_id,
            admin.id,
            from_status.value,
        )
        return event

    def _get_owned(self, organizer: Principal, event_id: str) -> Event:
        event = self.event_repository.get_by_id(event_id)
        if event is None or not organizer.owns(event.organizer_id):
            raise EventNotFoundError(event_id, "Event not found or access denied")
        return event
