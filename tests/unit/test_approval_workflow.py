from datetime import datetime
from decimal import Decimal

import pytest

from src.application.approval_workflow import (
    DEFAULT_APPROVE_NOTE,
    DEFAULT_EVENT_IMAGE_URL,
    DEFAULT_REJECT_NOTE,
    ApprovalWorkflow,
    EventDraft,
)
from src.application.booking_service import BookingService
from src.domain.exceptions import (
    EventNotFoundError,
    ForbiddenError,
    HasActiveBookingsError,
    ValidationError,
)
from src.domain.principal import Role
from src.domain.state_machine import EventStatus
from src.infrastructure.repositories.event_repository import EventRepository


@pytest.fixture
def organizer(add_user):
    return add_user(Role.ORGANIZER, name="Olive Organizer")


@pytest.fixture
def admin(add_user):
    return add_user(Role.ADMIN)


@pytest.fixture
def customer(add_user):
    return add_user(Role.USER)


def _draft(**overrides) -> EventDraft:
    values = {
        "title": "Harbour Lights",
        "description": "Open air concert",
        "date": datetime(2030, 8, 1, 20, 0),
        "location": "Pier 9",
        "price": Decimal("15.00"),
        "total_seats": 40,
    }
    values.update(overrides)
    return EventDraft(**values)


def _public_titles(workflow):
    return [event.title for event, _ in workflow.list_public()]


# ---------------------
# SUBMIT
# ---------------------

def test_submit_creates_pending_event(db, organizer):
    event = ApprovalWorkflow(db).submit(organizer, _draft())

    assert event.status == EventStatus.PENDING
    assert event.available_seats == event.total_seats == 40
    assert event.organizer_id == organizer.id
    assert event.image_url == DEFAULT_EVENT_IMAGE_URL


@pytest.mark.parametrize("role", [Role.USER, Role.ADMIN])
def test_submit_requires_organizer(db, add_user, role):
    with pytest.raises(ForbiddenError):
        ApprovalWorkflow(db).submit(add_user(role), _draft())


def test_submit_requires_principal(db):
    with pytest.raises(ForbiddenError):
        ApprovalWorkflow(db).submit(None, _draft())


@pytest.mark.parametrize(
    "overrides",
    [
        {"price": Decimal("-1")},
        {"total_seats": 0},
        {"total_seats": -5},
        {"total_seats": 10**20},
    ],
)
def test_submit_validates_price_and_seats(db, organizer, overrides):
    with pytest.raises(ValidationError):
        ApprovalWorkflow(db).submit(organizer, _draft(**overrides))


# ---------------------
# APPROVE / REJECT
# ---------------------

def test_approval_scenario(db, organizer, admin):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())
    assert "Harbour Lights" not in _public_titles(workflow)

    workflow.approve(admin, event.id, notes="ok")

    assert "Harbour Lights" in _public_titles(workflow)
    assert event.status == EventStatus.APPROVED
    assert event.admin_notes == "ok"


def test_approve_twice_is_idempotent(db, organizer, admin):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())

    workflow.approve(admin, event.id, notes="first look")
    again = workflow.approve(admin, event.id, notes="second look")

    assert again.status == EventStatus.APPROVED
    assert again.admin_notes == "second look"
    assert again.available_seats == 40


def test_default_notes(db, organizer, admin):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())

    assert workflow.approve(admin, event.id).admin_notes == DEFAULT_APPROVE_NOTE
    assert workflow.reject(admin, event.id).admin_notes == DEFAULT_REJECT_NOTE


def test_rejected_event_is_hidden(db, organizer, admin):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())
    workflow.approve(admin, event.id)
    workflow.reject(admin, event.id, notes="venue cancelled")

    assert event.status == EventStatus.REJECTED
    assert _public_titles(workflow) == []


def test_decision_requires_admin(db, organizer):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())

    with pytest.raises(ForbiddenError):
        workflow.approve(organizer, event.id)
    with pytest.raises(ForbiddenError):
        workflow.reject(None, event.id)


def test_decision_on_missing_event(db, admin):
    with pytest.raises(EventNotFoundError):
        ApprovalWorkflow(db).approve(admin, "no-such-event")


# ---------------------
# VISIBILITY
# ---------------------

def test_public_listing_is_approved_only_and_ordered_by_date(db, organizer, add_event):
    add_event(organizer.id, title="Late Show", status=EventStatus.APPROVED)
    add_event(organizer.id, title="Gig", status=EventStatus.APPROVED)
    add_event(organizer.id, title="Draft", status=EventStatus.PENDING)
    add_event(organizer.id, title="Nope", status=EventStatus.REJECTED)

    rows = ApprovalWorkflow(db).list_public()

    assert [event.title for event, _ in rows] == ["Gig", "Late Show"]
    assert {name for _, name in rows} == {"Olive Organizer"}


def test_unapproved_event_visible_to_owner_and_admin_only(db, organizer, admin, customer, add_user):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())
    stranger = add_user(Role.ORGANIZER)

    assert workflow.get_visible(organizer, event.id).id == event.id
    assert workflow.get_visible(admin, event.id).id == event.id
    for principal in (customer, stranger, None):
        with pytest.raises(EventNotFoundError):
            workflow.get_visible(principal, event.id)

    workflow.approve(admin, event.id)
    assert workflow.get_visible(None, event.id).id == event.id


def test_admin_listing_puts_pending_first(db, organizer, admin, add_event):
    add_event(organizer.id, title="Approved One", status=EventStatus.APPROVED)
    add_event(organizer.id, title="Rejected One", status=EventStatus.REJECTED)
    add_event(organizer.id, title="Pending One", status=EventStatus.PENDING)

    rows = ApprovalWorkflow(db).list_for_admin(admin)

    assert [event.status for event, _, _ in rows] == [
        EventStatus.PENDING,
        EventStatus.APPROVED,
        EventStatus.REJECTED,
    ]
    assert rows[0][1] == "Olive Organizer"

    with pytest.raises(ForbiddenError):
        ApprovalWorkflow(db).list_for_admin(organizer)


# ---------------------
# EDIT / REMOVE
# ---------------------

def test_edit_updates_fields_and_keeps_status(db, organizer, admin):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())
    workflow.approve(admin, event.id)

    edited = workflow.edit(
        organizer,
        event.id,
        {"title": "Harbour Lights II", "price": Decimal("18.00"), "total_seats": 60},
    )

    assert edited.title == "Harbour Lights II"
    assert edited.price == Decimal("18.00")
    assert edited.status == EventStatus.APPROVED
    assert (edited.total_seats, edited.available_seats) == (60, 60)


def test_edit_cannot_shrink_below_sold(db, organizer, admin, customer):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft(total_seats=10))
    workflow.approve(admin, event.id)
    BookingService(db).book(customer, event.id, 7)

    with pytest.raises(ValidationError):
        workflow.edit(organizer, event.id, {"total_seats": 6})

    event = EventRepository(db).get_by_id(event.id, refresh=True)
    assert (event.total_seats, event.available_seats) == (10, 3)


def test_edit_rejects_unknown_fields(db, organizer):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())

    with pytest.raises(ValidationError):
        workflow.edit(organizer, event.id, {"status": "approved"})


def test_edit_can_clear_optional_fields(db, organizer):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft(image_url="https://img.example.com/pier.png"))

    edited = workflow.edit(organizer, event.id, {"description": None, "image_url": None})

    assert edited.description is None
    assert edited.image_url is None
    assert edited.title == "Harbour Lights"


@pytest.mark.parametrize("name", ["title", "date", "location", "price", "total_seats"])
def test_edit_cannot_clear_required_fields(db, organizer, name):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())

    with pytest.raises(ValidationError, match=name):
        workflow.edit(organizer, event.id, {name: None})

    assert EventRepository(db).get_by_id(event.id).title == "Harbour Lights"


def test_non_owner_cannot_edit_or_remove(db, organizer, add_user):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())
    stranger = add_user(Role.ORGANIZER)

    with pytest.raises(EventNotFoundError):
        workflow.edit(stranger, event.id, {"title": "Mine now"})
    with pytest.raises(EventNotFoundError):
        workflow.remove(stranger, event.id)
    with pytest.raises(EventNotFoundError):
        workflow.remove(stranger, "no-such-event")

    assert EventRepository(db).get_by_id(event.id).title == "Harbour Lights"


def test_remove_event_without_bookings(db, organizer):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())
    event_id = event.id

    workflow.remove(organizer, event_id)

    assert EventRepository(db).get_by_id(event_id) is None


def test_remove_blocked_by_booking(db, organizer, admin, customer):
    workflow = ApprovalWorkflow(db)
    event = workflow.submit(organizer, _draft())
    workflow.approve(admin, event.id)
    BookingService(db).book(customer, event.id, 1)

    with pytest.raises(HasActiveBookingsError):
        workflow.remove(organizer, event.id)

    assert EventRepository(db).get_by_id(event.id) is not None


def test_organizer_listing_with_stats(db, organizer, admin, customer):
    workflow = ApprovalWorkflow(db)
    busy = workflow.submit(organizer, _draft(title="Busy", total_seats=10))
    workflow.submit(organizer, _draft(title="Quiet"))
    workflow.approve(admin, busy.id)
    BookingService(db).book(customer, busy.id, 2)
    BookingService(db).book(customer, busy.id, 3)

    summaries = {item.event.title: item for item in workflow.list_for_organizer(organizer)}

    assert summaries["Busy"].total_bookings == 2
    assert summaries["Busy"].total_tickets_sold == 5
    assert summaries["Busy"].total_revenue == Decimal("75.00")
    assert summaries["Busy"].occupancy_rate == 50.0
    assert summaries["Quiet"].total_bookings == 0
    assert summaries["Quiet"].occupancy_rate == 0.0


# ---------------------
# DASHBOARD
# ---------------------

def test_organizer_dashboard(db, organizer, admin, customer, add_event, add_user):
    workflow = ApprovalWorkflow(db)
    busy = workflow.submit(organizer, _draft(title="Busy", total_seats=10))
    workflow.submit(organizer, _draft(title="Quiet"))
    add_event(organizer.id, title="Last Year", date=datetime(2020, 1, 10, 19, 0))
    add_event(add_user(Role.ORGANIZER).id, title="Someone Else")
    workflow.approve(admin, busy.id)
    BookingService(db).book(customer, busy.id, 2)
    BookingService(db).book(customer, busy.id, 3)

    dashboard = workflow.organizer_dashboard(organizer)

    assert dashboard.total_events == 3
    assert dashboard.total_tickets_sold == 5
    assert dashboard.total_revenue == Decimal("75.00")
    assert dashboard.avg_attendance == 1.67
    assert sorted(booking.tickets for booking, _, _, _ in dashboard.recent_bookings) == [2, 3]
    assert {title for _, title, _, _ in dashboard.recent_bookings} == {"Busy"}
    assert {email for _, _, _, email in dashboard.recent_bookings} == {customer.email}
    assert {event.title for event in dashboard.upcoming_events} == {"Busy", "Quiet"}


def test_dashboard_caps_recent_bookings_and_upcoming_events(db, organizer, customer, add_event):
    for day in range(1, 8):
        add_event(organizer.id, title=f"Night {day}", date=datetime(2031, 1, day, 20, 0))
    event = add_event(organizer.id, title="Marathon", total_seats=20)
    for _ in range(12):
        BookingService(db).book(customer, event.id, 1)

    dashboard = ApprovalWorkflow(db).organizer_dashboard(organizer)

    assert len(dashboard.recent_bookings) == 10
    assert [e.title for e in dashboard.upcoming_events] == [
        "Marathon",
        "Night 1",
        "Night 2",
        "Night 3",
        "Night 4",
    ]


def test_dashboard_for_organizer_without_events(db, organizer):
    dashboard = ApprovalWorkflow(db).organizer_dashboard(organizer)

    assert (dashboard.total_events, dashboard.total_tickets_sold) == (0, 0)
    assert dashboard.total_revenue == Decimal("0")
    assert dashboard.avg_attendance == 0.0
    assert dashboard.recent_bookings == []
    assert dashboard.upcoming_events == []


@pytest.mark.parametrize("role", [Role.USER, Role.ADMIN])
def test_dashboard_requires_organizer(db, add_user, role):
    with pytest.raises(ForbiddenError):
        ApprovalWorkflow(db).organizer_dashboard(add_user(role))
