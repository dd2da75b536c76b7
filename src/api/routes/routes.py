import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from src.api.auth import get_current_principal, issue_token
from src.api.schemas.schemas import (
    AdminEventResponse,
    BookingRequest,
    BookingResponse,
    DashboardBooking,
    DashboardStats,
    DecisionRequest,
    EventCreate,
    EventCreatedResponse,
    EventResponse,
    EventUpdate,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    MyBookingResponse,
    OrganizerDashboardResponse,
    OrganizerEventResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from src.application.account_service import AccountService
from src.application.approval_workflow import ApprovalWorkflow, EventDraft
from src.application.booking_service import BookingService
from src.domain.exceptions import TicketingError
from src.domain.principal import Principal
from src.infrastructure.db.models import Event
from src.infrastructure.db.session import SessionLocal


router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)

_STATUS_BY_REASON = {
    "unauthorized": status.HTTP_401_UNAUTHORIZED,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "insufficient_seats": status.HTTP_400_BAD_REQUEST,
    "event_not_bookable": status.HTTP_400_BAD_REQUEST,
    "has_active_bookings": status.HTTP_400_BAD_REQUEST,
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "persistence_failure": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _to_http(exc: TicketingError) -> HTTPException:
    return HTTPException(
        status_code=_STATUS_BY_REASON.get(exc.reason, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"error": exc.message, "reason": exc.reason},
    )


def _event_response(event: Event, organizer_name: str | None = None) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        date=event.date.isoformat(),
        location=event.location,
        price=event.price,
        total_seats=event.total_seats,
        available_seats=event.available_seats,
        organizer_id=event.organizer_id,
        organizer_name=organizer_name,
        image_url=event.image_url,
        status=event.status.value,
    )


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except OperationalError as exc:
        logger.exception("Health check could not reach the database.")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"status": "unhealthy", "database": "disconnected"},
        ) from exc
    return {"status": "healthy", "database": "connected"}


# -----------------------------
# Accounts
# -----------------------------
@router.post("/register", response_model=RegisterResponse)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    try:
        user = AccountService(db).register(
            name=request.name,
            email=request.email,
            password=request.password,
            role=request.role,
        )
    except TicketingError as exc:
        raise _to_http(exc) from exc

    return RegisterResponse(
        message="Registration successful",
        user_id=user.id,
        user_role=user.role.value,
    )


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    try:
        principal = AccountService(db).authenticate(request.email, request.password)
    except TicketingError as exc:
        raise _to_http(exc) from exc

    return LoginResponse(
        message="Login successful",
        access_token=issue_token(principal),
        user=UserResponse(
            id=principal.id,
            name=principal.name,
            email=principal.email,
            role=principal.role.value,
        ),
    )


@router.get("/user", response_model=UserResponse)
def current_user(principal: Principal | None = Depends(get_current_principal)):
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Not authenticated", "reason": "unauthorized"},
        )
    return UserResponse(
        id=principal.id,
        name=principal.name,
        email=principal.email,
        role=principal.role.value,
    )


# -----------------------------
# Events
# -----------------------------
@router.get("/events", response_model=list[EventResponse])
def list_public_events(db: Session = Depends(get_db)):
    rows = ApprovalWorkflow(db).list_public()
    return [_event_response(event, organizer_name) for event, organizer_name in rows]


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(
    event_id: str,
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        event = ApprovalWorkflow(db).get_visible(principal, event_id)
    except TicketingError as exc:
        raise _to_http(exc) from exc
    return _event_response(event)


@router.post("/events", response_model=EventCreatedResponse)
def create_event(
    request: EventCreate,
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    draft = EventDraft(
        title=request.title,
        description=request.description,
        date=request.date,
        location=request.location,
        price=request.price,
        total_seats=request.total_seats,
        image_url=request.image_url,
    )
    try:
        event = ApprovalWorkflow(db).submit(principal, draft)
    except TicketingError as exc:
        raise _to_http(exc) from exc

    return EventCreatedResponse(
        message="Event created successfully and sent for admin approval",
        event_id=event.id,
    )


@router.put("/events/{event_id}", response_model=MessageResponse)
def edit_event(
    event_id: str,
    request: EventUpdate,
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        ApprovalWorkflow(db).edit(principal, event_id, request.model_dump(exclude_unset=True))
    except TicketingError as exc:
        raise _to_http(exc) from exc
    return MessageResponse(message="Event updated successfully")


@router.delete("/events/{event_id}", response_model=MessageResponse)
def delete_event(
    event_id: str,
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        ApprovalWorkflow(db).remove(principal, event_id)
    except TicketingError as exc:
        raise _to_http(exc) from exc
    return MessageResponse(message="Event deleted successfully")


@router.get("/organizer/events", response_model=list[OrganizerEventResponse])
def list_organizer_events(
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        summaries = ApprovalWorkflow(db).list_for_organizer(principal)
    except TicketingError as exc:
        raise _to_http(exc) from exc

    return [
        OrganizerEventResponse(
            **_event_response(item.event).model_dump(),
            admin_notes=item.event.admin_notes,
            total_bookings=item.total_bookings,
            total_tickets_sold=item.total_tickets_sold,
            total_revenue=item.total_revenue,
            occupancy_rate=item.occupancy_rate,
        )
        for item in summaries
    ]


@router.get("/organizer/dashboard", response_model=OrganizerDashboardResponse)
def organizer_dashboard(
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        dashboard = ApprovalWorkflow(db).organizer_dashboard(principal)
    except TicketingError as exc:
        raise _to_http(exc) from exc

    return OrganizerDashboardResponse(
        stats=DashboardStats(
            total_events=dashboard.total_events,
            total_tickets_sold=dashboard.total_tickets_sold,
            total_revenue=dashboard.total_revenue,
            avg_attendance=dashboard.avg_attendance,
        ),
        recent_bookings=[
            DashboardBooking(
                id=booking.id,
                event_id=booking.event_id,
                event_title=event_title,
                tickets=booking.tickets,
                total_amount=booking.total_amount,
                status=booking.status.value,
                booking_date=booking.booking_date.isoformat(),
                user_name=user_name,
                user_email=user_email,
                guest_name=booking.guest_name,
                guest_email=booking.guest_email,
            )
            for booking, event_title, user_name, user_email in dashboard.recent_bookings
        ],
        upcoming_events=[_event_response(event) for event in dashboard.upcoming_events],
    )


# -----------------------------
# Bookings
# -----------------------------
@router.post("/bookings", response_model=BookingResponse)
def book_event(
    request: BookingRequest,
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        confirmation = BookingService(db).book(
            principal,
            event_id=request.event_id,
            tickets=request.tickets,
            guest_name=request.guest_name,
            guest_email=request.guest_email,
        )
    except TicketingError as exc:
        raise _to_http(exc) from exc

    return BookingResponse(
        message="Booking confirmed!",
        booking_id=confirmation.booking_id,
        total_amount=confirmation.total_amount,
        event_title=confirmation.event_title,
    )


@router.get("/my-bookings", response_model=list[MyBookingResponse])
def list_my_bookings(
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    rows = BookingService(db).list_for_principal(principal)
    return [
        MyBookingResponse(
            id=booking.id,
            event_id=booking.event_id,
            tickets=booking.tickets,
            total_amount=booking.total_amount,
            guest_name=booking.guest_name,
            guest_email=booking.guest_email,
            status=booking.status.value,
            booking_date=booking.booking_date.isoformat(),
            event_title=event.title,
            event_date=event.date.isoformat(),
            location=event.location,
            price=event.price,
            event_image=event.image_url,
        )
        for booking, event in rows
    ]


# -----------------------------
# Admin
# -----------------------------
@router.get("/admin/events", response_model=list[AdminEventResponse])
def list_admin_events(
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        rows = ApprovalWorkflow(db).list_for_admin(principal)
    except TicketingError as exc:
        raise _to_http(exc) from exc

    return [
        AdminEventResponse(
            **_event_response(event, organizer_name).model_dump(),
            organizer_email=organizer_email,
            admin_notes=event.admin_notes,
            created_at=event.created_at.isoformat(),
        )
        for event, organizer_name, organizer_email in rows
    ]


@router.put("/admin/events/{event_id}/approve", response_model=MessageResponse)
def approve_event(
    event_id: str,
    request: DecisionRequest | None = None,
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    notes = request.admin_notes if request else None
    try:
        ApprovalWorkflow(db).approve(principal, event_id, notes)
    except TicketingError as exc:
        raise _to_http(exc) from exc
    return MessageResponse(message="Event approved successfully")


@router.put("/admin/events/{event_id}/reject", response_model=MessageResponse)
def reject_event(
    event_id: str,
    request: DecisionRequest | None = None,
    principal: Principal | None = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    notes = request.admin_notes if request else None
    try:
        ApprovalWorkflow(db).reject(principal, event_id, notes)
    except TicketingError as exc:
        raise _to_http(exc) from exc
    return MessageResponse(message="Event rejected successfully")
