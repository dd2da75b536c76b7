from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from src.application.inventory_manager import MAX_SEAT_COUNT


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=1)
    role: str = "user"


class RegisterResponse(BaseModel):
    message: str
    user_id: str
    user_role: str
    success: bool = True


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: Literal["user", "organizer", "admin"]


class LoginResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    success: bool = True


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    date: datetime
    location: str = Field(min_length=1, max_length=200)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    total_seats: int = Field(gt=0, le=MAX_SEAT_COUNT)
    image_url: str | None = Field(default=None, max_length=500)


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    date: datetime | None = None
    location: str | None = Field(default=None, min_length=1, max_length=200)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    total_seats: int | None = Field(default=None, gt=0, le=MAX_SEAT_COUNT)
    image_url: str | None = Field(default=None, max_length=500)


class EventCreatedResponse(BaseModel):
    message: str
    event_id: str
    success: bool = True


class EventResponse(BaseModel):
    id: str
    title: str
    description: str | None
    date: str
    location: str
    price: Decimal
    total_seats: int
    available_seats: int
    organizer_id: str | None
    organizer_name: str | None = None
    image_url: str | None
    status: str


class AdminEventResponse(EventResponse):
    organizer_email: str | None = None
    admin_notes: str | None = None
    created_at: str


class OrganizerEventResponse(EventResponse):
    admin_notes: str | None = None
    total_bookings: int
    total_tickets_sold: int
    total_revenue: Decimal
    occupancy_rate: float


class DashboardStats(BaseModel):
    total_events: int
    total_tickets_sold: int
    total_revenue: Decimal
    avg_attendance: float


class DashboardBooking(BaseModel):
    id: str
    event_id: str
    event_title: str
    tickets: int
    total_amount: Decimal
    status: str
    booking_date: str
    user_name: str | None = None
    user_email: str | None = None
    guest_name: str | None = None
    guest_email: str | None = None


class OrganizerDashboardResponse(BaseModel):
    stats: DashboardStats
    recent_bookings: list[DashboardBooking]
    upcoming_events: list[EventResponse]


class DecisionRequest(BaseModel):
    admin_notes: str | None = None


class BookingRequest(BaseModel):
    event_id: str
    tickets: int = Field(gt=0, le=MAX_SEAT_COUNT)
    guest_name: str | None = Field(default=None, max_length=100)
    guest_email: str | None = Field(default=None, max_length=100)


class BookingResponse(BaseModel):
    message: str
    booking_id: str
    total_amount: Decimal
    event_title: str
    success: bool = True


class MyBookingResponse(BaseModel):
    id: str
    event_id: str
    tickets: int
    total_amount: Decimal
    guest_name: str | None
    guest_email: str | None
    status: str
    booking_date: str
    event_title: str
    event_date: str
    location: str
    price: Decimal
    event_image: str | None


class MessageResponse(BaseModel):
    message: str
    success: bool = True
