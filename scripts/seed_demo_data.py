from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from src.application.account_service import hash_password
from src.domain.principal import Role
from src.domain.state_machine import EventStatus
from src.infrastructure.db.models import Base, Event, User
from src.infrastructure.db.session import SessionLocal, engine
from src.infrastructure.repositories.user_repository import UserRepository

DEMO_PASSWORD = "password123"


def _dt(days_from_now: int, hour: int, minute: int) -> datetime:
    now = datetime.now(timezone.utc)
    target = now + timedelta(days=days_from_now)
    return target.replace(hour=hour, minute=minute, second=0, microsecond=0)


def create_schema() -> None:
    Base.metadata.create_all(bind=engine)


def seed_users(db) -> dict[str, User]:
    user_defs = [
        ("Admin User", "admin@eventhub.com", Role.ADMIN),
        ("Event Organizer", "organizer@eventhub.com", Role.ORGANIZER),
        ("John Doe", "user@eventhub.com", Role.USER),
    ]
    repository = UserRepository(db)
    users = {}
    for name, email, role in user_defs:
        user = repository.get_by_email(email)
        if user is None:
            user = repository.insert(
                name=name,
                email=email,
                password_hash=hash_password(DEMO_PASSWORD),
                role=role,
            )
        users[role.value] = user
    return users


def seed_events(db, organizer: User) -> None:
    event_defs = [
        {
            "title": "Tech Conference",
            "description": "Annual technology conference featuring AI, web development and cloud computing.",
            "date": _dt(days_from_now=30, hour=9, minute=0),
            "location": "Convention Center, New York",
            "price": Decimal("199.99"),
            "total_seats": 200,
            "image_url": "https://images.unsplash.com/photo-1540575467063-178a50c2df87?w=500&h=300&fit=crop",
        },
        {
            "title": "Music Festival",
            "description": "Summer music festival with popular artists, food trucks and live performances.",
            "date": _dt(days_from_now=45, hour=14, minute=0),
            "location": "Central Park, NYC",
            "price": Decimal("79.99"),
            "total_seats": 5000,
            "image_url": "https://images.unsplash.com/photo-1470229722913-7c0e2dbbafd3?w=500&h=300&fit=crop",
        },
        {
            "title": "Business Workshop",
            "description": "Leadership and management skills workshop for professionals.",
            "date": _dt(days_from_now=60, hour=10, minute=0),
            "location": "Business Center, Chicago",
            "price": Decimal("149.99"),
            "total_seats": 50,
            "image_url": "https://images.unsplash.com/photo-1515168833906-d2d02d7b2b14?w=500&h=300&fit=crop",
        },
    ]

    for item in event_defs:
        existing = db.execute(
            select(Event).where(Event.title == item["title"])
        ).scalar_one_or_none()
        if existing:
            continue

        db.add(
            Event(
                **item,
                available_seats=item["total_seats"],
                organizer_id=organizer.id,
                status=EventStatus.APPROVED,
                admin_notes="Seeded demo event",
            )
        )


def main() -> None:
    create_schema()
    db = SessionLocal()
    try:
        users = seed_users(db)
        seed_events(db, users[Role.ORGANIZER.value])
        db.commit()
        print(f"Seed complete: demo accounts use password {DEMO_PASSWORD!r}, 3 approved events added.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
