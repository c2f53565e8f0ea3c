import logging
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError, OperationalError

from travelbook.db.session import SessionLocal
from travelbook.core.identity import ROLE_ADMIN, ROLE_USER
from travelbook.core.logging import configure_logging
from travelbook.core.security import hash_password
from travelbook.models.user import User
from travelbook.models.paket_trip import PaketTrip
from travelbook.models.travel import Travel

logger = logging.getLogger(__name__)

TRIPS = [
    # title, location, duration, price, quota
    ("Open Trip Bromo Sunrise", "Probolinggo, Jawa Timur", "2 hari 1 malam", "1000000", 20),
    ("Explore Labuan Bajo", "Manggarai Barat, NTT", "4 hari 3 malam", "4500000", 12),
    ("Pulau Seribu Island Hopping", "Kepulauan Seribu, DKI Jakarta", "1 hari", "350000", 30),
]

TRAVELS = [
    # origin, destination, vehicle_type, price_per_person, capacity
    ("Malang", "Surabaya", "Hiace", "150000", 10),
    ("Malang", "Juanda Airport", "Innova Reborn", "175000", 6),
    ("Surabaya", "Yogyakarta", "Elf Long", "300000", 14),
]


def ensure_user(db: Session, email: str, password: str, role: str, name: str):
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            full_name=name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    db.commit()


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, "admin@travelbook.local", "admin12345", ROLE_ADMIN, "Admin")
        ensure_user(db, "user@travelbook.local", "user12345", ROLE_USER, "Demo User")

        for title, location, duration, price, quota in TRIPS:
            if db.query(PaketTrip).filter(PaketTrip.title == title).first():
                continue
            db.add(PaketTrip(
                id=str(uuid.uuid4()),
                title=title,
                description=f"Paket {title.lower()} bersama pemandu lokal.",
                location=location,
                duration=duration,
                price=Decimal(price),
                quota=quota,
                is_active=True,
            ))

        for origin, destination, vehicle, price, capacity in TRAVELS:
            exists = db.query(Travel).filter(Travel.origin == origin, Travel.destination == destination).first()
            if exists:
                continue
            db.add(Travel(
                id=str(uuid.uuid4()),
                origin=origin,
                destination=destination,
                vehicle_type=vehicle,
                price_per_person=Decimal(price),
                capacity=capacity,
                is_active=True,
            ))
        db.commit()
        logger.info("Seed data ensured")
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    run()
