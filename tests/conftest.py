import os
import tempfile

# Settings are read at import time; point them at throwaway resources first.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PAYMENT_PROOF_DIR"] = tempfile.mkdtemp(prefix="travelbook-proofs-")
os.environ["NOTIFY_ON_EXPIRY"] = "false"

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from travelbook.core.identity import Caller, ROLE_ADMIN, ROLE_USER
from travelbook.core.security import create_access_token, hash_password
from travelbook.db.session import Base, get_db
from travelbook.main import app
from travelbook.models.user import User
from travelbook.models.paket_trip import PaketTrip
from travelbook.models.travel import Travel
from travelbook.models.booking import Booking  # noqa: F401
from travelbook.models.payment_proof import PaymentProof  # noqa: F401
from travelbook.models.notification import Notification  # noqa: F401
from travelbook.models.audit_log import AuditLog  # noqa: F401
from travelbook.schemas.booking import BookingDataIn

NOW = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _make_user(db, email: str, role: str) -> User:
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=email.split("@")[0],
        role=role,
        password_hash=hash_password("password123"),
        is_active=True,
    )
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def admin_user(db):
    return _make_user(db, "admin@travelbook.local", ROLE_ADMIN)


@pytest.fixture
def customer(db):
    return _make_user(db, "budi@example.com", ROLE_USER)


@pytest.fixture
def other_customer(db):
    return _make_user(db, "siti@example.com", ROLE_USER)


@pytest.fixture
def admin(admin_user):
    return Caller.from_user(admin_user)


@pytest.fixture
def user(customer):
    return Caller.from_user(customer)


@pytest.fixture
def other_user(other_customer):
    return Caller.from_user(other_customer)


def _auth_headers(u: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(u.id, u.role)}"}


@pytest.fixture
def trip(db):
    t = PaketTrip(
        id=str(uuid.uuid4()),
        title="Open Trip Bromo",
        description="Sunrise Bromo",
        location="Probolinggo",
        duration="2 hari 1 malam",
        price=Decimal("1000000"),
        quota=10,
        is_active=True,
    )
    db.add(t)
    db.commit()
    return t


@pytest.fixture
def travel(db):
    t = Travel(
        id=str(uuid.uuid4()),
        origin="Malang",
        destination="Surabaya",
        vehicle_type="Hiace",
        price_per_person=Decimal("150000"),
        capacity=8,
        is_active=True,
    )
    db.add(t)
    db.commit()
    return t


def _booking_data(participants: int = 2, departure: date | None = None, **extra) -> BookingDataIn:
    return BookingDataIn(
        nama_pemesan="Budi Santoso",
        nomor_hp="081234567890",
        tanggal_keberangkatan=departure or (NOW.date() + timedelta(days=14)),
        participant_count=participants,
        **extra,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_booking_data():
    return _booking_data


@pytest.fixture
def auth_headers():
    return _auth_headers
