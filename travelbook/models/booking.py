import enum
from decimal import Decimal
from sqlalchemy import String, DateTime, Numeric, Text, JSON, Enum, Index
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from travelbook.db.session import Base


class BookingStatus(str, enum.Enum):
    # Persisted and returned verbatim; part of the API contract.
    MENUNGGU_PEMBAYARAN = "menunggu_pembayaran"
    MENUNGGU_VALIDASI = "menunggu_validasi"
    LUNAS = "lunas"
    DITOLAK = "ditolak"
    EXPIRED = "expired"


class CatalogType(str, enum.Enum):
    TRIP = "trip"
    TRAVEL = "travel"


def _enum_values(e):
    return [m.value for m in e]


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_code: Mapped[str] = mapped_column(String(20), unique=True, index=True)

    user_id: Mapped[str] = mapped_column(String(36), index=True)
    catalog_type: Mapped[CatalogType] = mapped_column(
        Enum(CatalogType, native_enum=False, length=10, values_callable=_enum_values), index=True
    )
    catalog_id: Mapped[str] = mapped_column(String(36), index=True)

    # {nama_pemesan, nomor_hp, tanggal_keberangkatan, jumlah_orang, catatan_tambahan}
    booking_data: Mapped[dict] = mapped_column(JSON, default=dict)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, native_enum=False, length=30, values_callable=_enum_values),
        default=BookingStatus.MENUNGGU_PEMBAYARAN,
        index=True,
    )
    expired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    rejection_reason: Mapped[str] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_bookings_status_expired_at", "status", "expired_at"),
    )
