from decimal import Decimal
from sqlalchemy import String, Integer, DateTime, Boolean, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from travelbook.db.session import Base

class PaketTrip(Base):
    __tablename__ = "paket_trips"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    location: Mapped[str] = mapped_column(String(200), default="")
    duration: Mapped[str] = mapped_column(String(60), default="")  # e.g. "3 hari 2 malam"
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    quota: Mapped[int] = mapped_column(Integer, default=0)
    image: Mapped[str] = mapped_column(String(512), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
