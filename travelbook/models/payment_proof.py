from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from travelbook.db.session import Base

class PaymentProof(Base):
    __tablename__ = "payment_proofs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), unique=True, index=True)  # one proof per booking
    image_url: Mapped[str] = mapped_column(String(512))
    bank_name: Mapped[str] = mapped_column(String(40), nullable=True)  # BCA, Mandiri
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
