from sqlalchemy import String, DateTime, Boolean, Text, JSON, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from travelbook.db.session import Base

TYPE_BOOKING_CREATED = "booking_created"
TYPE_PAYMENT_PROOF_UPLOADED = "payment_proof_uploaded"
TYPE_PAYMENT_APPROVED = "payment_approved"
TYPE_PAYMENT_REJECTED = "payment_rejected"
TYPE_BOOKING_EXPIRED = "booking_expired"

NOTIFICATION_TYPES = (
    TYPE_BOOKING_CREATED,
    TYPE_PAYMENT_PROOF_UPLOADED,
    TYPE_PAYMENT_APPROVED,
    TYPE_PAYMENT_REJECTED,
    TYPE_BOOKING_EXPIRED,
)

class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=True)  # null = admin broadcast
    type: Mapped[str] = mapped_column(String(40), index=True)
    title: Mapped[str] = mapped_column(String(200), default="")
    message: Mapped[str] = mapped_column(Text, default="")
    data: Mapped[dict] = mapped_column(JSON, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("type IN (" + ", ".join(f"'{t}'" for t in NOTIFICATION_TYPES) + ")", name="ck_notifications_type"),
    )
