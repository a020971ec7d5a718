# app/models/donation.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, func, ForeignKey, Enum, Numeric
from sqlalchemy.orm import relationship
import enum
import uuid
from models.base import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Donation(Base):
    __tablename__ = "donations"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True)
    transaction_id = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))

    amount = Column(Numeric(14, 2), nullable=False)
    payment_method = Column(String(50), default="CARD")
    payment_status = Column(Enum(PaymentStatus, name="payment_status"), default=PaymentStatus.PENDING, nullable=False)

    message = Column(Text)
    anonymous = Column(Boolean, default=False, nullable=False)
    recurring = Column(Boolean, default=False, nullable=False)
    recurring_interval = Column(String(50))

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    fundraising_id = Column(Integer, ForeignKey("fundraisings.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    fundraising = relationship("Fundraising", lazy="joined", innerjoin=True)

    # display-only, filled by the service on every read
    status = None
    fundraising_title = None
    charity_name = None
