# app/models/recurring_payment.py
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Numeric, func
from sqlalchemy.orm import relationship
from models.base import Base


class RecurringPayment(Base):
    __tablename__ = "recurring_payments"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    fundraising_id = Column(Integer, ForeignKey("fundraisings.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(14, 2), nullable=False)
    payment_day = Column(Integer, nullable=False)  # 1-31
    next_payment_date = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    fundraising = relationship("Fundraising", lazy="joined", innerjoin=True)
