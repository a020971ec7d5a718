# app/models/fundraising.py
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, JSON, Numeric, func
from sqlalchemy.orm import relationship
import enum
from models.base import Base


# Target stored on general funds; rules branch on `kind`, never on this value.
GENERAL_FUND_TARGET = Decimal("999999999999")


class FundraisingKind(str, enum.Enum):
    GENERAL = "general"    # per-charity fund for undesignated donations
    TARGETED = "targeted"  # campaign with a bounded target


class Fundraising(Base):
    __tablename__ = "fundraisings"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True)

    charity_id = Column(Integer, ForeignKey("charities.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    kind = Column(Enum(FundraisingKind, name="fundraising_kind"), default=FundraisingKind.TARGETED, nullable=False)

    title = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=False)
    image_url = Column(String(500), nullable=True)
    diagnosis = Column(String(1000), nullable=True)

    target_amount = Column(Numeric(14, 2), nullable=False)
    current_amount = Column(Numeric(14, 2), default=Decimal("0"), nullable=False)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)

    active = Column(Boolean, default=True, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)

    documents = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    charity = relationship("Charity", lazy="joined", innerjoin=True)
    created_by = relationship("User", lazy="joined", innerjoin=True)

    @property
    def is_general_fund(self) -> bool:
        return self.kind == FundraisingKind.GENERAL

    @property
    def remaining_amount(self):
        """Amount still accepted, or None when the fund is unbounded."""
        if self.is_general_fund:
            return None
        return self.target_amount - (self.current_amount or Decimal("0"))
