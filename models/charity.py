# app/models/charity.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, func, ForeignKey, JSON
from sqlalchemy.orm import relationship
import uuid
from models.base import Base


BANK_FIELDS = ("organization_name", "tax_id", "account_number", "routing_code", "bank_name")


class Charity(Base):
    __tablename__ = "charities"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True)
    uuid = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    description = Column(Text)
    website_url = Column(String(500))
    categories = Column(JSON, default=list)  # list of unique tags
    registration_number = Column(String(100), unique=True, nullable=False)

    contact_email = Column(String(255))
    contact_phone = Column(String(20))
    contact_address = Column(Text)

    # bank settlement details, all required together
    organization_name = Column(String(300), nullable=False)
    tax_id = Column(String(20), nullable=False)
    account_number = Column(String(34), nullable=False)
    routing_code = Column(String(20), nullable=False)
    bank_name = Column(String(200), nullable=False)

    verified = Column(Boolean, default=False, nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    # [{url, title, description}]
    documents = Column(JSON, default=list)

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_by = relationship("User", lazy="joined", innerjoin=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
