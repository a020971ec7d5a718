# app/models/report.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Numeric, JSON, func
from models.base import Base


class Report(Base):
    __tablename__ = "reports"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True)
    fundraising_id = Column(Integer, ForeignKey("fundraisings.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=False)
    spent_amount = Column(Numeric(14, 2), nullable=False)

    # parallel lists, index i of one describes index i of the other
    document_urls = Column(JSON, default=list)
    document_descriptions = Column(JSON, default=list)

    report_date = Column(DateTime(timezone=True), nullable=False)
    verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
