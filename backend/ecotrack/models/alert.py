from sqlalchemy import Column, Integer, String, Text, Float, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ecotrack.database import Base


class Alert(Base):
    """Spoilage risk raised for a stored product; admins review it into an approval"""
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(64), nullable=False, index=True)
    product_id = Column(String(64), nullable=True, index=True)
    product_name = Column(String(255), nullable=False)
    risk_level = Column(String(10), nullable=False, index=True)  # HIGH, MEDIUM, LOW
    details = Column(Text, nullable=True)
    days_left = Column(Integer, nullable=False, default=0)
    temperature = Column(Float, nullable=True)
    humidity = Column(Float, nullable=True)
    location = Column(String(255), nullable=True)
    quantity = Column(String(64), nullable=True)
    value = Column(String(32), nullable=True)
    status = Column(String(20), nullable=False, default="active", index=True)  # active, dismissed, resolved
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    approvals = relationship("ManagerApproval", back_populates="alert")
