from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ecotrack.database import Base


class ManagerApproval(Base):
    """A spoilage/logistics/carbon/cost decision waiting on exactly one manager role"""
    __tablename__ = "manager_approvals"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(64), nullable=False, index=True)
    required_role = Column(String(50), nullable=False, index=True)  # inventory_manager, logistics_manager, ...
    approval_type = Column(String(50), nullable=False)  # spoilage_action, route_optimization, ...

    # Payload
    product_name = Column(String(255), nullable=False)
    quantity = Column(String(64), nullable=False, default="N/A")
    location = Column(String(255), nullable=False, default="Warehouse")
    days_left = Column(Integer, nullable=False, default=0)
    risk_level = Column(String(20), nullable=False, default="MEDIUM")  # as submitted: HIGH, MEDIUM, LOW, ...
    ai_suggestion = Column(Text, nullable=False, default="")
    priority = Column(String(10), nullable=False, default="MEDIUM")
    submitted_by = Column(String(64), nullable=True)
    alert_id = Column(Integer, ForeignKey("alerts.id", ondelete="SET NULL"), nullable=True)

    # Lifecycle
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, approved, rejected
    reviewed_by = Column(String(64), nullable=True)
    comments = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    alert = relationship("Alert", back_populates="approvals")

    __table_args__ = (
        Index("idx_approvals_queue", "business_id", "required_role", "status"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_manager_approvals_status"),
    )
