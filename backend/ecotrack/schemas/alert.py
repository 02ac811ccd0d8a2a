from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from enum import Enum

from ecotrack.schemas.approval import ApprovalResponse


class AlertStatus(str, Enum):
    ACTIVE = "active"
    DISMISSED = "dismissed"
    RESOLVED = "resolved"


class StorageCategory(str, Enum):
    REFRIGERATED = "refrigerated"
    FROZEN = "frozen"
    AMBIENT = "ambient"
    CONTROLLED_ATMOSPHERE = "controlled_atmosphere"


class AlertResponse(BaseModel):
    id: int
    business_id: str
    product_id: Optional[str] = None
    product_name: str
    risk_level: str
    details: Optional[str] = None
    days_left: int
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    location: Optional[str] = None
    quantity: Optional[str] = None
    value: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AlertListResponse(BaseModel):
    alerts: List[AlertResponse]
    count: int


class AlertCreate(BaseModel):
    product_name: str
    product_id: Optional[str] = None
    days_left: int = 0
    risk_level: Optional[str] = None  # Derived from storage conditions when omitted
    storage_category: Optional[str] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    location: Optional[str] = None
    quantity: Optional[str] = None
    value: Optional[str] = None
    details: Optional[str] = None


class AlertStatusUpdate(BaseModel):
    status: str


class AlertStatsResponse(BaseModel):
    total: int
    high_risk: int
    medium_risk: int
    low_risk: int


class AlertReviewRequest(BaseModel):
    decision: str  # accepted, dismissed
    ai_suggestion: Optional[str] = None


class AlertReviewResponse(BaseModel):
    alert: AlertResponse
    approval: Optional[ApprovalResponse] = None


class AlertInsightsResponse(BaseModel):
    summary: str
    recommendations: List[str] = []
    priority_actions: List[str] = []
    source: str  # ai, rules
