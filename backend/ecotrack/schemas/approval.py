from pydantic import BaseModel, Field, AliasChoices
from typing import Optional, List, Union
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Roles carried in the caller's token"""
    INVENTORY_MANAGER = "inventory_manager"
    LOGISTICS_MANAGER = "logistics_manager"
    SUSTAINABILITY_MANAGER = "sustainability_manager"
    FINANCE_MANAGER = "finance_manager"
    ADMIN = "admin"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RiskLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Caller(BaseModel):
    """Identity established by the auth layer; passed explicitly into every service call"""
    user_id: str
    role: str
    business_id: str

    class Config:
        frozen = True


class ApprovalResponse(BaseModel):
    id: int
    business_id: str
    required_role: str
    approval_type: str
    product_name: str
    quantity: str
    location: str
    days_left: int
    risk_level: str
    ai_suggestion: str
    priority: str
    submitted_by: Optional[str] = None
    alert_id: Optional[int] = None
    status: str
    reviewed_by: Optional[str] = None
    comments: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApprovalListResponse(BaseModel):
    approvals: List[ApprovalResponse]
    count: int
    role: str


class ApprovalHistoryResponse(BaseModel):
    history: List[ApprovalResponse]
    count: int
    role: str


class PendingCountResponse(BaseModel):
    count: int


class DecisionRequest(BaseModel):
    notes: Optional[str] = ""


class DecisionResponse(BaseModel):
    message: str
    approval_id: int
    status: str


class AlertApprovalCreate(BaseModel):
    """
    Payload for turning an accepted alert into a spoilage approval.

    Accepts both the snake_case keys used by the alert rows and the camelCase
    keys sent by the dashboard.
    """
    alert_id: Optional[int] = Field(None, validation_alias=AliasChoices("alert_id", "alertId"))
    product_name: Optional[str] = Field(None, validation_alias=AliasChoices("product_name", "productName"))
    quantity: Optional[Union[str, int, float]] = None
    location: Optional[str] = None
    days_left: Optional[int] = Field(None, validation_alias=AliasChoices("days_left", "daysLeft"))
    risk_level: Optional[str] = Field(None, max_length=20, validation_alias=AliasChoices("risk_level", "riskLevel"))
    ai_suggestion: Optional[str] = Field(None, validation_alias=AliasChoices("ai_suggestion", "aiSuggestion"))


class CreateFromAlertResponse(BaseModel):
    approval: ApprovalResponse
