from ecotrack.schemas.approval import (
    Role,
    ApprovalStatus,
    RiskLevel,
    Caller,
    ApprovalResponse,
    ApprovalListResponse,
    ApprovalHistoryResponse,
    PendingCountResponse,
    AlertApprovalCreate,
)
from ecotrack.schemas.alert import AlertStatus, AlertResponse, AlertCreate

__all__ = [
    "Role",
    "ApprovalStatus",
    "RiskLevel",
    "Caller",
    "ApprovalResponse",
    "ApprovalListResponse",
    "ApprovalHistoryResponse",
    "PendingCountResponse",
    "AlertApprovalCreate",
    "AlertStatus",
    "AlertResponse",
    "AlertCreate",
]
