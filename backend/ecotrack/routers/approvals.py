"""
Approval API router - manager queues, decisions and alert ingestion.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ecotrack.database import get_db
from ecotrack.deps.auth import get_current_user
from ecotrack.schemas.approval import (
    AlertApprovalCreate,
    ApprovalHistoryResponse,
    ApprovalListResponse,
    ApprovalStatus,
    Caller,
    CreateFromAlertResponse,
    DecisionRequest,
    DecisionResponse,
    PendingCountResponse,
)
from ecotrack.services.approval_service import approval_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/approvals", tags=["approvals"])


@router.get("", response_model=ApprovalListResponse)
def list_approvals(
    status: str = Query("pending", description="pending, approved or rejected"),
    role: Optional[str] = Query(None, description="Manager queue to read (admins only)"),
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List approvals in the caller's queue"""
    return approval_service.list_approvals(caller, db, status=status, requested_role=role)


@router.get("/count", response_model=PendingCountResponse)
def get_pending_count(
    role: Optional[str] = Query(None),
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Pending approvals count for the queue badge"""
    return approval_service.get_pending_count(caller, db, requested_role=role)


@router.get("/history", response_model=ApprovalHistoryResponse)
def get_approval_history(
    limit: int = Query(50),
    role: Optional[str] = Query(None),
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Most recently decided approvals in the caller's queue"""
    return approval_service.get_approval_history(caller, db, limit=limit, requested_role=role)


@router.put("/{approval_id}/approve", response_model=DecisionResponse)
def approve_item(
    approval_id: int,
    body: Optional[DecisionRequest] = None,
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    approval_service.approve_item(caller, db, approval_id, body.notes if body else "")
    return DecisionResponse(
        message="Item approved successfully",
        approval_id=approval_id,
        status=ApprovalStatus.APPROVED.value
    )


@router.put("/{approval_id}/reject", response_model=DecisionResponse)
def reject_item(
    approval_id: int,
    body: Optional[DecisionRequest] = None,
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    approval_service.reject_item(caller, db, approval_id, body.notes if body else "")
    return DecisionResponse(
        message="Item rejected",
        approval_id=approval_id,
        status=ApprovalStatus.REJECTED.value
    )


@router.post("/from-alert", response_model=CreateFromAlertResponse, status_code=201)
def create_from_alert(
    body: AlertApprovalCreate,
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a spoilage approval for the inventory manager from an accepted alert"""
    return approval_service.create_from_alert(caller, db, body)
