"""
Approval Service - role-scoped approval workflow.

Lists, counts and shows history for a manager queue, records approve/reject
decisions, and ingests accepted alerts as spoilage approvals.
"""
import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ecotrack.errors import Conflict, InvalidInput, NotFound
from ecotrack.schemas.approval import (
    AlertApprovalCreate,
    ApprovalHistoryResponse,
    ApprovalListResponse,
    ApprovalResponse,
    ApprovalStatus,
    Caller,
    CreateFromAlertResponse,
    PendingCountResponse,
    RiskLevel,
    Role,
)
from ecotrack.services.approval_repository import ApprovalRepository
from ecotrack.services.authorization import (
    approval_types_for,
    ensure_admin,
    ensure_manager_role,
    resolve_readable_role,
)

logger = logging.getLogger(__name__)


VALID_STATUSES = {s.value for s in ApprovalStatus}

ALERT_APPROVAL_ROLE = Role.INVENTORY_MANAGER
ALERT_APPROVAL_TYPE = "spoilage_action"


def priority_for_risk(risk_level: Optional[str]) -> str:
    """HIGH/MEDIUM/LOW map straight through; anything else is MEDIUM"""
    try:
        return RiskLevel((risk_level or "").strip().upper()).value
    except ValueError:
        return RiskLevel.MEDIUM.value


class ApprovalService:
    """Service for the manager approval workflow"""

    def list_approvals(
        self,
        caller: Optional[Caller],
        db: Session,
        status: Optional[str] = "pending",
        requested_role: Optional[str] = None,
    ) -> ApprovalListResponse:
        role = resolve_readable_role(caller, requested_role)

        normalized = (status or ApprovalStatus.PENDING.value).strip().lower()
        if normalized not in VALID_STATUSES:
            raise InvalidInput(f"Invalid status '{status}'. Must be one of {sorted(VALID_STATUSES)}.")

        if not approval_types_for(role):
            return ApprovalListResponse(approvals=[], count=0, role=role.value)

        rows = ApprovalRepository(db).find_by_business_role_and_status(caller.business_id, role.value, normalized)
        approvals = [ApprovalResponse.model_validate(row) for row in rows]

        logger.info(f"Listed {len(approvals)} {normalized} approvals for {role.value} (business {caller.business_id})")
        return ApprovalListResponse(approvals=approvals, count=len(approvals), role=role.value)

    def get_pending_count(
        self,
        caller: Optional[Caller],
        db: Session,
        requested_role: Optional[str] = None,
    ) -> PendingCountResponse:
        role = resolve_readable_role(caller, requested_role)
        count = ApprovalRepository(db).count_pending_by_business_and_role(caller.business_id, role.value)
        return PendingCountResponse(count=count)

    def get_approval_history(
        self,
        caller: Optional[Caller],
        db: Session,
        limit: Optional[int] = 50,
        requested_role: Optional[str] = None,
    ) -> ApprovalHistoryResponse:
        role = resolve_readable_role(caller, requested_role)
        rows = ApprovalRepository(db).find_history_by_business_and_role(caller.business_id, role.value, limit)
        history = [ApprovalResponse.model_validate(row) for row in rows]
        return ApprovalHistoryResponse(history=history, count=len(history), role=role.value)

    def approve_item(self, caller: Optional[Caller], db: Session, approval_id: int, notes: Optional[str] = "") -> None:
        self._decide(caller, db, approval_id, ApprovalStatus.APPROVED, notes)

    def reject_item(self, caller: Optional[Caller], db: Session, approval_id: int, notes: Optional[str] = "") -> None:
        self._decide(caller, db, approval_id, ApprovalStatus.REJECTED, notes)

    def _decide(
        self,
        caller: Optional[Caller],
        db: Session,
        approval_id: int,
        decision: ApprovalStatus,
        notes: Optional[str],
    ) -> None:
        """
        Move a pending approval to approved/rejected.

        The pre-read gives the caller a precise error; the conditional update
        is what actually guarantees a single winner.
        """
        role = ensure_manager_role(caller)
        repo = ApprovalRepository(db)

        # Other roles and other businesses look exactly like a missing id
        approval = repo.find_by_id_and_role(approval_id, role.value, caller.business_id)
        if approval is None:
            raise NotFound("Approval not found or not accessible")

        if approval.status != ApprovalStatus.PENDING.value:
            raise Conflict(f"Approval already reviewed ({approval.status})")

        changed = repo.update_status_with_role(
            approval_id, decision.value, caller.user_id, notes, role.value, caller.business_id
        )
        if changed == 0:
            logger.warning(f"Approval {approval_id} was decided concurrently; {decision.value} by {caller.user_id} refused")
            raise Conflict("Approval already reviewed")

        logger.info(f"Approval {approval_id} {decision.value} by {caller.user_id} ({role.value})")

    def create_from_alert(
        self,
        caller: Optional[Caller],
        db: Session,
        alert_data: Union[AlertApprovalCreate, Dict[str, Any]],
        commit: bool = True,
    ) -> CreateFromAlertResponse:
        """
        Create a pending spoilage approval for the inventory manager queue.

        Args:
            caller: Admin accepting the alert
            db: Database session
            alert_data: Alert fields (snake_case or camelCase keys)
            commit: False leaves the insert in the caller's open transaction

        Returns:
            The created approval
        """
        ensure_admin(caller)

        if not isinstance(alert_data, AlertApprovalCreate):
            try:
                alert_data = AlertApprovalCreate.model_validate(alert_data)
            except ValidationError as e:
                raise InvalidInput(f"Invalid alert data: {e.errors()[0].get('msg')}")

        product_name = (alert_data.product_name or "").strip()
        if not product_name:
            raise InvalidInput("product_name is required")

        # Risk is kept as submitted; only priority falls back to MEDIUM
        risk_level = (alert_data.risk_level or "").strip().upper() or RiskLevel.MEDIUM.value
        priority = priority_for_risk(risk_level)
        fields = {
            "business_id": caller.business_id,
            "required_role": ALERT_APPROVAL_ROLE.value,
            "approval_type": ALERT_APPROVAL_TYPE,
            "product_name": product_name,
            "quantity": str(alert_data.quantity) if alert_data.quantity not in (None, "") else "N/A",
            "location": alert_data.location or "Warehouse",
            "days_left": alert_data.days_left or 0,
            "risk_level": risk_level,
            "ai_suggestion": alert_data.ai_suggestion or "",
            "priority": priority,
            "submitted_by": caller.user_id,
            "alert_id": alert_data.alert_id,
            "status": ApprovalStatus.PENDING.value,
        }

        approval = ApprovalRepository(db).create(fields, commit=commit)
        logger.info(f"Created {ALERT_APPROVAL_TYPE} approval {approval.id} for '{product_name}' (priority {priority})")

        return CreateFromAlertResponse(approval=ApprovalResponse.model_validate(approval))


# Singleton instance
approval_service = ApprovalService()
