"""
Approval Repository - SQLAlchemy access to the manager_approvals table.

Every read is scoped by business and required role. The status update is a
single conditional UPDATE guarded on status = 'pending', so two concurrent
decisions on the same approval can never both succeed.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, update
from sqlalchemy.orm import Session

from ecotrack.config import settings
from ecotrack.models.approval import ManagerApproval
from ecotrack.schemas.approval import ApprovalStatus

logger = logging.getLogger(__name__)


_PRIORITY_ORDER = case(
    (ManagerApproval.priority == "HIGH", 1),
    (ManagerApproval.priority == "MEDIUM", 2),
    (ManagerApproval.priority == "LOW", 3),
    else_=4,
)


def clamp_history_limit(limit: Optional[int]) -> int:
    """Fall back to the default for missing/non-positive limits, then cap at the max"""
    try:
        value = int(limit) if limit is not None else 0
    except (TypeError, ValueError):
        value = 0
    if value <= 0:
        value = settings.history_default_limit
    return min(value, settings.history_max_limit)


class ApprovalRepository:
    """Data accessor for approvals, bound to one database session"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_business_role_and_status(self, business_id: str, role: str, status: str) -> List[ManagerApproval]:
        return (
            self.db.query(ManagerApproval)
            .filter(
                ManagerApproval.business_id == business_id,
                ManagerApproval.required_role == role,
                ManagerApproval.status == status,
            )
            .order_by(_PRIORITY_ORDER, ManagerApproval.created_at.desc(), ManagerApproval.id.desc())
            .all()
        )

    def count_pending_by_business_and_role(self, business_id: str, role: str) -> int:
        return (
            self.db.query(func.count(ManagerApproval.id))
            .filter(
                ManagerApproval.business_id == business_id,
                ManagerApproval.required_role == role,
                ManagerApproval.status == ApprovalStatus.PENDING.value,
            )
            .scalar()
        ) or 0

    def find_history_by_business_and_role(self, business_id: str, role: str, limit: Optional[int] = None) -> List[ManagerApproval]:
        """Decided approvals, most recently decided first"""
        decided_at = func.coalesce(ManagerApproval.reviewed_at, ManagerApproval.created_at)
        return (
            self.db.query(ManagerApproval)
            .filter(
                ManagerApproval.business_id == business_id,
                ManagerApproval.required_role == role,
                ManagerApproval.status.in_([ApprovalStatus.APPROVED.value, ApprovalStatus.REJECTED.value]),
            )
            .order_by(decided_at.desc(), ManagerApproval.id.desc())
            .limit(clamp_history_limit(limit))
            .all()
        )

    def find_by_id_and_role(self, approval_id: int, role: str, business_id: Optional[str] = None) -> Optional[ManagerApproval]:
        query = self.db.query(ManagerApproval).filter(
            ManagerApproval.id == approval_id,
            ManagerApproval.required_role == role,
        )
        if business_id is not None:
            query = query.filter(ManagerApproval.business_id == business_id)
        return query.first()

    def update_status_with_role(
        self,
        approval_id: int,
        status: str,
        reviewer_id: str,
        notes: Optional[str],
        role: str,
        business_id: str,
    ) -> int:
        """
        Decide a pending approval.

        Returns:
            Number of rows changed: 1 on success, 0 if the approval was no
            longer pending (or doesn't belong to role and business)
        """
        result = self.db.execute(
            update(ManagerApproval)
            .where(
                ManagerApproval.id == approval_id,
                ManagerApproval.business_id == business_id,
                ManagerApproval.required_role == role,
                ManagerApproval.status == ApprovalStatus.PENDING.value,
            )
            .values(
                status=status,
                reviewed_by=reviewer_id,
                comments=notes or "",
                reviewed_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def create(self, fields: Dict[str, Any], commit: bool = True) -> ManagerApproval:
        """Insert an approval; with commit=False it is only flushed into the caller's transaction"""
        approval = ManagerApproval(**fields)
        self.db.add(approval)
        if not commit:
            self.db.flush()
            return approval
        self.db.commit()
        self.db.refresh(approval)
        return approval
