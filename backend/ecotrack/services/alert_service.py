"""
Alert Service - spoilage alerts for a business and the admin review step that
turns an accepted alert into an inventory manager approval.
"""
import logging
from typing import Optional

from sqlalchemy import case, func, update
from sqlalchemy.orm import Session

from ecotrack.errors import Conflict, InvalidInput, NotFound, Unauthenticated
from ecotrack.models.alert import Alert
from ecotrack.schemas.alert import (
    AlertCreate,
    AlertListResponse,
    AlertResponse,
    AlertReviewResponse,
    AlertStatsResponse,
    AlertStatus,
)
from ecotrack.schemas.approval import Caller, RiskLevel
from ecotrack.services.approval_service import approval_service
from ecotrack.services.authorization import ensure_admin
from ecotrack.services.insight_service import insight_service, suggestion_from_insights

logger = logging.getLogger(__name__)


# (max temperature C, (min humidity %, max humidity %)) per storage category
STORAGE_THRESHOLDS = {
    "refrigerated": (4, (80, 95)),
    "frozen": (-18, (0, 100)),
    "ambient": (25, (40, 70)),
    "controlled_atmosphere": (10, (85, 95)),
}

VALID_STATUSES = {s.value for s in AlertStatus}
REVIEW_DECISIONS = {"accepted", "dismissed"}


def has_suboptimal_conditions(temperature: Optional[float], humidity: Optional[float], storage_category: Optional[str]) -> bool:
    temp_max, (humidity_min, humidity_max) = STORAGE_THRESHOLDS.get(storage_category or "", STORAGE_THRESHOLDS["ambient"])
    if temperature is not None and temperature > temp_max:
        return True
    if humidity is not None and (humidity < humidity_min or humidity > humidity_max):
        return True
    return False


def calculate_risk_level(
    days_left: int,
    temperature: Optional[float] = None,
    humidity: Optional[float] = None,
    storage_category: Optional[str] = None,
) -> str:
    if days_left <= 3:
        return RiskLevel.HIGH.value
    if days_left <= 7:
        return RiskLevel.MEDIUM.value
    if days_left <= 14 and has_suboptimal_conditions(temperature, humidity, storage_category):
        return RiskLevel.MEDIUM.value
    return RiskLevel.LOW.value


def describe_alert(product_name: str, risk_level: str, days_left: int) -> str:
    messages = {
        "HIGH": f"Critical: {product_name} expires in {days_left} days. Immediate action required.",
        "MEDIUM": f"Warning: {product_name} has {days_left} days remaining. Prioritize for delivery.",
        "LOW": f"Info: {product_name} shelf life is {days_left} days. Product condition stable.",
    }
    return messages.get(risk_level, f"{product_name}: {days_left} days remaining.")


def _require_caller(caller: Optional[Caller]) -> Caller:
    if caller is None:
        raise Unauthenticated("Authentication required")
    return caller


def _normalize_risk(risk_level: str) -> str:
    try:
        return RiskLevel(risk_level.strip().upper()).value
    except ValueError:
        raise InvalidInput(f"Invalid risk level '{risk_level}'. Must be one of {[r.value for r in RiskLevel]}.")


class AlertService:
    """Service for spoilage alerts, always scoped to the caller's business"""

    def _get_alert(self, caller: Caller, db: Session, alert_id: int) -> Alert:
        alert = db.query(Alert).filter(
            Alert.id == alert_id,
            Alert.business_id == caller.business_id,
        ).first()
        if not alert:
            raise NotFound("Alert not found")
        return alert

    def get_alert(self, caller: Optional[Caller], db: Session, alert_id: int) -> Alert:
        return self._get_alert(_require_caller(caller), db, alert_id)

    def list_alerts(self, caller: Optional[Caller], db: Session, risk_level: Optional[str] = None) -> AlertListResponse:
        """Active alerts, highest risk and soonest expiry first"""
        caller = _require_caller(caller)

        query = db.query(Alert).filter(
            Alert.business_id == caller.business_id,
            Alert.status == AlertStatus.ACTIVE.value,
        )
        if risk_level:
            query = query.filter(Alert.risk_level == _normalize_risk(risk_level))

        risk_order = case(
            (Alert.risk_level == "HIGH", 1),
            (Alert.risk_level == "MEDIUM", 2),
            (Alert.risk_level == "LOW", 3),
            else_=4,
        )
        rows = query.order_by(risk_order, Alert.days_left.asc(), Alert.id.asc()).all()
        alerts = [AlertResponse.model_validate(row) for row in rows]
        return AlertListResponse(alerts=alerts, count=len(alerts))

    def get_stats(self, caller: Optional[Caller], db: Session) -> AlertStatsResponse:
        caller = _require_caller(caller)

        counts = dict(
            db.query(Alert.risk_level, func.count(Alert.id))
            .filter(
                Alert.business_id == caller.business_id,
                Alert.status == AlertStatus.ACTIVE.value,
            )
            .group_by(Alert.risk_level)
            .all()
        )
        return AlertStatsResponse(
            total=sum(counts.values()),
            high_risk=counts.get("HIGH", 0),
            medium_risk=counts.get("MEDIUM", 0),
            low_risk=counts.get("LOW", 0),
        )

    def create_alert(self, caller: Optional[Caller], db: Session, data: AlertCreate) -> AlertResponse:
        caller = _require_caller(caller)

        if data.risk_level:
            risk_level = _normalize_risk(data.risk_level)
        else:
            risk_level = calculate_risk_level(data.days_left, data.temperature, data.humidity, data.storage_category)

        alert = Alert(
            business_id=caller.business_id,
            product_id=data.product_id,
            product_name=data.product_name,
            risk_level=risk_level,
            details=data.details or describe_alert(data.product_name, risk_level, data.days_left),
            days_left=max(0, data.days_left),
            temperature=data.temperature,
            humidity=data.humidity,
            location=data.location or "Warehouse",
            quantity=data.quantity,
            value=data.value,
            status=AlertStatus.ACTIVE.value,
        )
        db.add(alert)
        db.commit()
        db.refresh(alert)

        logger.info(f"Created {risk_level} alert {alert.id} for '{alert.product_name}' (business {caller.business_id})")
        return AlertResponse.model_validate(alert)

    def update_status(self, caller: Optional[Caller], db: Session, alert_id: int, status: str) -> AlertResponse:
        caller = _require_caller(caller)

        normalized = (status or "").strip().lower()
        if normalized not in VALID_STATUSES:
            raise InvalidInput(f"Invalid status '{status}'. Must be one of {sorted(VALID_STATUSES)}.")

        alert = self._get_alert(caller, db, alert_id)
        alert.status = normalized
        db.commit()
        db.refresh(alert)
        return AlertResponse.model_validate(alert)

    def delete_alert(self, caller: Optional[Caller], db: Session, alert_id: int) -> None:
        caller = _require_caller(caller)
        alert = self._get_alert(caller, db, alert_id)
        db.delete(alert)
        db.commit()
        logger.info(f"Deleted alert {alert_id} (business {caller.business_id})")

    async def review_alert(
        self,
        caller: Optional[Caller],
        db: Session,
        alert_id: int,
        decision: str,
        ai_suggestion: Optional[str] = None,
    ) -> AlertReviewResponse:
        """
        Admin review of an active alert.

        accepted: create a spoilage approval for the inventory manager and resolve the alert
        dismissed: dismiss the alert, no approval is created

        The status change is guarded on status = 'active' and committed together
        with the approval, so an alert is reviewed at most once.
        """
        caller = ensure_admin(caller)

        normalized = (decision or "").strip().lower()
        if normalized not in REVIEW_DECISIONS:
            raise InvalidInput(f"Invalid decision '{decision}'. Must be one of {sorted(REVIEW_DECISIONS)}.")

        alert = self._get_alert(caller, db, alert_id)
        if alert.status != AlertStatus.ACTIVE.value:
            raise Conflict(f"Alert already {alert.status}")

        accepted = normalized == "accepted"
        if accepted and not ai_suggestion:
            insights = await insight_service.generate_alert_insights(alert)
            ai_suggestion = suggestion_from_insights(alert, insights)

        new_status = AlertStatus.RESOLVED.value if accepted else AlertStatus.DISMISSED.value
        approval_data = {
            "alert_id": alert.id,
            "product_name": alert.product_name,
            "quantity": alert.quantity,
            "location": alert.location,
            "days_left": alert.days_left,
            "risk_level": alert.risk_level,
            "ai_suggestion": ai_suggestion,
        }

        try:
            result = db.execute(
                update(Alert)
                .where(
                    Alert.id == alert_id,
                    Alert.business_id == caller.business_id,
                    Alert.status == AlertStatus.ACTIVE.value,
                )
                .values(status=new_status)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                logger.warning(f"Alert {alert_id} was reviewed concurrently; {normalized} by {caller.user_id} refused")
                raise Conflict("Alert already reviewed")

            approval = None
            if accepted:
                approval = approval_service.create_from_alert(caller, db, approval_data, commit=False).approval
            db.commit()
        except Exception:
            db.rollback()
            raise

        reviewed = db.query(Alert).filter(Alert.id == alert_id).one()
        logger.info(f"Alert {alert_id} {normalized} by {caller.user_id}")
        return AlertReviewResponse(alert=AlertResponse.model_validate(reviewed), approval=approval)


# Singleton instance
alert_service = AlertService()
