"""
Alert API router - spoilage alerts, admin review and AI insights.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ecotrack.database import get_db
from ecotrack.deps.auth import get_current_user
from ecotrack.schemas.alert import (
    AlertCreate,
    AlertInsightsResponse,
    AlertListResponse,
    AlertResponse,
    AlertReviewRequest,
    AlertReviewResponse,
    AlertStatsResponse,
    AlertStatusUpdate,
)
from ecotrack.schemas.approval import Caller
from ecotrack.services.alert_service import alert_service
from ecotrack.services.insight_service import insight_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


@router.get("", response_model=AlertListResponse)
def list_alerts(
    risk_level: Optional[str] = Query(None, description="Filter by HIGH, MEDIUM or LOW"),
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List active alerts for the caller's business"""
    return alert_service.list_alerts(caller, db, risk_level=risk_level)


@router.get("/stats", response_model=AlertStatsResponse)
def get_alert_stats(caller: Caller = Depends(get_current_user), db: Session = Depends(get_db)):
    return alert_service.get_stats(caller, db)


@router.post("", response_model=AlertResponse, status_code=201)
def create_alert(
    body: AlertCreate,
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return alert_service.create_alert(caller, db, body)


@router.patch("/{alert_id}/status", response_model=AlertResponse)
def update_alert_status(
    alert_id: int,
    body: AlertStatusUpdate,
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return alert_service.update_status(caller, db, alert_id, body.status)


@router.delete("/{alert_id}")
def delete_alert(
    alert_id: int,
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    alert_service.delete_alert(caller, db, alert_id)
    return {"message": "Alert deleted successfully"}


@router.post("/{alert_id}/review", response_model=AlertReviewResponse)
async def review_alert(
    alert_id: int,
    body: AlertReviewRequest,
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Accept an alert (sends it to the inventory manager for approval) or dismiss it.
    """
    return await alert_service.review_alert(caller, db, alert_id, body.decision, body.ai_suggestion)


@router.get("/{alert_id}/insights", response_model=AlertInsightsResponse)
async def get_alert_insights(
    alert_id: int,
    caller: Caller = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """AI recommendations for an alert (rule-based when no AI service is configured)"""
    alert = alert_service.get_alert(caller, db, alert_id)
    insights = await insight_service.generate_alert_insights(alert)
    return AlertInsightsResponse(**insights)
