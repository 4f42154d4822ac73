# Services/alert_router.py
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy import case
from sqlalchemy.orm import Session
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime
from Models import Alert, AlertCategory, AlertCondition, AlertPriority, AlertState
from database import get_db, transaction
from Services.access import OPERATORS, require_role
from Services.alert_engine import AlertEngine
from Services.dependencies import get_alert_engine

router = APIRouter(
    tags=["alerts"],
    responses={404: {"description": "Alert not found"}},
    dependencies=[Depends(require_role(*OPERATORS))]
)

class AlertResponse(BaseModel):
    id: int
    category: AlertCategory
    related_id: int
    condition: AlertCondition
    priority: AlertPriority
    message: str
    state: AlertState
    created_at: datetime
    resolved_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)

class ResolveResult(BaseModel):
    category: AlertCategory
    related_id: int
    resolved: int

# High first, then newest
_priority_rank = case(
    (Alert.priority == AlertPriority.HIGH, 1),
    (Alert.priority == AlertPriority.MEDIUM, 2),
    else_=3,
)

@router.get("/list", response_model=List[AlertResponse])
async def list_alerts(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    state: Optional[AlertState] = None,
    category: Optional[AlertCategory] = None,
    priority: Optional[AlertPriority] = None,
    db: Session = Depends(get_db)
):
    query = db.query(Alert)
    if state:
        query = query.filter(Alert.state == state)
    if category:
        query = query.filter(Alert.category == category)
    if priority:
        query = query.filter(Alert.priority == priority)
    return query.order_by(_priority_rank, Alert.created_at.desc()).offset(skip).limit(limit).all()

@router.get("/active", response_model=List[AlertResponse])
async def list_active_alerts(
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    return (
        db.query(Alert)
        .filter(Alert.state == AlertState.ACTIVE)
        .order_by(_priority_rank, Alert.created_at.desc())
        .limit(limit)
        .all()
    )

@router.get("/{alert_id}", response_model=AlertResponse)
async def get_alert(
    alert_id: int,
    db: Session = Depends(get_db)
):
    alert = db.get(Alert, alert_id)
    if not alert:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Alert not found"
        )
    return alert

@router.patch("/resolve-by-relation/{category}/{related_id}", response_model=ResolveResult)
async def resolve_alerts_by_relation(
    category: AlertCategory,
    related_id: int,
    db: Session = Depends(get_db),
    engine: AlertEngine = Depends(get_alert_engine)
):
    with transaction(db):
        resolved = engine.resolve_alerts_for_relation(db, category, related_id)
    return ResolveResult(category=category, related_id=related_id, resolved=resolved)

@router.patch("/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(
    alert_id: int,
    db: Session = Depends(get_db),
    engine: AlertEngine = Depends(get_alert_engine)
):
    with transaction(db):
        alert = engine.resolve_alert(db, alert_id)
    db.refresh(alert)
    return alert
