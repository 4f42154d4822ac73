# Services/maintenance_router.py
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, ConfigDict, confloat, constr
from typing import List, Optional
from datetime import date, datetime
from Models import Maintenance, MaintenanceState
from database import get_db, transaction
from Services.access import OPERATORS, require_role
from Services.dependencies import get_maintenance_lifecycle
from Services.maintenance_lifecycle import MaintenanceLifecycle

router = APIRouter(
    tags=["maintenance"],
    responses={404: {"description": "Maintenance not found"}}
)

class MaintenanceSchedule(BaseModel):
    vehicle_id: int
    scheduled_date: date
    category: constr(min_length=2, max_length=50)
    description: constr(min_length=2, max_length=500)
    cost: confloat(ge=0)

class MaintenanceComplete(BaseModel):
    cost: Optional[confloat(ge=0)] = None
    description: Optional[constr(min_length=2, max_length=500)] = None

class MaintenanceResponse(BaseModel):
    id: int
    vehicle_id: int
    scheduled_date: date
    category: str
    description: str
    cost: float
    state: MaintenanceState
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)

@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_role(*OPERATORS))])
async def schedule_maintenance(
    payload: MaintenanceSchedule,
    db: Session = Depends(get_db),
    lifecycle: MaintenanceLifecycle = Depends(get_maintenance_lifecycle)
):
    with transaction(db):
        job = lifecycle.schedule(db, **payload.model_dump())
    db.refresh(job)
    return job

@router.get("/list", response_model=List[MaintenanceResponse])
async def list_maintenance(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    state: Optional[MaintenanceState] = None,
    vehicle_id: Optional[int] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db)
):
    query = db.query(Maintenance)
    if state:
        query = query.filter(Maintenance.state == state)
    if vehicle_id:
        query = query.filter(Maintenance.vehicle_id == vehicle_id)
    if category:
        query = query.filter(Maintenance.category == category)
    return query.order_by(Maintenance.scheduled_date.desc()).offset(skip).limit(limit).all()

@router.get("/{maintenance_id}", response_model=MaintenanceResponse)
async def get_maintenance(
    maintenance_id: int,
    db: Session = Depends(get_db)
):
    job = db.get(Maintenance, maintenance_id)
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Maintenance not found"
        )
    return job

@router.patch("/{maintenance_id}/complete", response_model=MaintenanceResponse,
              dependencies=[Depends(require_role(*OPERATORS))])
async def complete_maintenance(
    maintenance_id: int,
    payload: MaintenanceComplete,
    db: Session = Depends(get_db),
    lifecycle: MaintenanceLifecycle = Depends(get_maintenance_lifecycle)
):
    with transaction(db):
        job = lifecycle.complete(db, maintenance_id, payload.cost, payload.description)
    db.refresh(job)
    return job
