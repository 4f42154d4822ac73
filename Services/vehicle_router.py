# Services/vehicle_router.py
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy import exc
from sqlalchemy.orm import Session
from pydantic import BaseModel, ConfigDict, constr, conint
from typing import List, Optional
from datetime import datetime
from config import DEFAULT_SERVICE_LIMIT_KM
from Models import AlertCategory, Vehicle, VehicleState
from database import get_db, transaction
from Services.access import ADMINISTRATOR, OPERATORS, require_role
from Services.alert_engine import AlertEngine
from Services.dependencies import get_alert_engine
from Services.errors import PreconditionFailed

router = APIRouter(
    tags=["vehicles"],
    responses={404: {"description": "Vehicle not found"}}
)

class VehicleBase(BaseModel):
    plate: constr(min_length=1, max_length=20)
    model: constr(min_length=1, max_length=50)
    vehicle_type: constr(min_length=1, max_length=50)
    service_limit_km: conint(gt=0) = DEFAULT_SERVICE_LIMIT_KM

class VehicleCreate(VehicleBase):
    odometer_km: conint(ge=0) = 0

class VehicleUpdate(BaseModel):
    """State and odometer are owned by the trip and maintenance lifecycles."""
    plate: Optional[constr(min_length=1, max_length=20)] = None
    model: Optional[constr(min_length=1, max_length=50)] = None
    vehicle_type: Optional[constr(min_length=1, max_length=50)] = None
    service_limit_km: Optional[conint(gt=0)] = None

class VehicleResponse(VehicleBase):
    id: int
    odometer_km: int
    state: VehicleState
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)

class ServiceStatus(BaseModel):
    vehicle_id: int
    plate: str
    state: VehicleState
    odometer_km: int
    service_limit_km: int
    remaining_km: int


def _get_or_404(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vehicle not found"
        )
    return vehicle

def _check_service_limit(db: Session, vehicle: Vehicle, alerts: AlertEngine) -> None:
    # Outside maintenance, only trip completion may push a vehicle past its limit
    if vehicle.remaining_km <= 0 and vehicle.state != VehicleState.IN_MAINTENANCE:
        raise PreconditionFailed(
            f"Service limit of vehicle {vehicle.plate} must exceed its odometer",
            details={
                "odometer_km": vehicle.odometer_km,
                "service_limit_km": vehicle.service_limit_km,
                "remaining_km": vehicle.remaining_km,
            },
        )
    alerts.evaluate_odometer_threshold(db, vehicle)

@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_role(*OPERATORS))])
async def create_vehicle(
    vehicle: VehicleCreate,
    db: Session = Depends(get_db),
    alerts: AlertEngine = Depends(get_alert_engine)
):
    db_vehicle = Vehicle(
        **vehicle.model_dump(),
        state=VehicleState.AVAILABLE,
        created_at=datetime.utcnow()
    )
    try:
        with transaction(db):
            db.add(db_vehicle)
            db.flush()
            _check_service_limit(db, db_vehicle, alerts)
    except exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vehicle with this plate already exists"
        )
    db.refresh(db_vehicle)
    return db_vehicle

@router.get("/list", response_model=List[VehicleResponse])
async def list_vehicles(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    state: Optional[VehicleState] = None,
    db: Session = Depends(get_db)
):
    query = db.query(Vehicle)
    if state:
        query = query.filter(Vehicle.state == state)
    return query.order_by(Vehicle.plate).offset(skip).limit(limit).all()

@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db)
):
    return _get_or_404(db, vehicle_id)

@router.get("/{vehicle_id}/service-status", response_model=ServiceStatus)
async def get_service_status(
    vehicle_id: int,
    db: Session = Depends(get_db)
):
    vehicle = _get_or_404(db, vehicle_id)
    return ServiceStatus(
        vehicle_id=vehicle.id,
        plate=vehicle.plate,
        state=vehicle.state,
        odometer_km=vehicle.odometer_km,
        service_limit_km=vehicle.service_limit_km,
        remaining_km=vehicle.remaining_km,
    )

@router.put("/{vehicle_id}", response_model=VehicleResponse,
             dependencies=[Depends(require_role(*OPERATORS))])
async def update_vehicle(
    vehicle_id: int,
    vehicle: VehicleUpdate,
    db: Session = Depends(get_db),
    alerts: AlertEngine = Depends(get_alert_engine)
):
    db_vehicle = _get_or_404(db, vehicle_id)

    try:
        with transaction(db):
            update_data = vehicle.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                setattr(db_vehicle, field, value)

            db_vehicle.updated_at = datetime.utcnow()
            db.flush()
            _check_service_limit(db, db_vehicle, alerts)
    except exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vehicle update failed due to constraint violation"
        )
    db.refresh(db_vehicle)
    return db_vehicle

@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT,
               dependencies=[Depends(require_role(ADMINISTRATOR))])
async def delete_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    alerts: AlertEngine = Depends(get_alert_engine)
):
    vehicle = _get_or_404(db, vehicle_id)
    try:
        with transaction(db):
            alerts.resolve_alerts_for_relation(db, AlertCategory.MAINTENANCE_DUE, vehicle.id)
            db.delete(vehicle)
    except exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vehicle has trips or maintenance records and cannot be deleted"
        )
    return None
