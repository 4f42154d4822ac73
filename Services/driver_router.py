# Services/driver_router.py
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy import exc
from sqlalchemy.orm import Session
from pydantic import BaseModel, ConfigDict, constr
from typing import List, Optional
from datetime import datetime
from Models import AlertCategory, Driver, DriverState
from database import get_db, transaction
from Services.access import ADMINISTRATOR, OPERATORS, require_role
from Services.alert_engine import AlertEngine
from Services.dependencies import get_alert_engine

router = APIRouter(
    tags=["drivers"],
    responses={404: {"description": "Driver not found"}}
)

class DriverBase(BaseModel):
    """
    Base driver schema with common attributes.

    Attributes:
        name: Full name of the driver
        national_id: National identity document number, unique per driver
        license_number: Driving license number
        phone: Optional contact number
    """
    name: constr(min_length=2, max_length=100)
    national_id: constr(min_length=3, max_length=30)
    license_number: constr(min_length=3, max_length=30)
    phone: Optional[constr(max_length=30)] = None

class DriverCreate(DriverBase):
    """Schema for registering a new driver."""
    state: DriverState = DriverState.ACTIVE

class DriverUpdate(BaseModel):
    """
    Schema for updating an existing driver.

    Worked hours are accumulated by trip completion and cannot be edited.
    """
    name: Optional[constr(min_length=2, max_length=100)] = None
    national_id: Optional[constr(min_length=3, max_length=30)] = None
    license_number: Optional[constr(min_length=3, max_length=30)] = None
    phone: Optional[constr(max_length=30)] = None
    state: Optional[DriverState] = None

class DriverResponse(DriverBase):
    id: int
    state: DriverState
    cumulative_hours: float
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


def _get_or_404(db: Session, driver_id: int) -> Driver:
    driver = db.get(Driver, driver_id)
    if not driver:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Driver not found"
        )
    return driver

@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_role(*OPERATORS))])
async def create_driver(
    driver: DriverCreate,
    db: Session = Depends(get_db)
):
    db_driver = Driver(
        **driver.model_dump(),
        cumulative_hours=0.0,
        created_at=datetime.utcnow()
    )
    db.add(db_driver)
    try:
        db.commit()
        db.refresh(db_driver)
        return db_driver
    except exc.IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Driver with this national id already exists"
        )

@router.get("/list", response_model=List[DriverResponse])
async def list_drivers(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    state: Optional[DriverState] = Query(default=None, description="Filter by driver state"),
    db: Session = Depends(get_db)
):
    query = db.query(Driver)
    if state:
        query = query.filter(Driver.state == state)
    return query.order_by(Driver.name).offset(skip).limit(limit).all()

@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: int,
    db: Session = Depends(get_db)
):
    return _get_or_404(db, driver_id)

@router.put("/{driver_id}", response_model=DriverResponse,
            dependencies=[Depends(require_role(*OPERATORS))])
async def update_driver(
    driver_id: int,
    driver: DriverUpdate,
    db: Session = Depends(get_db)
):
    db_driver = _get_or_404(db, driver_id)

    update_data = driver.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_driver, field, value)

    db_driver.updated_at = datetime.utcnow()

    try:
        db.commit()
        db.refresh(db_driver)
        return db_driver
    except exc.IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Driver update failed due to constraint violation"
        )

@router.patch("/{driver_id}/deactivate", response_model=DriverResponse,
              dependencies=[Depends(require_role(*OPERATORS))])
async def deactivate_driver(
    driver_id: int,
    db: Session = Depends(get_db)
):
    db_driver = _get_or_404(db, driver_id)
    db_driver.state = DriverState.INACTIVE
    db_driver.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(db_driver)
    return db_driver

@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT,
               dependencies=[Depends(require_role(ADMINISTRATOR))])
async def delete_driver(
    driver_id: int,
    db: Session = Depends(get_db),
    alerts: AlertEngine = Depends(get_alert_engine)
):
    driver = _get_or_404(db, driver_id)
    try:
        with transaction(db):
            alerts.resolve_alerts_for_relation(db, AlertCategory.HOURS_EXCEEDED, driver.id)
            db.delete(driver)
    except exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Driver has trips and cannot be deleted"
        )
    return None
