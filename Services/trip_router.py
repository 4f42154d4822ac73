# Services/trip_router.py
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, ConfigDict, conint, confloat, constr
from typing import List, Optional
from datetime import date, datetime
from Models import Trip, TripState
from database import get_db, transaction
from Services.access import OPERATORS, require_role
from Services.dependencies import get_trip_lifecycle
from Services.trip_lifecycle import TripLifecycle

router = APIRouter(
    tags=["trips"],
    responses={404: {"description": "Trip not found"}}
)

class TripCreate(BaseModel):
    vehicle_id: int
    driver_id: int
    route_id: int
    scheduled_date: date
    cargo: Optional[constr(max_length=200)] = None

class TripStart(BaseModel):
    start_time: datetime

class TripComplete(BaseModel):
    start_time: datetime
    end_time: datetime
    fuel_used: confloat(ge=0)
    final_odometer_km: conint(ge=0)
    notes: Optional[str] = None

class TripCancel(BaseModel):
    notes: Optional[str] = None

class TripResponse(BaseModel):
    id: int
    vehicle_id: int
    driver_id: int
    route_id: int
    scheduled_date: date
    cargo: Optional[str]
    state: TripState
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    fuel_used: Optional[float]
    final_odometer_km: Optional[int]
    hours_worked: Optional[float]
    notes: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)

class TripCompletionResponse(BaseModel):
    trip: TripResponse
    hours_worked: float

@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_role(*OPERATORS))])
async def create_trip(
    payload: TripCreate,
    db: Session = Depends(get_db),
    lifecycle: TripLifecycle = Depends(get_trip_lifecycle)
):
    with transaction(db):
        trip = lifecycle.create(db, **payload.model_dump())
    db.refresh(trip)
    return trip

@router.get("/list", response_model=List[TripResponse])
async def list_trips(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    state: Optional[TripState] = None,
    vehicle_id: Optional[int] = None,
    driver_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    query = db.query(Trip)
    if state:
        query = query.filter(Trip.state == state)
    if vehicle_id:
        query = query.filter(Trip.vehicle_id == vehicle_id)
    if driver_id:
        query = query.filter(Trip.driver_id == driver_id)
    return query.order_by(Trip.id.desc()).offset(skip).limit(limit).all()

@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int,
    db: Session = Depends(get_db)
):
    trip = db.get(Trip, trip_id)
    if not trip:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found"
        )
    return trip

@router.patch("/{trip_id}/start", response_model=TripResponse,
              dependencies=[Depends(require_role(*OPERATORS))])
async def start_trip(
    trip_id: int,
    payload: TripStart,
    db: Session = Depends(get_db),
    lifecycle: TripLifecycle = Depends(get_trip_lifecycle)
):
    with transaction(db):
        trip = lifecycle.start(db, trip_id, payload.start_time)
    db.refresh(trip)
    return trip

@router.patch("/{trip_id}/complete", response_model=TripCompletionResponse,
              dependencies=[Depends(require_role(*OPERATORS))])
async def complete_trip(
    trip_id: int,
    payload: TripComplete,
    db: Session = Depends(get_db),
    lifecycle: TripLifecycle = Depends(get_trip_lifecycle)
):
    """
    Complete an in-progress trip. In the same transaction:
    1. Record end time, fuel and final odometer on the trip
    2. Move the vehicle odometer forward and release the vehicle
    3. Add the elapsed hours to the driver
    4. Evaluate maintenance and hours alerts
    """
    with transaction(db):
        result = lifecycle.complete(db, trip_id, **payload.model_dump())
    db.refresh(result.trip)
    return TripCompletionResponse(
        trip=TripResponse.model_validate(result.trip),
        hours_worked=result.hours_worked
    )

@router.patch("/{trip_id}/cancel", response_model=TripResponse,
              dependencies=[Depends(require_role(*OPERATORS))])
async def cancel_trip(
    trip_id: int,
    payload: TripCancel,
    db: Session = Depends(get_db),
    lifecycle: TripLifecycle = Depends(get_trip_lifecycle)
):
    with transaction(db):
        trip = lifecycle.cancel(db, trip_id, payload.notes)
    db.refresh(trip)
    return trip
