# Services/route_router.py
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy import exc
from sqlalchemy.orm import Session
from pydantic import BaseModel, ConfigDict, constr, confloat, conint
from typing import List, Optional
from datetime import datetime
from Models import Route
from database import get_db
from Services.access import ADMINISTRATOR, OPERATORS, require_role

router = APIRouter(
    tags=["routes"],
    responses={404: {"description": "Route not found"}}
)

class RouteBase(BaseModel):
    """
    Base route schema with common attributes.

    Attributes:
        name: Route name (e.g., "North corridor")
        origin: Starting point
        destination: End point
        distance_km: Planned distance in kilometres
        estimated_minutes: Planned duration
    """
    name: constr(min_length=2, max_length=100)
    origin: constr(min_length=2, max_length=200)
    destination: constr(min_length=2, max_length=200)
    distance_km: confloat(gt=0)
    estimated_minutes: conint(gt=0)

class RouteCreate(RouteBase):
    """Schema for creating a new route."""
    pass

class RouteUpdate(BaseModel):
    """Schema for updating an existing route; only supplied fields change."""
    name: Optional[constr(min_length=2, max_length=100)] = None
    origin: Optional[constr(min_length=2, max_length=200)] = None
    destination: Optional[constr(min_length=2, max_length=200)] = None
    distance_km: Optional[confloat(gt=0)] = None
    estimated_minutes: Optional[conint(gt=0)] = None
    is_active: Optional[bool] = None

class RouteResponse(RouteBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


def _get_or_404(db: Session, route_id: int) -> Route:
    route = db.get(Route, route_id)
    if not route:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Route not found"
        )
    return route

@router.post("", response_model=RouteResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_role(*OPERATORS))])
async def create_route(
    route: RouteCreate,
    db: Session = Depends(get_db)
):
    db_route = Route(
        **route.model_dump(),
        created_at=datetime.utcnow()
    )
    db.add(db_route)
    db.commit()
    db.refresh(db_route)
    return db_route

@router.get("/list", response_model=List[RouteResponse])
async def list_routes(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    active_only: bool = Query(default=True, description="Only return active routes"),
    db: Session = Depends(get_db)
):
    query = db.query(Route)
    if active_only:
        query = query.filter(Route.is_active == True)
    return query.order_by(Route.name).offset(skip).limit(limit).all()

@router.get("/{route_id}", response_model=RouteResponse)
async def get_route(
    route_id: int,
    db: Session = Depends(get_db)
):
    return _get_or_404(db, route_id)

@router.put("/{route_id}", response_model=RouteResponse,
            dependencies=[Depends(require_role(*OPERATORS))])
async def update_route(
    route_id: int,
    route: RouteUpdate,
    db: Session = Depends(get_db)
):
    db_route = _get_or_404(db, route_id)

    update_data = route.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_route, field, value)

    db_route.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(db_route)
    return db_route

@router.delete("/{route_id}", status_code=status.HTTP_204_NO_CONTENT,
               dependencies=[Depends(require_role(ADMINISTRATOR))])
async def delete_route(
    route_id: int,
    db: Session = Depends(get_db)
):
    route = _get_or_404(db, route_id)
    db.delete(route)
    try:
        db.commit()
    except exc.IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Route has trips and cannot be deleted"
        )
    return None
