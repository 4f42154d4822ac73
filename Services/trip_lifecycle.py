# Services/trip_lifecycle.py
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from Models import Driver, DriverState, Route, Trip, TripState, Vehicle, VehicleState
from Services import transitions
from Services.alert_engine import AlertEngine
from Services.errors import InvalidData, NotFound, PreconditionFailed

logger = logging.getLogger(__name__)


@dataclass
class TripCompletion:
    trip: Trip
    hours_worked: float


def _require(tx: Session, model, entity_id: int, label: str):
    # Always re-read inside the transaction and lock the row for the write that follows
    row = tx.get(model, entity_id, with_for_update=True, populate_existing=True)
    if row is None:
        raise NotFound(f"{label} not found", details={f"{label.lower()}_id": entity_id})
    return row


def _as_stored(moment: datetime) -> datetime:
    """Timestamps are stored as naive UTC; offset-aware input is converted first."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


class TripLifecycle:
    """Moves trips through Programmed -> InProgress -> Completed/Cancelled.

    Each method expects to run inside ``database.transaction`` and leaves the
    commit to it, so a trip never changes state without its vehicle, driver
    and alert side effects.
    """

    def __init__(self, alerts: AlertEngine):
        self.alerts = alerts

    def create(
        self,
        tx: Session,
        vehicle_id: int,
        driver_id: int,
        route_id: int,
        scheduled_date: date,
        cargo: Optional[str] = None,
    ) -> Trip:
        vehicle = _require(tx, Vehicle, vehicle_id, "Vehicle")
        driver = _require(tx, Driver, driver_id, "Driver")
        route = _require(tx, Route, route_id, "Route")

        if vehicle.state != VehicleState.AVAILABLE:
            raise PreconditionFailed(
                f"Vehicle {vehicle.plate} is not available",
                details={"vehicle_id": vehicle.id, "vehicle_state": vehicle.state.value},
            )
        if driver.state != DriverState.ACTIVE:
            raise PreconditionFailed(
                f"Driver {driver.name} is not active",
                details={"driver_id": driver.id, "driver_state": driver.state.value},
            )
        if not route.is_active:
            raise PreconditionFailed(
                f"Route {route.name} is not active",
                details={"route_id": route.id},
            )

        trip = Trip(
            vehicle_id=vehicle.id,
            driver_id=driver.id,
            route_id=route.id,
            scheduled_date=scheduled_date,
            cargo=cargo,
            state=TripState.PROGRAMMED,
        )
        tx.add(trip)
        vehicle.state = transitions.advance("vehicle", vehicle.state, "dispatch", vehicle.id)
        tx.flush()
        logger.info(f"Trip {trip.id} programmed for vehicle {vehicle.plate} and driver {driver.id}")
        return trip

    def start(self, tx: Session, trip_id: int, start_time: datetime) -> Trip:
        trip = _require(tx, Trip, trip_id, "Trip")
        trip.state = transitions.advance("trip", trip.state, "start", trip.id)
        start_time = _as_stored(start_time)
        trip.start_time = start_time
        tx.flush()
        logger.info(f"Trip {trip.id} started at {start_time.isoformat()}")
        return trip

    def complete(
        self,
        tx: Session,
        trip_id: int,
        start_time: datetime,
        end_time: datetime,
        fuel_used: float,
        final_odometer_km: int,
        notes: Optional[str] = None,
    ) -> TripCompletion:
        trip = _require(tx, Trip, trip_id, "Trip")
        # Legality first: a repeated completion must read as a lost transition, not bad data
        next_state = transitions.advance("trip", trip.state, "complete", trip.id)

        vehicle = _require(tx, Vehicle, trip.vehicle_id, "Vehicle")
        driver = _require(tx, Driver, trip.driver_id, "Driver")
        start_time = _as_stored(start_time)
        end_time = _as_stored(end_time)

        if final_odometer_km < vehicle.odometer_km:
            raise InvalidData(
                "Final odometer reading is below the vehicle's current odometer",
                details={"final_odometer_km": final_odometer_km, "current_odometer_km": vehicle.odometer_km},
            )
        if end_time <= start_time:
            raise InvalidData(
                "Trip end time must be after its start time",
                details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()},
            )
        if fuel_used < 0:
            raise InvalidData("Fuel used cannot be negative", details={"fuel_used": fuel_used})

        hours_worked = (end_time - start_time).total_seconds() / 3600.0

        trip.state = next_state
        trip.start_time = start_time
        trip.end_time = end_time
        trip.fuel_used = fuel_used
        trip.final_odometer_km = final_odometer_km
        trip.hours_worked = hours_worked
        if notes:
            trip.notes = notes

        vehicle.odometer_km = final_odometer_km
        vehicle.state = transitions.advance("vehicle", vehicle.state, "release", vehicle.id)
        driver.cumulative_hours = (driver.cumulative_hours or 0.0) + hours_worked
        tx.flush()

        self.alerts.evaluate_odometer_threshold(tx, vehicle)
        self.alerts.evaluate_trip_hours(tx, driver, hours_worked)

        logger.info(
            f"Trip {trip.id} completed: vehicle {vehicle.plate} at {vehicle.odometer_km} km, "
            f"driver {driver.id} +{hours_worked:.2f} h"
        )
        return TripCompletion(trip=trip, hours_worked=hours_worked)

    def cancel(self, tx: Session, trip_id: int, notes: Optional[str] = None) -> Trip:
        trip = _require(tx, Trip, trip_id, "Trip")
        trip.state = transitions.advance("trip", trip.state, "cancel", trip.id)
        if notes:
            trip.notes = notes

        vehicle = _require(tx, Vehicle, trip.vehicle_id, "Vehicle")
        vehicle.state = transitions.advance("vehicle", vehicle.state, "release", vehicle.id)
        tx.flush()
        logger.info(f"Trip {trip.id} cancelled, vehicle {vehicle.plate} released")
        return trip
