# Services/maintenance_lifecycle.py
import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from Models import AlertCategory, Maintenance, MaintenanceState, Vehicle, VehicleState
from Services import transitions
from Services.alert_engine import AlertEngine
from Services.errors import InvalidData, NotFound, PreconditionFailed

logger = logging.getLogger(__name__)


class MaintenanceLifecycle:
    """Schedules and completes maintenance jobs, keeping the vehicle in step."""

    def __init__(self, alerts: AlertEngine):
        self.alerts = alerts

    def schedule(
        self,
        tx: Session,
        vehicle_id: int,
        scheduled_date: date,
        category: str,
        description: str,
        cost: float,
    ) -> Maintenance:
        vehicle = tx.get(Vehicle, vehicle_id, with_for_update=True, populate_existing=True)
        if vehicle is None:
            raise NotFound("Vehicle not found", details={"vehicle_id": vehicle_id})
        if cost < 0:
            raise InvalidData("Maintenance cost cannot be negative", details={"cost": cost})
        # One active trip or job per vehicle
        if vehicle.state != VehicleState.AVAILABLE:
            raise PreconditionFailed(
                f"Vehicle {vehicle.plate} is not available for maintenance",
                details={"vehicle_id": vehicle.id, "vehicle_state": vehicle.state.value},
            )

        job = Maintenance(
            vehicle_id=vehicle.id,
            scheduled_date=scheduled_date,
            category=category,
            description=description,
            cost=cost,
            state=MaintenanceState.SCHEDULED,
        )
        tx.add(job)
        vehicle.state = transitions.advance("vehicle", vehicle.state, "service", vehicle.id)
        tx.flush()

        self.alerts.evaluate_maintenance_cost(tx, job)
        logger.info(f"Maintenance {job.id} scheduled for vehicle {vehicle.plate} on {scheduled_date.isoformat()}")
        return job

    def complete(
        self,
        tx: Session,
        maintenance_id: int,
        cost: Optional[float] = None,
        description: Optional[str] = None,
    ) -> Maintenance:
        """Close a job, return the vehicle to service and restart its service interval."""
        job = tx.get(Maintenance, maintenance_id, with_for_update=True, populate_existing=True)
        if job is None:
            raise NotFound("Maintenance not found", details={"maintenance_id": maintenance_id})
        job.state = transitions.advance("maintenance", job.state, "complete", job.id)
        if cost is not None:
            if cost < 0:
                raise InvalidData("Maintenance cost cannot be negative", details={"cost": cost})
            job.cost = cost
        if description:
            job.description = description
        job.completed_at = datetime.utcnow()

        vehicle = tx.get(Vehicle, job.vehicle_id, with_for_update=True, populate_existing=True)
        vehicle.state = transitions.advance("vehicle", vehicle.state, "release", vehicle.id)
        vehicle.odometer_km = 0
        tx.flush()

        resolved = self.alerts.resolve_alerts_for_relation(tx, AlertCategory.MAINTENANCE_DUE, vehicle.id)
        self.alerts.evaluate_maintenance_cost(tx, job)
        logger.info(
            f"Maintenance {job.id} completed: vehicle {vehicle.plate} available, "
            f"odometer reset, {resolved} alert(s) resolved"
        )
        return job
