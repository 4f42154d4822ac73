# Services/alert_engine.py
import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from config import Thresholds
from Models import (
    Alert,
    AlertCategory,
    AlertCondition,
    AlertPriority,
    AlertState,
    Driver,
    Maintenance,
    MaintenanceState,
    Vehicle,
    VehicleState,
)
from Services import transitions
from Services.errors import NotFound

logger = logging.getLogger(__name__)

FORCED_SERVICE_CATEGORY = "Preventive"


class AlertEngine:
    """Threshold evaluation and alert bookkeeping.

    Every method runs inside the caller's transaction and only flushes; the
    surrounding unit of work decides whether the alert writes commit together
    with the mutation that triggered them.
    """

    def __init__(self, thresholds: Thresholds):
        self.thresholds = thresholds

    def evaluate_odometer_threshold(self, tx: Session, vehicle: Vehicle) -> Optional[Alert]:
        """Raise a maintenance-due alert when the vehicle nears or passes its service limit.

        An overdue vehicle is also pulled out of circulation: it moves to
        InMaintenance and a forced service job is opened for it, unless one
        is already pending.
        """
        remaining = vehicle.remaining_km
        if remaining <= 0:
            self._force_service(tx, vehicle)
            return self._raise(
                tx,
                AlertCategory.MAINTENANCE_DUE,
                vehicle.id,
                AlertCondition.SERVICE_OVERDUE,
                AlertPriority.HIGH,
                f"URGENT: vehicle {vehicle.plate} is {abs(remaining)} km past its "
                f"{vehicle.service_limit_km} km service limit; forced maintenance",
            )
        if remaining <= self.thresholds.warning_band_km:
            return self._raise(
                tx,
                AlertCategory.MAINTENANCE_DUE,
                vehicle.id,
                AlertCondition.NEAR_SERVICE_LIMIT,
                AlertPriority.HIGH,
                f"Vehicle {vehicle.plate} is near its service limit: {remaining} km remaining",
            )
        return None

    def evaluate_maintenance_cost(self, tx: Session, maintenance: Maintenance) -> Optional[Alert]:
        if maintenance.cost > self.thresholds.high_cost_limit:
            return self._raise(
                tx,
                AlertCategory.MAINTENANCE_COST,
                maintenance.id,
                AlertCondition.HIGH_COST,
                AlertPriority.HIGH,
                f"Maintenance {maintenance.id} cost {maintenance.cost:,.2f} exceeds "
                f"the {self.thresholds.high_cost_limit:,.2f} limit",
            )
        self.resolve_alerts_for_relation(tx, AlertCategory.MAINTENANCE_COST, maintenance.id)
        return None

    def evaluate_trip_hours(self, tx: Session, driver: Driver, hours_worked: float) -> Optional[Alert]:
        if hours_worked <= self.thresholds.max_trip_hours:
            return None
        return self._raise(
            tx,
            AlertCategory.HOURS_EXCEEDED,
            driver.id,
            AlertCondition.LONG_TRIP,
            AlertPriority.MEDIUM,
            f"Driver {driver.name} logged a {hours_worked:.1f} h trip "
            f"(limit {self.thresholds.max_trip_hours:.1f} h)",
        )

    def resolve_alerts_for_relation(self, tx: Session, category: AlertCategory, related_id: int) -> int:
        """Resolve every Active alert for (category, related_id); returns how many were resolved."""
        alerts = (
            tx.query(Alert)
            .filter(
                Alert.category == category,
                Alert.related_id == related_id,
                Alert.state == AlertState.ACTIVE,
            )
            .with_for_update()
            .populate_existing()
            .all()
        )
        now = datetime.utcnow()
        for alert in alerts:
            alert.state = transitions.advance("alert", alert.state, "resolve", alert.id)
            alert.resolved_at = now
        tx.flush()
        if alerts:
            logger.info(f"Resolved {len(alerts)} {category.value} alert(s) for relation {related_id}")
        return len(alerts)

    def resolve_alert(self, tx: Session, alert_id: int) -> Alert:
        alert = tx.get(Alert, alert_id, with_for_update=True, populate_existing=True)
        if alert is None:
            raise NotFound("Alert not found", details={"alert_id": alert_id})
        alert.state = transitions.advance("alert", alert.state, "resolve", alert.id)
        alert.resolved_at = datetime.utcnow()
        tx.flush()
        return alert

    def _raise(self, tx, category, related_id, condition, priority, message) -> Optional[Alert]:
        existing = (
            tx.query(Alert)
            .filter(
                Alert.category == category,
                Alert.related_id == related_id,
                Alert.condition == condition,
                Alert.state == AlertState.ACTIVE,
            )
            .first()
        )
        if existing is not None:
            logger.debug(f"Alert {existing.id} already covers {category.value}/{condition.value} for {related_id}")
            return None

        alert = Alert(
            category=category,
            related_id=related_id,
            condition=condition,
            priority=priority,
            message=message,
            state=AlertState.ACTIVE,
            created_at=datetime.utcnow(),
        )
        tx.add(alert)
        tx.flush()
        logger.info(f"Raised {priority.value} {category.value} alert {alert.id}: {message}")
        return alert

    def _force_service(self, tx: Session, vehicle: Vehicle) -> None:
        if vehicle.state == VehicleState.IN_MAINTENANCE:
            return
        vehicle.state = transitions.advance("vehicle", vehicle.state, "service", vehicle.id)
        job = Maintenance(
            vehicle_id=vehicle.id,
            scheduled_date=date.today(),
            category=FORCED_SERVICE_CATEGORY,
            description=f"Forced service: odometer {vehicle.odometer_km} km reached the "
                        f"{vehicle.service_limit_km} km limit",
            cost=0.0,
            state=MaintenanceState.SCHEDULED,
        )
        tx.add(job)
        tx.flush()
        logger.warning(f"Vehicle {vehicle.plate} pulled into maintenance job {job.id}: service limit reached")
