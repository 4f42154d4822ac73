# Services/dependencies.py
from fastapi import Depends
from config import load_thresholds
from Services.alert_engine import AlertEngine
from Services.maintenance_lifecycle import MaintenanceLifecycle
from Services.trip_lifecycle import TripLifecycle


def get_alert_engine() -> AlertEngine:
    return AlertEngine(load_thresholds())

def get_trip_lifecycle(alerts: AlertEngine = Depends(get_alert_engine)) -> TripLifecycle:
    return TripLifecycle(alerts)

def get_maintenance_lifecycle(alerts: AlertEngine = Depends(get_alert_engine)) -> MaintenanceLifecycle:
    return MaintenanceLifecycle(alerts)
