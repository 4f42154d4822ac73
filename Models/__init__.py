# Models/__init__.py
from .base import Base
from .states import (
    AlertCategory,
    AlertCondition,
    AlertPriority,
    AlertState,
    DriverState,
    MaintenanceState,
    TripState,
    VehicleState,
)
from .vehicle import Vehicle
from .driver import Driver
from .route import Route
from .trip import Trip
from .maintenance import Maintenance
from .alert import Alert

# List all models for easy access and database initialization
__all__ = [
    'Base',
    'Vehicle',
    'Driver',
    'Route',
    'Trip',
    'Maintenance',
    'Alert',
    'VehicleState',
    'DriverState',
    'TripState',
    'MaintenanceState',
    'AlertState',
    'AlertCategory',
    'AlertCondition',
    'AlertPriority',
]
