# Models/states.py
"""Recorded states and alert vocabularies for fleet entities."""

from enum import Enum


class VehicleState(str, Enum):
    AVAILABLE = "Available"
    IN_USE = "InUse"
    IN_MAINTENANCE = "InMaintenance"


class DriverState(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class TripState(str, Enum):
    PROGRAMMED = "Programmed"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"  # terminal
    CANCELLED = "Cancelled"  # terminal


class MaintenanceState(str, Enum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"  # terminal


class AlertState(str, Enum):
    ACTIVE = "Active"
    RESOLVED = "Resolved"  # terminal


class AlertCategory(str, Enum):
    MAINTENANCE_DUE = "MaintenanceDue"  # relation: vehicle
    HOURS_EXCEEDED = "HoursExceeded"  # relation: driver
    MAINTENANCE_COST = "MaintenanceCost"  # relation: maintenance record


class AlertPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class AlertCondition(str, Enum):
    """Which triggering condition an alert stands for."""

    NEAR_SERVICE_LIMIT = "near_service_limit"
    SERVICE_OVERDUE = "service_overdue"
    HIGH_COST = "high_cost"
    LONG_TRIP = "long_trip"
