# Services/transitions.py
"""Legal state transitions for every lifecycle-managed entity.

Each table maps a recorded state to the actions allowed from it and the
state each action leads to. States missing from a table, or mapped to an
empty dict, are terminal. Controllers never test states inline; they ask
``advance`` for the next state and let it reject illegal moves.
"""

from enum import Enum
from typing import Dict, Mapping

from Models import AlertState, MaintenanceState, TripState, VehicleState
from Services.errors import InvalidTransition

TransitionTable = Mapping[Enum, Mapping[str, Enum]]

TRIP_TRANSITIONS: TransitionTable = {
    TripState.PROGRAMMED: {
        "start": TripState.IN_PROGRESS,
        "cancel": TripState.CANCELLED,
    },
    TripState.IN_PROGRESS: {
        "complete": TripState.COMPLETED,
        "cancel": TripState.CANCELLED,
    },
}

MAINTENANCE_TRANSITIONS: TransitionTable = {
    MaintenanceState.SCHEDULED: {
        "complete": MaintenanceState.COMPLETED,
    },
}

VEHICLE_TRANSITIONS: TransitionTable = {
    VehicleState.AVAILABLE: {
        "dispatch": VehicleState.IN_USE,
        "service": VehicleState.IN_MAINTENANCE,
    },
    VehicleState.IN_USE: {
        "release": VehicleState.AVAILABLE,
    },
    VehicleState.IN_MAINTENANCE: {
        "release": VehicleState.AVAILABLE,
    },
}

ALERT_TRANSITIONS: TransitionTable = {
    AlertState.ACTIVE: {
        "resolve": AlertState.RESOLVED,
    },
}

TABLES: Dict[str, TransitionTable] = {
    "trip": TRIP_TRANSITIONS,
    "maintenance": MAINTENANCE_TRANSITIONS,
    "vehicle": VEHICLE_TRANSITIONS,
    "alert": ALERT_TRANSITIONS,
}


def allowed_actions(entity: str, current: Enum) -> Dict[str, Enum]:
    return dict(TABLES[entity].get(current, {}))


def is_terminal(entity: str, current: Enum) -> bool:
    return not TABLES[entity].get(current)


def advance(entity: str, current: Enum, action: str, entity_id=None) -> Enum:
    """Return the state ``action`` moves ``entity`` to from ``current``.

    Raises:
        InvalidTransition: the action is not defined for the current state.
    """
    target = TABLES[entity].get(current, {}).get(action)
    if target is None:
        raise InvalidTransition(
            f"Cannot {action} {entity} in state {current.value}",
            details={
                "entity": entity,
                "id": entity_id,
                "current_state": current.value,
                "action": action,
                "allowed_actions": sorted(allowed_actions(entity, current)),
            },
        )
    return target
