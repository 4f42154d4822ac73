from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from config import Thresholds
from database import build_engine, get_db, init_db, transaction
from Models import Driver, Maintenance, Route, Trip, Vehicle, VehicleState
from Services import transitions
from Services.alert_engine import AlertEngine
from Services.dependencies import get_alert_engine
from Services.maintenance_lifecycle import MaintenanceLifecycle
from Services.trip_lifecycle import TripLifecycle


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'fleet.db'}", timeout=1)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def thresholds():
    return Thresholds(warning_band_km=500, high_cost_limit=5000.0, max_trip_hours=12.0)


@pytest.fixture
def alerts(thresholds):
    return AlertEngine(thresholds)


@pytest.fixture
def trips(alerts):
    return TripLifecycle(alerts)


@pytest.fixture
def maintenance(alerts):
    return MaintenanceLifecycle(alerts)


@pytest.fixture
def fleet(db):
    """One available vehicle (10,000 km interval), one active driver, one active route."""
    vehicle = Vehicle(plate="ABC-123", model="Actros", vehicle_type="Truck",
                      odometer_km=0, service_limit_km=10000, state=VehicleState.AVAILABLE)
    driver = Driver(name="Ana Torres", national_id="0102030405", license_number="LIC-1",
                    cumulative_hours=0.0)
    route = Route(name="North corridor", origin="Quito", destination="Ibarra",
                  distance_km=115.0, estimated_minutes=150)
    db.add_all([vehicle, driver, route])
    db.commit()
    return SimpleNamespace(vehicle_id=vehicle.id, driver_id=driver.id, route_id=route.id)


@pytest.fixture
def start_trip(db, trips, fleet):
    """Create and start a trip for the fleet vehicle; returns the trip id."""
    def _start(start_time):
        with transaction(db):
            trip = trips.create(db, fleet.vehicle_id, fleet.driver_id, fleet.route_id, date(2026, 1, 5))
        with transaction(db):
            trips.start(db, trip.id, start_time)
        return trip.id
    return _start


def _occupancy_violations(session):
    """Vehicles whose recorded state disagrees with the trips/jobs occupying them."""
    violations = []
    for vehicle in session.query(Vehicle).all():
        open_trips = [t for t in session.query(Trip).filter(Trip.vehicle_id == vehicle.id)
                      if not transitions.is_terminal("trip", t.state)]
        open_jobs = [m for m in session.query(Maintenance).filter(Maintenance.vehicle_id == vehicle.id)
                     if not transitions.is_terminal("maintenance", m.state)]
        if len(open_trips) + len(open_jobs) > 1:
            expected = None
        elif open_trips:
            expected = VehicleState.IN_USE
        elif open_jobs:
            expected = VehicleState.IN_MAINTENANCE
        else:
            expected = VehicleState.AVAILABLE
        if vehicle.state != expected:
            violations.append((vehicle.plate, vehicle.state, len(open_trips), len(open_jobs)))
    return violations


@pytest.fixture
def check_invariants(session_factory):
    def _check():
        session = session_factory()
        try:
            assert _occupancy_violations(session) == []
        finally:
            session.close()
    return _check


@pytest.fixture
def client(session_factory, alerts):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_alert_engine] = lambda: alerts
    yield TestClient(app)
    app.dependency_overrides.clear()
