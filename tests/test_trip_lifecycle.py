"""
Tests for the trip lifecycle.

Each operation is run through database.transaction the way the API does, then
the committed state is inspected from the same or a fresh session.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from database import transaction
from Models import (
    Alert,
    AlertCategory,
    AlertState,
    Driver,
    DriverState,
    Route,
    Trip,
    TripState,
    Vehicle,
    VehicleState,
)
from Services.alert_engine import AlertEngine
from Services.errors import InvalidData, InvalidTransition, NotFound, PreconditionFailed
from Services.trip_lifecycle import TripLifecycle

START = datetime(2026, 1, 5, 8, 0)
END = datetime(2026, 1, 5, 12, 30)


def complete(db, trips, trip_id, final_odometer_km, start=START, end=END, fuel_used=40.0):
    with transaction(db):
        return trips.complete(db, trip_id, start, end, fuel_used, final_odometer_km, notes="delivered")


# =============================================================================
# create
# =============================================================================


class TestCreateTrip:
    def test_programs_trip_and_occupies_vehicle(self, db, trips, fleet, check_invariants):
        with transaction(db):
            trip = trips.create(db, fleet.vehicle_id, fleet.driver_id, fleet.route_id,
                                date(2026, 1, 5), cargo="Cement")

        assert trip.state == TripState.PROGRAMMED
        assert trip.cargo == "Cement"
        assert db.get(Vehicle, fleet.vehicle_id).state == VehicleState.IN_USE
        check_invariants()

    def test_vehicle_in_use_is_rejected_without_writes(self, db, trips, fleet):
        with transaction(db):
            trips.create(db, fleet.vehicle_id, fleet.driver_id, fleet.route_id, date(2026, 1, 5))
        trips_before = db.query(Trip).count()
        vehicles_before = db.query(Vehicle).count()

        with pytest.raises(PreconditionFailed) as exc:
            with transaction(db):
                trips.create(db, fleet.vehicle_id, fleet.driver_id, fleet.route_id, date(2026, 1, 6))

        assert exc.value.details["vehicle_state"] == "InUse"
        assert db.query(Trip).count() == trips_before
        assert db.query(Vehicle).count() == vehicles_before
        assert db.get(Vehicle, fleet.vehicle_id).state == VehicleState.IN_USE

    def test_inactive_driver_is_rejected(self, db, trips, fleet):
        db.get(Driver, fleet.driver_id).state = DriverState.INACTIVE
        db.commit()

        with pytest.raises(PreconditionFailed) as exc:
            with transaction(db):
                trips.create(db, fleet.vehicle_id, fleet.driver_id, fleet.route_id, date(2026, 1, 5))

        assert exc.value.details["driver_state"] == "Inactive"
        assert db.get(Vehicle, fleet.vehicle_id).state == VehicleState.AVAILABLE
        assert db.query(Trip).count() == 0

    def test_inactive_route_is_rejected(self, db, trips, fleet):
        db.get(Route, fleet.route_id).is_active = False
        db.commit()

        with pytest.raises(PreconditionFailed):
            with transaction(db):
                trips.create(db, fleet.vehicle_id, fleet.driver_id, fleet.route_id, date(2026, 1, 5))

    @pytest.mark.parametrize("field", ["vehicle", "driver", "route"])
    def test_unknown_reference_is_not_found(self, db, trips, fleet, field):
        ids = {"vehicle": fleet.vehicle_id, "driver": fleet.driver_id, "route": fleet.route_id}
        ids[field] = 9999

        with pytest.raises(NotFound):
            with transaction(db):
                trips.create(db, ids["vehicle"], ids["driver"], ids["route"], date(2026, 1, 5))


# =============================================================================
# start / cancel
# =============================================================================


class TestStartAndCancel:
    def test_start_records_start_time(self, db, start_trip):
        trip_id = start_trip(START)
        trip = db.get(Trip, trip_id)
        assert trip.state == TripState.IN_PROGRESS
        assert trip.start_time == START

    def test_start_twice_is_invalid(self, db, trips, start_trip):
        trip_id = start_trip(START)
        with pytest.raises(InvalidTransition):
            with transaction(db):
                trips.start(db, trip_id, START)

    def test_start_unknown_trip(self, db, trips):
        with pytest.raises(NotFound):
            with transaction(db):
                trips.start(db, 42, START)

    def test_cancel_in_progress_releases_vehicle(self, db, trips, fleet, start_trip, check_invariants):
        trip_id = start_trip(START)

        with transaction(db):
            trips.cancel(db, trip_id, "customer called off")

        trip = db.get(Trip, trip_id)
        vehicle = db.get(Vehicle, fleet.vehicle_id)
        assert trip.state == TripState.CANCELLED
        assert trip.notes == "customer called off"
        assert vehicle.state == VehicleState.AVAILABLE
        assert vehicle.odometer_km == 0
        assert db.get(Driver, fleet.driver_id).cumulative_hours == 0
        check_invariants()

    def test_cancel_programmed_trip(self, db, trips, fleet):
        with transaction(db):
            trip = trips.create(db, fleet.vehicle_id, fleet.driver_id, fleet.route_id, date(2026, 1, 5))
        with transaction(db):
            trips.cancel(db, trip.id)
        assert db.get(Vehicle, fleet.vehicle_id).state == VehicleState.AVAILABLE

    def test_cancel_completed_trip_is_invalid(self, db, trips, fleet, start_trip):
        trip_id = start_trip(START)
        complete(db, trips, trip_id, 300)

        with pytest.raises(InvalidTransition):
            with transaction(db):
                trips.cancel(db, trip_id, "too late")

        assert db.get(Trip, trip_id).state == TripState.COMPLETED
        assert db.get(Vehicle, fleet.vehicle_id).state == VehicleState.AVAILABLE


# =============================================================================
# complete
# =============================================================================


class TestCompleteTrip:
    def test_applies_all_side_effects(self, db, trips, fleet, start_trip, check_invariants):
        trip_id = start_trip(START)

        result = complete(db, trips, trip_id, 320)

        assert result.hours_worked == pytest.approx(4.5)
        trip = db.get(Trip, trip_id)
        assert trip.state == TripState.COMPLETED
        assert trip.end_time == END
        assert trip.fuel_used == 40.0
        assert trip.final_odometer_km == 320
        assert trip.notes == "delivered"
        vehicle = db.get(Vehicle, fleet.vehicle_id)
        assert vehicle.odometer_km == 320
        assert vehicle.state == VehicleState.AVAILABLE
        assert db.get(Driver, fleet.driver_id).cumulative_hours == pytest.approx(4.5)
        check_invariants()

    def test_second_completion_is_invalid_and_hours_count_once(self, db, trips, fleet, start_trip):
        trip_id = start_trip(START)
        complete(db, trips, trip_id, 320)

        with pytest.raises(InvalidTransition):
            complete(db, trips, trip_id, 320)

        assert db.get(Driver, fleet.driver_id).cumulative_hours == pytest.approx(4.5)

    def test_programmed_trip_cannot_complete(self, db, trips, fleet):
        with transaction(db):
            trip = trips.create(db, fleet.vehicle_id, fleet.driver_id, fleet.route_id, date(2026, 1, 5))

        with pytest.raises(InvalidTransition):
            complete(db, trips, trip.id, 100)

    def test_odometer_cannot_go_backwards(self, db, trips, fleet, start_trip):
        first = start_trip(START)
        complete(db, trips, first, 500)
        second = start_trip(datetime(2026, 1, 6, 8, 0))

        with pytest.raises(InvalidData):
            complete(db, trips, second, 499, start=datetime(2026, 1, 6, 8, 0), end=datetime(2026, 1, 6, 9, 0))

        assert db.get(Trip, second).state == TripState.IN_PROGRESS
        assert db.get(Vehicle, fleet.vehicle_id).odometer_km == 500
        assert db.get(Vehicle, fleet.vehicle_id).state == VehicleState.IN_USE

    def test_end_before_start_is_invalid(self, db, trips, fleet, start_trip):
        trip_id = start_trip(START)

        with pytest.raises(InvalidData):
            complete(db, trips, trip_id, 100, start=END, end=START)

        assert db.get(Driver, fleet.driver_id).cumulative_hours == 0
        assert db.get(Trip, trip_id).state == TripState.IN_PROGRESS

    def test_offset_aware_end_time_is_compared_in_utc(self, db, trips, fleet, start_trip):
        trip_id = start_trip(START)

        result = complete(db, trips, trip_id, 200,
                          end=datetime(2026, 1, 5, 13, 0, tzinfo=timezone(timedelta(hours=1))))

        assert result.hours_worked == pytest.approx(4.0)
        trip = db.get(Trip, trip_id)
        assert trip.end_time == datetime(2026, 1, 5, 12, 0)
        assert db.get(Driver, fleet.driver_id).cumulative_hours == pytest.approx(4.0)

    def test_offset_aware_start_is_stored_as_utc(self, db, trips, fleet):
        with transaction(db):
            trip = trips.create(db, fleet.vehicle_id, fleet.driver_id, fleet.route_id, date(2026, 1, 5))
        with transaction(db):
            trips.start(db, trip.id, datetime(2026, 1, 5, 3, 0, tzinfo=timezone(timedelta(hours=-5))))

        assert db.get(Trip, trip.id).start_time == START

    def test_odometer_is_monotonic_across_completions(self, db, trips, fleet, start_trip):
        readings = []
        for day, final in ((5, 120), (6, 120), (7, 410)):
            start = datetime(2026, 1, day, 8, 0)
            trip_id = start_trip(start)
            complete(db, trips, trip_id, final, start=start, end=datetime(2026, 1, day, 10, 0))
            readings.append(db.get(Vehicle, fleet.vehicle_id).odometer_km)

        assert readings == sorted(readings)
        assert db.get(Driver, fleet.driver_id).cumulative_hours == pytest.approx(6.0)

    def test_alert_failure_rolls_back_everything(self, db, thresholds, fleet, start_trip):
        class BrokenEngine(AlertEngine):
            def evaluate_odometer_threshold(self, tx, vehicle):
                raise RuntimeError("alert store down")

        trip_id = start_trip(START)
        trips = TripLifecycle(BrokenEngine(thresholds))

        with pytest.raises(RuntimeError):
            complete(db, trips, trip_id, 320)

        assert db.get(Trip, trip_id).state == TripState.IN_PROGRESS
        vehicle = db.get(Vehicle, fleet.vehicle_id)
        assert vehicle.odometer_km == 0
        assert vehicle.state == VehicleState.IN_USE
        assert db.get(Driver, fleet.driver_id).cumulative_hours == 0

    def test_long_trip_raises_hours_alert(self, db, trips, fleet, start_trip):
        trip_id = start_trip(START)

        complete(db, trips, trip_id, 900, end=datetime(2026, 1, 5, 22, 0))

        alerts = db.query(Alert).filter(Alert.category == AlertCategory.HOURS_EXCEEDED).all()
        assert len(alerts) == 1
        assert alerts[0].related_id == fleet.driver_id
        assert alerts[0].state == AlertState.ACTIVE


# =============================================================================
# concurrency
# =============================================================================


class TestConcurrentCompletion:
    def test_stale_session_loses_to_committed_completion(self, session_factory, trips, fleet, start_trip):
        trip_id = start_trip(START)
        winner = session_factory()
        loser = session_factory()
        try:
            # loser has already read the trip while it was still in progress
            assert loser.get(Trip, trip_id).state == TripState.IN_PROGRESS

            complete(winner, trips, trip_id, 320)

            with pytest.raises(InvalidTransition):
                complete(loser, trips, trip_id, 320)
        finally:
            winner.close()
            loser.close()

    def test_write_based_on_stale_version_is_rejected(self, session_factory, trips, fleet, start_trip):
        trip_id = start_trip(START)
        winner = session_factory()
        loser = session_factory()
        try:
            stale = loser.get(Trip, trip_id)

            complete(winner, trips, trip_id, 320)

            with pytest.raises(InvalidTransition) as exc:
                with transaction(loser):
                    stale.state = TripState.COMPLETED
                    loser.flush()
            assert exc.value.details["reason"] == "concurrent_update"

            check = session_factory()
            assert check.get(Driver, fleet.driver_id).cumulative_hours == pytest.approx(4.5)
            check.close()
        finally:
            winner.close()
            loser.close()
