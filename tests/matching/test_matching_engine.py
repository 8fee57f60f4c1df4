import pytest

from core.exceptions import InvalidStateError, NoAvailableDriverError, NotFoundError
from events.schemas import RideMatched
from geo.location import Location
from matching.driver_registry import DriverPosition
from matching.matching_engine import nearest_available
from metrics.prometheus_exporter import REGISTRY
from ride import NO_DRIVER, RideStatus


@pytest.mark.unit
class TestNearestAvailable:
    def test_empty(self):
        assert nearest_available(Location(0, 0), []) == NO_DRIVER

    def test_skips_unavailable(self):
        positions = [
            DriverPosition(1, Location(1, 0), False),
            DriverPosition(2, Location(50, 0), True),
        ]
        assert nearest_available(Location(0, 0), positions) == 2

    def test_tie_goes_to_lowest_id(self):
        positions = [
            DriverPosition(1, Location(3, 4), True),
            DriverPosition(2, Location(-3, -4), True),
            DriverPosition(3, Location(4, 3), True),
        ]
        assert nearest_available(Location(0, 0), positions) == 1


@pytest.mark.unit
class TestFindNearestAvailable:
    def test_picks_closest(self, matching, make_driver, make_ride):
        make_driver(location=(10, 0))
        closer = make_driver(location=(5, 0))
        ride_id = make_ride(pickup=(0, 0))
        assert matching.find_nearest_available(ride_id) == closer

    def test_no_drivers(self, matching, make_ride):
        assert matching.find_nearest_available(make_ride()) == NO_DRIVER

    def test_does_not_change_state(self, matching, ride_ledger, make_driver, make_ride):
        make_driver()
        ride_id = make_ride()
        matching.find_nearest_available(ride_id)
        assert ride_ledger.get(ride_id).status == RideStatus.REQUESTED

    def test_missing_ride(self, matching):
        with pytest.raises(NotFoundError):
            matching.find_nearest_available(3)


@pytest.mark.unit
class TestMatch:
    def test_assigns_nearest_driver(
        self, matching, ride_ledger, registry, notifications, make_driver, make_ride, rider
    ):
        make_driver(location=(5, 0))
        make_driver(location=(10, 0))
        ride_id = make_ride(pickup=(0, 0), fare=700)

        assert matching.match(ride_id, rider) == 1

        ride = ride_ledger.get(ride_id)
        assert ride.status == RideStatus.MATCHED
        assert ride.assigned_driver_id == 1
        assert ride.matched_at is not None
        assert registry.ride_history(1) == [ride_id]
        event = notifications.recent()[-1]
        assert isinstance(event, RideMatched)
        assert (event.ride_id, event.driver_id, event.fare) == (ride_id, 1, 700)

    def test_equidistant_drivers_prefer_lowest_id(self, matching, make_driver, make_ride, rider):
        make_driver(location=(0, 10))
        make_driver(location=(10, 0))
        ride_id = make_ride(pickup=(0, 0))
        assert matching.match(ride_id, rider) == 1

    def test_unavailable_driver_is_skipped(
        self, matching, registry, make_driver, make_ride, rider
    ):
        near = make_driver(location=(1, 0), owner="owner-a")
        far = make_driver(location=(100, 0))
        registry.set_availability(near, "owner-a", False)
        assert matching.match(make_ride(pickup=(0, 0)), rider) == far

    def test_no_available_driver_leaves_ride_requested(
        self, matching, ride_ledger, notifications, make_ride, rider
    ):
        ride_id = make_ride()
        published = notifications.last_sequence
        before = REGISTRY.get_sample_value("dispatch_match_failures_total") or 0.0

        with pytest.raises(NoAvailableDriverError):
            matching.match(ride_id, rider)

        ride = ride_ledger.get(ride_id)
        assert ride.status == RideStatus.REQUESTED
        assert ride.assigned_driver_id == NO_DRIVER
        assert notifications.last_sequence == published
        assert REGISTRY.get_sample_value("dispatch_match_failures_total") == before + 1

    def test_anyone_may_trigger_match(self, matching, make_driver, make_ride):
        make_driver()
        assert matching.match(make_ride(), "a-passer-by") == 1

    def test_cannot_match_twice(self, matching, make_driver, make_ride, rider):
        make_driver()
        ride_id = make_ride()
        matching.match(ride_id, rider)
        with pytest.raises(InvalidStateError):
            matching.match(ride_id, rider)

    def test_cannot_match_cancelled_ride(
        self, matching, ride_ledger, make_driver, make_ride, rider
    ):
        make_driver()
        ride_id = make_ride()
        ride_ledger.cancel(ride_id, rider)
        with pytest.raises(InvalidStateError, match="terminal"):
            matching.match(ride_id, rider)

    def test_matched_driver_stays_available(
        self, matching, registry, ride_ledger, make_driver, make_ride, rider
    ):
        """A matched driver is not marked busy and can receive a second ride."""
        driver_id = make_driver()
        first = make_ride()
        second = make_ride()

        matching.match(first, rider)
        assert registry.get(driver_id).available is True
        matching.match(second, rider)

        assert ride_ledger.get(first).assigned_driver_id == driver_id
        assert ride_ledger.get(second).assigned_driver_id == driver_id
        assert registry.ride_history(driver_id) == [first, second]

    def test_location_update_changes_outcome(
        self, matching, registry, make_driver, make_ride, rider
    ):
        first = make_driver(location=(5, 0), owner="owner-a")
        second = make_driver(location=(10, 0))
        registry.update_location(first, "owner-a", Location(500, 500))
        assert matching.match(make_ride(pickup=(0, 0)), rider) == second
